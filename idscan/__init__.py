"""ID card image pipeline.

Pixel-level algorithms for photographed identification cards: card
localization, perspective correction, OCR-oriented enhancement and
binarization, and capture quality scoring.
"""

__version__ = "1.0.0"
