"""Application entry point for the ID card image pipeline API server."""

import uvicorn

from idscan.api.app import app
from idscan.utils.config import load_config
from idscan.utils.logger import setup_logging


def main() -> None:
    """Start the FastAPI application server."""
    config = load_config()
    setup_logging(config.log_level)
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
