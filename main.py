"""
Second Brain — Entry Point.

Single entry point: `python main.py` starts the HTTP API under uvicorn.
"""

import logging

import uvicorn

from src.api.app import create_app
from src.config import load_settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def main() -> None:
    settings = load_settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT)
    app = create_app(settings)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    main()
