"""Portal entrypoint.

Run with:
  python -m portal
"""

import logging
import os
import sys

import uvicorn

from portal.config import Settings

_logger = logging.getLogger(__name__)


def setup_logging(loglevel):
    """Setup basic logging

    Args:
      loglevel (int | str): minimum loglevel for emitting messages
    """
    logformat = "[%(asctime)s] %(levelname)s:%(name)s:%(message)s"
    logging.basicConfig(
        level=loglevel, stream=sys.stdout, format=logformat, datefmt="%Y-%m-%d %H:%M:%S"
    )


def main() -> None:
    setup_logging(os.getenv("PORTAL_LOG_LEVEL", "INFO").upper())
    settings = Settings.from_env()
    _logger.info("Server running on port %s", settings.port)
    uvicorn.run("portal.app:app", host=settings.host, port=settings.port, reload=settings.reload)


if __name__ == "__main__":
    main()
