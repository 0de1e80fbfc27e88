"""Process-wide logging setup."""

import logging

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=_FORMAT)
    # httpx logs full request URLs at INFO, which would include OAuth codes
    logging.getLogger("httpx").setLevel(logging.WARNING)
