"""Logging setup shared by the API and the command-line tool."""

import logging

from chronic_risk.core.config import settings


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the process.

    Args:
        level: Log level name. Defaults to ``settings.log_level``.
    """
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
