"""Process-wide logging setup."""

import logging

from logitrack.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger from ``settings.log_level``.

    Uvicorn installs its own handlers; ``force`` keeps a single handler on the
    root logger when the app is reloaded.
    """
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
        force=True,
    )
