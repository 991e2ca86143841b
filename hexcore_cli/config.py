import logging
import os
from dataclasses import dataclass

from textual.logging import TextualHandler

DEFAULT_TIMEOUT = 60.0
FULL_REFRESH_INTERVAL = 30.0
STATUS_POLL_INTERVAL = 5.0

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class ConsoleConfig:
    url: str
    username: str | None = None
    password: str | None = None
    blockfrost_api_key: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    full_refresh_interval: float = FULL_REFRESH_INTERVAL
    status_poll_interval: float = STATUS_POLL_INTERVAL

    @property
    def base_url(self) -> str:
        return self.url.rstrip("/")

    @property
    def has_credentials(self) -> bool:
        return bool(self.username or self.password)


def configure_logging(verbose: bool = False, log_file: str | None = None, tui: bool = False) -> None:
    """Route package logs to stderr, or through textual while the dashboard owns the terminal."""
    logger = logging.getLogger("hexcore_cli")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)
    if tui:
        handler: logging.Handler = TextualHandler()
    else:
        handler = logging.StreamHandler()
        handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(os.path.expanduser(log_file))
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
