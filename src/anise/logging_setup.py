"""
Anise - Logging setup.

Console logging for the CLI. Library modules only ever call
logging.getLogger(__name__); handlers are installed here, once.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

from anise.config import settings

# Libraries that log every request at INFO
NOISY_LOGGERS = ["httpx", "httpcore", "openai", "instructor", "hpack", "postgrest"]


def configure_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Route log records to stderr through rich, at settings.log_level (DEBUG if verbose)."""
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level)

    logging.basicConfig(
        level=level,
        format="[%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        handlers=[
            RichHandler(
                console=console or Console(stderr=True),
                show_path=False,
                rich_tracebacks=True,
            )
        ],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
