"""Logging setup for the CLI."""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

_NOISY_LOGGERS = ("urllib3", "requests", "charset_normalizer")


def setup_logging(
    verbose: bool = False,
    log_file: Path | None = None,
    level: str = "INFO",
) -> None:
    """Configure root logging with a Rich console handler.

    Args:
        verbose: Force DEBUG level
        log_file: Optional file receiving plain-text logs as well
        level: Level used when not verbose
    """
    root_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(root_level)

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=verbose,
        markup=False,
    )
    console_handler.setLevel(root_level)
    root.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        file_handler.setLevel(logging.DEBUG)
        root.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def set_level(level: str, verbose: bool = False) -> None:
    """Apply a configured level to the root logger and its console handlers.

    Does nothing when ``verbose`` is set, so ``--verbose`` keeps DEBUG output.
    File handlers keep logging everything the root lets through.
    """
    if verbose:
        return
    root_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(root_level)
    for handler in root.handlers:
        if isinstance(handler, RichHandler):
            handler.setLevel(root_level)
