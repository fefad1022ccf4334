"""
Root logger configuration.
==========================

Terminal output goes through a Rich handler on stderr, so it never mixes with
CLI tables on stdout. A plain-text file can be added next to it.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

# HTTP clients and SDKs that log every request at INFO
NOISY_LOGGERS = (
    "urllib3",
    "requests",
    "httpx",
    "httpcore",
    "chromadb",
    "google_genai",
)

_configured = False
_stderr = Console(stderr=True)


def _console_handler(use_rich: bool, fmt: str) -> logging.Handler:
    if not use_rich:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt))
        return handler

    handler = RichHandler(
        console=_stderr,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def setup_logging(
    level: str = "INFO",
    use_rich: bool = True,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Install handlers on the root logger.

    Only the first call does anything unless `force` is set, so modules may
    call it on import without stacking handlers.
    """
    global _configured

    if _configured and not force:
        return

    threshold = logging.getLevelName(level.upper())
    if not isinstance(threshold, int):
        threshold = logging.INFO
    fmt = log_format or DEFAULT_FORMAT

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(threshold)
    root.addHandler(_console_handler(use_rich, fmt))

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        to_file = logging.FileHandler(path, encoding="utf-8")
        to_file.setFormatter(logging.Formatter(fmt))
        root.addHandler(to_file)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
    logging.getLogger(__name__).debug(
        f"Root logger at {logging.getLevelName(threshold)} (rich={use_rich}, file={log_file or '-'})"
    )


def setup_logging_from_settings(verbose: bool = False) -> None:
    """Apply the `logging` section of the settings; `verbose` forces DEBUG."""
    from mathsearch.shared.config import get_settings

    cfg = get_settings()
    setup_logging(
        level="DEBUG" if verbose else cfg.get_effective_log_level(),
        use_rich=cfg.logging.rich_console,
        log_file=cfg.logging.file or None,
        log_format=cfg.logging.format,
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    """Module logger; configures defaults on first use if nobody has yet."""
    if not _configured:
        setup_logging()
    return logging.getLogger(name)
