"""Logging setup shared by the CLI, the relay, and the protocol server.

Call ``setup_logging`` once per process to configure the ``"paperblog"``
package logger with timestamps and optional file output.  All other modules
obtain a child logger via ``logging.getLogger(__name__)`` and let records
propagate here.  Output goes to stderr only: the protocol server owns stdout
for its stdio transport.
"""

import logging
import sys
from pathlib import Path

_FMT = "%(asctime)s  %(levelname)-7s [%(threadName)s] %(message)s"
_DATE = "%H:%M:%S"


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure the ``paperblog`` logger.

    Args:
        verbose:  If True, set level to DEBUG (shows prompt sizes, cache keys
                  and other fine-grained detail).  Default level is INFO.
        log_file: If provided, attach a ``FileHandler`` that writes to this
                  path in addition to stderr.  Parent directories are created
                  automatically.

    Calling this function a second time (e.g., in tests) is safe: existing
    handlers are cleared before new ones are added.
    """
    logger = logging.getLogger("paperblog")
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    fmt = logging.Formatter(_FMT, datefmt=_DATE)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(fmt)
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        logger.addHandler(fh)


def mask_key(api_key: str) -> str:
    """Return the first 10 characters of a credential for log lines."""
    return f"{api_key[:10]}..."
