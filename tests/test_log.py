"""Tests for paperblog/log.py — logging setup and key masking."""

import logging

from paperblog.log import mask_key, setup_logging


# ---------------------------------------------------------------------------
# setup_logging  (logger state reset handled by conftest._reset_paperblog_logger)
# ---------------------------------------------------------------------------


def test_setup_logging_adds_stderr_handler():
    """setup_logging attaches a StreamHandler (stderr) to the paperblog logger."""
    setup_logging()
    logger = logging.getLogger("paperblog")
    stream_handlers = [h for h in logger.handlers if type(h) is logging.StreamHandler]
    assert len(stream_handlers) == 1


def test_setup_logging_default_level_is_info():
    setup_logging()
    assert logging.getLogger("paperblog").level == logging.INFO


def test_setup_logging_verbose_sets_debug_level():
    setup_logging(verbose=True)
    assert logging.getLogger("paperblog").level == logging.DEBUG


def test_setup_logging_file_handler_created(tmp_path):
    """Passing log_file attaches a FileHandler and creates parent directories."""
    log_file = tmp_path / "deep" / "logs" / "run.log"
    setup_logging(log_file=log_file)
    logger = logging.getLogger("paperblog")
    file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
    assert len(file_handlers) == 1
    assert log_file.exists()


def test_setup_logging_is_idempotent():
    """Calling setup_logging twice leaves exactly one StreamHandler."""
    setup_logging()
    setup_logging()
    logger = logging.getLogger("paperblog")
    assert len(logger.handlers) == 1


def test_setup_logging_writes_messages_to_file(tmp_path):
    log_file = tmp_path / "run.log"
    setup_logging(log_file=log_file)
    logging.getLogger("paperblog.relay").info("relay started")
    for h in logging.getLogger("paperblog").handlers:
        h.flush()
    assert "relay started" in log_file.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# mask_key
# ---------------------------------------------------------------------------


def test_mask_key_keeps_ten_characters():
    assert mask_key("sk-ant-api03-secret") == "sk-ant-api..."


def test_mask_key_short_key():
    assert mask_key("sk-x") == "sk-x..."
