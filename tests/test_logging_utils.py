"""Tests for the logging setup."""

import logging
from dataclasses import replace
from logging.handlers import RotatingFileHandler
from pathlib import Path

from teacheval.logging_utils import setup_logging


def _file_handlers(logger: logging.Logger):
    return [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]


def test_repeated_setup_keeps_one_handler_of_each_kind(config):
    setup_logging(config)
    logger = setup_logging(config)
    assert len(_file_handlers(logger)) == 1
    assert len([h for h in logger.handlers if type(h) is logging.StreamHandler]) == 1


def test_new_log_path_moves_file_handler(config, tmp_path):
    setup_logging(config)
    moved = replace(config, log_path=tmp_path / "other" / "app.log")
    logger = setup_logging(moved)

    logger.getChild("test").warning("written to the new file")

    (handler,) = _file_handlers(logger)
    assert Path(handler.baseFilename) == (tmp_path / "other" / "app.log").absolute()
    assert "written to the new file" in (tmp_path / "other" / "app.log").read_text(encoding="utf-8")
