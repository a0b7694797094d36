import logging

import pytest
from click.testing import CliRunner

_CLI_LOGGERS = (None, 'urllib3', 'signxml.processor', 'fontTools.subset')


@pytest.fixture
def cli_runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    saved = {}
    for name in _CLI_LOGGERS:
        cur_logger = logging.getLogger(name)
        saved[name] = (cur_logger.level, list(cur_logger.handlers))
    yield CliRunner()
    # undo the CLI's logging setup
    for name, (level, handlers) in saved.items():
        cur_logger = logging.getLogger(name)
        cur_logger.setLevel(level)
        cur_logger.handlers[:] = handlers
