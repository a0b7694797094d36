import logging
import sys

import click
import pytest
from pyhanko.config.errors import ConfigurationError
from pyhanko.config.logging import LogConfig, StdLogOutput

from notarysign.cli.runtime import (
    NoStackTraceFormatter,
    logging_setup,
    notarysign_exception_manager,
)
from notarysign.errors import NotActivated

LOGGER_NAME = 'notarysign_tests.runtime'


@pytest.fixture
def test_logger():
    cur_logger = logging.getLogger(LOGGER_NAME)
    level = cur_logger.level
    yield cur_logger
    cur_logger.setLevel(level)
    cur_logger.handlers.clear()


@pytest.mark.parametrize(
    'output,stream',
    [(StdLogOutput.STDOUT, 'stdout'), (StdLogOutput.STDERR, 'stderr')],
)
def test_console_output_stream(test_logger, output, stream):
    logging_setup({LOGGER_NAME: LogConfig(logging.INFO, output)}, False)
    (handler,) = test_logger.handlers
    assert handler.stream is getattr(sys, stream)
    assert isinstance(handler.formatter, NoStackTraceFormatter)
    assert test_logger.level == logging.INFO


def test_verbose_console_keeps_stack_traces(test_logger):
    logging_setup(
        {LOGGER_NAME: LogConfig(logging.DEBUG, StdLogOutput.STDERR)}, True
    )
    (handler,) = test_logger.handlers
    assert not isinstance(handler.formatter, NoStackTraceFormatter)


def test_file_output(test_logger, tmp_path):
    log_file = tmp_path / 'notarysign.log'
    logging_setup({LOGGER_NAME: LogConfig(logging.INFO, str(log_file))}, False)
    (handler,) = test_logger.handlers
    assert isinstance(handler, logging.FileHandler)
    test_logger.info("written to file")
    handler.close()
    assert 'written to file' in log_file.read_text()


@pytest.mark.parametrize(
    'error,message',
    [
        (NotActivated("not activated"), 'notarySign.notRegistered'),
        (ConfigurationError("bad key"), 'Configuration problem: bad key'),
        (ValueError("boom"), 'Generic processing error.'),
    ],
)
def test_exception_manager(error, message):
    with pytest.raises(click.ClickException) as exc_info:
        with notarysign_exception_manager():
            raise error
    assert exc_info.value.message == message
