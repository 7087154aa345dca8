import io
import logging

import pytest

from spendwatch.logging_setup import ROOT_LOGGER, configure_logging, get_logger, resolve_level


@pytest.fixture
def pkg_logger():
    logger = logging.getLogger(ROOT_LOGGER)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    logger.handlers = [h for h in logger.handlers if isinstance(h, logging.NullHandler)]
    yield logger
    logger.handlers, logger.level, logger.propagate = saved[0], saved[1], saved[2]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("debug", logging.DEBUG),
        (" WARNING ", logging.WARNING),
        ("15", 15),
        (logging.ERROR, logging.ERROR),
        ("chatty", logging.INFO),
    ],
)
def test_resolve_level(value, expected):
    assert resolve_level(value) == expected


def test_resolve_level_reads_env(monkeypatch):
    monkeypatch.setenv("SPENDWATCH_LOG_LEVEL", "error")
    assert resolve_level(None) == logging.ERROR
    monkeypatch.delenv("SPENDWATCH_LOG_LEVEL")
    assert resolve_level(None) == logging.INFO


def test_configure_logging_routes_package_records_once(pkg_logger):
    stream = io.StringIO()
    configure_logging("INFO", fmt="%(name)s %(message)s", stream=stream)
    configure_logging("DEBUG", stream=io.StringIO())

    log = get_logger("spendwatch.pending")
    log.info("pending:appended id=%s", "t1")
    log.debug("pending:hidden")

    assert stream.getvalue() == "spendwatch.pending pending:appended id=t1\n"
    assert pkg_logger.propagate is False
    assert len([h for h in pkg_logger.handlers if not isinstance(h, logging.NullHandler)]) == 1


def test_format_from_env(pkg_logger, monkeypatch):
    monkeypatch.setenv("SPENDWATCH_LOG_FORMAT", "[%(levelname)s] %(message)s")
    stream = io.StringIO()
    configure_logging(logging.WARNING, stream=stream)
    get_logger("spendwatch.dedup").warning("dedup:state_corrupt")
    assert stream.getvalue() == "[WARNING] dedup:state_corrupt\n"
