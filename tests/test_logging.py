import logging

import pytest

from appointly.utils.my_logging import NOISY_LOGGERS, CorrelationIdFilter, setup_logging


@pytest.fixture
def restore_loggers():
    saved = {name: (logging.getLogger(name).level, logging.getLogger(name).propagate) for name in NOISY_LOGGERS}
    yield
    for name, (level, propagate) in saved.items():
        logging.getLogger(name).setLevel(level)
        logging.getLogger(name).propagate = propagate


def record(**extra):
    entry = logging.LogRecord("appointly.test", logging.INFO, __file__, 1, "booked", None, None)
    entry.__dict__.update(extra)
    return entry


def test_quiet_mode_silences_library_loggers(restore_loggers):
    setup_logging(verbose=False)

    assert logging.getLogger("sqlalchemy.engine").level == logging.ERROR
    assert logging.getLogger("redis").propagate is False


def test_verbose_mode_keeps_sql_echo_out_of_info(restore_loggers):
    setup_logging(verbose=True)

    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_correlation_id_filter():
    outside_request = record()
    in_request = record(correlation_id="abc-123")

    assert CorrelationIdFilter().filter(outside_request)
    assert CorrelationIdFilter().filter(in_request)
    assert outside_request.correlation_id == "-"
    assert in_request.correlation_id == "abc-123"
