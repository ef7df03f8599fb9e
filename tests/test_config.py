import logging

from parser_utils.config import get_log_level, get_log_level_name


def test_get_log_level_resolves_names():
    assert get_log_level("debug") == logging.DEBUG
    assert get_log_level("WARNING") == logging.WARNING
    assert get_log_level("verbose") == logging.INFO


def test_get_log_level_name_is_always_a_server_level():
    assert get_log_level_name("DEBUG") == "debug"
    assert get_log_level_name("warn") == "warning"
    assert get_log_level_name("critical") == "critical"

    # unknown names would crash uvicorn at startup
    assert get_log_level_name("verbose") == "info"
    assert get_log_level_name("notset") == "info"
