import logging

import pytest

from utils.logger_config import LoggerConfig, get_logger


def test_module_loggers_are_children_of_project_logger():
    assert get_logger('utils.image').name == 'sgbm_tuner.utils.image'
    assert get_logger('sgbm_tuner.tuner').name == 'sgbm_tuner.tuner'


def test_get_logger_defaults_to_calling_module():
    assert get_logger().name == f"sgbm_tuner.{__name__}"


@pytest.mark.parametrize("level, expected", [
    ("DEBUG", logging.DEBUG),
    ("warning", logging.WARNING),
    (logging.ERROR, logging.ERROR),
])
def test_parse_level(level, expected):
    assert LoggerConfig.parse_level(level) == expected


def test_parse_unknown_level_raises():
    with pytest.raises(ValueError):
        LoggerConfig.parse_level("LOUD")


def test_configure_from_config_writes_log_file(tmp_path):
    class FakeConfig:
        log_level = "DEBUG"
        log_file = str(tmp_path / "logs" / "tuner.log")

    try:
        LoggerConfig.configure_from(FakeConfig())
        get_logger('tests').debug("hello from the tests")
        info = LoggerConfig.get_configuration_info()
    finally:
        LoggerConfig.setup_root_logger(force=True)

    assert info['level'] == 'DEBUG'
    assert {handler['type'] for handler in info['handlers']} == {'StreamHandler', 'FileHandler'}
    assert "hello from the tests" in (tmp_path / "logs" / "tuner.log").read_text()
