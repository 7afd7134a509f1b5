"""日志工具测试"""

import logging
import os

import pytest

from ytree.log import (
    MicrosecondFormatter,
    create_formatter,
    get_logger,
    setup_logger,
    setup_sql_logger,
)


@pytest.fixture
def reset_logger():
    """测试后清理命名日志器的处理器"""
    names = []
    yield names.append
    for name in names:
        _logger = logging.getLogger(name)
        for handler in _logger.handlers:
            handler.close()
        _logger.handlers.clear()


class TestSetupLogger:

    def test_level_and_console(self, reset_logger):
        reset_logger("ytree.tests.console")
        _logger = setup_logger("ytree.tests.console", level="debug")

        assert _logger.level == logging.DEBUG
        assert len(_logger.handlers) == 1
        assert isinstance(_logger.handlers[0], logging.StreamHandler)

    def test_unknown_level_falls_back_to_info(self, reset_logger):
        reset_logger("ytree.tests.level")

        assert setup_logger("ytree.tests.level", level="verbose").level == logging.INFO

    def test_log_file_created(self, temp_dir, reset_logger):
        reset_logger("ytree.tests.file")
        log_file = os.path.join(temp_dir, "logs", "ytree.log")

        _logger = setup_logger("ytree.tests.file", log_file=log_file, console=False)
        _logger.info("树已创建")
        for handler in _logger.handlers:
            handler.flush()

        with open(log_file, encoding="utf-8") as f:
            content = f.read()
        assert "INFO - ytree.tests.file" in content
        assert "树已创建" in content

    def test_repeated_setup_does_not_duplicate(self, reset_logger):
        reset_logger("ytree.tests.repeat")
        setup_logger("ytree.tests.repeat")

        assert len(setup_logger("ytree.tests.repeat").handlers) == 1

    def test_sql_logger_without_file(self, reset_logger):
        reset_logger("sqlalchemy.engine")
        _logger = setup_sql_logger(level="WARNING")

        assert _logger.handlers == []
        assert _logger.propagate is True
        assert _logger.level == logging.WARNING


class TestFormatter:

    def test_microsecond_formatter(self):
        formatter = create_formatter("%(asctime)s")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)

        assert isinstance(formatter, MicrosecondFormatter)
        assert len(formatter.format(record).split(".")[-1]) == 6

    def test_plain_formatter(self):
        formatter = create_formatter(use_microseconds=False)

        assert not isinstance(formatter, MicrosecondFormatter)


class TestGetLogger:

    def test_infers_module_name(self):
        assert get_logger().name == __name__

    def test_short_name_prefixed(self):
        assert get_logger("tree").name == "ytree.tree"

    def test_dotted_name_kept(self):
        assert get_logger("sqlalchemy.engine").name == "sqlalchemy.engine"
        assert get_logger("ytree").name == "ytree"
