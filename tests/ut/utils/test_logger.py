"""日志配置单元测试"""

from __future__ import annotations

import json
import logging

from deployer.utils.logger import (
    SUCCESS,
    GlyphFormatter,
    JSONFormatter,
    reset_logging,
    resolve_level,
    setup_logging,
)


def _record(level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord("deployer.test", level, __file__, 1, msg, None, None)


class TestLevels:
    def test_success_level_registered(self) -> None:
        assert logging.getLevelName(SUCCESS) == "SUCCESS"
        assert logging.INFO < SUCCESS < logging.WARNING

    def test_resolve_level(self) -> None:
        assert resolve_level("debug") == logging.DEBUG
        assert resolve_level("SUCCESS") == SUCCESS
        assert resolve_level("nonsense") == logging.INFO


class TestFormatters:
    def test_glyphs(self) -> None:
        fmt = GlyphFormatter()
        assert fmt.format(_record(SUCCESS, "done")) == "✅ done"
        assert fmt.format(_record(logging.ERROR, "bad")) == "❌ bad"
        assert fmt.format(_record(logging.WARNING, "hmm")).startswith("⚠️")
        assert fmt.format(_record(logging.INFO, "hi")) == "[INFO] hi"
        assert fmt.format(_record(logging.DEBUG, "x")) == "[DEBUG] x"

    def test_json(self) -> None:
        data = json.loads(JSONFormatter().format(_record(logging.INFO, "中文消息")))
        assert data["level"] == "INFO"
        assert data["message"] == "中文消息"
        assert data["logger"] == "deployer.test"


class TestSetupLogging:
    def test_replaces_handlers(self) -> None:
        try:
            setup_logging("DEBUG")
            setup_logging("WARNING", json_output=True)
            root = logging.getLogger()
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
            assert root.level == logging.WARNING
        finally:
            reset_logging()
        assert logging.getLogger().handlers == []
