"""deployer 日志配置

提供统一的日志配置和格式化功能：
  - 普通文本 / 结构化 JSON 两种 stderr 输出格式
  - 自定义 SUCCESS 级别（介于 INFO 与 WARNING 之间）
  - 部署日志文件行格式与控制台状态符号格式
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

# 部署日志文件中的行格式: [2024-01-01 12:00:00] [INFO] message
FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

_GLYPHS = {
    "ERROR": "❌ ",
    "CRITICAL": "❌ ",
    "WARNING": "⚠️ ",
    "SUCCESS": "✅ ",
    "INFO": "[INFO] ",
    "DEBUG": "[DEBUG] ",
}


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器，便于 CI 流水线消费

    输出格式:
        {
            "timestamp": "2024-01-01T12:00:00+00:00",
            "level": "INFO",
            "logger": "module.name",
            "message": "log message",
            "module": "filename",
            "function": "func_name",
            "line": 42,
            "exception": "traceback..." (仅在有异常时)
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            # 记录事件发生时间而非格式化时间
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


class GlyphFormatter(logging.Formatter):
    """控制台镜像格式器：按级别添加状态符号（✅ / ❌ / ⚠️ / [INFO]）"""

    def format(self, record: logging.LogRecord) -> str:
        prefix = _GLYPHS.get(record.levelname, f"[{record.levelname}] ")
        return prefix + record.getMessage()


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器

    参数:
        level: 日志级别字符串（DEBUG, INFO, SUCCESS, WARNING, ERROR）
        json_output: 为 True 时使用 JSON 格式（适用于 CI），否则使用人类可读格式

    说明:
        - 输出到 stderr
        - 自动清理已有 handlers，避免重复输出

    示例:
        >>> setup_logging("DEBUG", json_output=False)
        >>> setup_logging("INFO", json_output=True)  # CI 环境
    """
    root = logging.getLogger()

    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    root.setLevel(resolve_level(level))

    handler = logging.StreamHandler(sys.stderr)

    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        fmt = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"
        handler.setFormatter(logging.Formatter(fmt))

    root.addHandler(handler)


def resolve_level(level: str) -> int:
    """级别名转数值，未知名称回退 INFO"""
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def reset_logging() -> None:
    """重置根日志器配置

    清理所有已注册的 handlers，恢复到未配置状态。
    常用于测试环境或需要重新配置日志的场景。
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
