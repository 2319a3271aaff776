"""部署日志

单次部署运行的只追加记录：步骤起止、耗时、最终结果。
每次运行一个文件 <log_dir>/deployment-YYYYmmdd.HHMMSS.log，
同时以状态符号镜像到控制台。

运行期间文件 handler 也挂到根日志器上，安装器内部通过
logging.getLogger(__name__) 输出的日志一并写入同一文件。
"""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TextIO

from deployer.utils.logger import FILE_DATEFMT, FILE_FORMAT, SUCCESS, GlyphFormatter

RUN_LOGGER_NAME = "deployer.run"
_RULE = "=" * 60


@dataclass
class LogEntry:
    """一条部署日志记录（内存副本，供报告和测试使用）"""

    timestamp: float
    level: str
    message: str


class DeploymentLog:
    """单次运行的部署日志

    生命周期 = 一次 Orchestrator.run()：构造时写入文件头，close() 时卸载 handler。
    """

    def __init__(
        self,
        log_dir: str | Path = "logs",
        *,
        console: TextIO | None = None,
        write_file: bool = True,
        title: str = "平台部署",
    ) -> None:
        self.entries: list[LogEntry] = []
        self.started_at = time.time()
        stamp = datetime.fromtimestamp(self.started_at).strftime("%Y%m%d.%H%M%S")
        self.path: Path | None = None
        self._handlers: list[logging.Handler] = []
        self._root_handler: logging.Handler | None = None

        self._logger = logging.getLogger(f"{RUN_LOGGER_NAME}.{stamp}.{id(self)}")
        self._logger.setLevel(logging.DEBUG)
        self._logger.propagate = False

        if write_file:
            directory = Path(log_dir)
            directory.mkdir(parents=True, exist_ok=True)
            self.path = directory / f"deployment-{stamp}.log"
            self._write_header(title)
            fh = logging.FileHandler(self.path, encoding="utf-8")
            fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATEFMT))
            fh.setLevel(logging.DEBUG)
            self._handlers.append(fh)
            self._logger.addHandler(fh)

            # 安装器内部日志一并写入文件
            root_fh = logging.FileHandler(self.path, encoding="utf-8")
            root_fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATEFMT))
            root_fh.setLevel(logging.DEBUG)
            root_fh.addFilter(lambda r: not r.name.startswith(RUN_LOGGER_NAME))
            logging.getLogger().addHandler(root_fh)
            self._root_handler = root_fh

        ch = logging.StreamHandler(console or sys.stdout)
        ch.setFormatter(GlyphFormatter())
        ch.setLevel(logging.INFO)
        self._handlers.append(ch)
        self._logger.addHandler(ch)

    def _write_header(self, title: str) -> None:
        assert self.path is not None
        started = datetime.fromtimestamp(self.started_at).strftime(FILE_DATEFMT)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(f"{_RULE}\n{title}日志\n开始时间: {started}\n{_RULE}\n\n")

    # =========================================================================
    # 记录
    # =========================================================================

    def _emit(self, level: int, message: str) -> None:
        self.entries.append(LogEntry(
            timestamp=time.time(), level=logging.getLevelName(level), message=message,
        ))
        self._logger.log(level, message)

    def info(self, message: str) -> None:
        self._emit(logging.INFO, message)

    def success(self, message: str) -> None:
        self._emit(SUCCESS, message)

    def warning(self, message: str) -> None:
        self._emit(logging.WARNING, message)

    def error(self, message: str) -> None:
        self._emit(logging.ERROR, message)

    def debug(self, message: str) -> None:
        self._emit(logging.DEBUG, message)

    def step_started(self, index: int, total: int, name: str) -> None:
        self.info(f"[{index}/{total}] 开始步骤: {name}")

    def step_completed(
        self, name: str, passed: bool, duration: float, message: str = "",
        *, optional: bool = False,
    ) -> None:
        suffix = f": {message}" if message else ""
        if passed:
            self.success(f"步骤完成: {name} ({duration:.1f}秒){suffix}")
        elif optional:
            self.warning(f"可选步骤失败，继续执行: {name} ({duration:.1f}秒){suffix}")
        else:
            self.error(f"步骤失败: {name} ({duration:.1f}秒){suffix}")

    def summary(self, status: str, duration: float, failed_step: str = "") -> None:
        """写入运行摘要（文件尾）"""
        lines = [
            _RULE,
            f"部署结果: {status}",
            f"总耗时: {duration:.1f}秒",
        ]
        if failed_step:
            lines.append(f"失败步骤: {failed_step}")
        if self.path is not None:
            lines.append(f"日志文件: {self.path}")
        lines.append(_RULE)
        for line in lines:
            self._emit(logging.INFO, line)

    def close(self) -> None:
        for h in self._handlers:
            self._logger.removeHandler(h)
            h.close()
        self._handlers.clear()
        if self._root_handler is not None:
            logging.getLogger().removeHandler(self._root_handler)
            self._root_handler.close()
            self._root_handler = None

    def __enter__(self) -> DeploymentLog:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
