"""Shell 命令执行工具 — 统一子进程调用

helm / kubectl 客户端通过 CommandExecutor 协议调用外部二进制，
测试时注入假执行器即可，无需 patch subprocess。
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Protocol

from deployer.core.exceptions import ExecutionError

logger = logging.getLogger(__name__)

# 与 coreutils timeout(1) 保持一致
TIMEOUT_RETURNCODE = 124


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def timed_out(self) -> bool:
        return self.returncode == TIMEOUT_RETURNCODE

    def error_text(self, limit: int = 500) -> str:
        """失败时用于拼接错误消息的输出片段（优先 stderr）"""
        text = (self.stderr or self.stdout).strip()
        return text[:limit]


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议 — 抽象子进程调用

    实现此协议即可替换底层执行方式（本地 shell、跳板机 SSH 等）。
    """

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
        input_text: str | None = None,
    ) -> CommandResult:
        """执行命令并返回结果，超时不抛异常而是返回 TIMEOUT_RETURNCODE"""
        ...


# =========================================================================
# 默认实现: 本地 Shell 执行器
# =========================================================================

class LocalExecutor:
    """本地 Shell 命令执行器（默认实现）"""

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
        input_text: str | None = None,
    ) -> CommandResult:
        args = shlex.split(cmd) if isinstance(cmd, str) else cmd
        logger.debug("执行命令: %s", shlex.join(args))
        try:
            r = subprocess.run(
                args, capture_output=True, text=True, input=input_text,
                encoding="utf-8", errors="replace",
                cwd=cwd, env=env, check=False, timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("命令超时 (%ss): %s", timeout, args[0])
            return CommandResult(
                returncode=TIMEOUT_RETURNCODE, stdout="",
                stderr=f"命令超时（{timeout}秒）: {shlex.join(args)}",
            )
        except FileNotFoundError:
            return CommandResult(
                returncode=127, stdout="",
                stderr=f"命令不存在: {args[0]}",
            )
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout,
            stderr=r.stderr,
        )


# =========================================================================
# 全局默认执行器（可替换）
# =========================================================================

_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试或远程执行场景）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor


def run_cmd(
    cmd: str | list[str], *,
    executor: CommandExecutor | None = None,
    timeout: int | None = None,
    input_text: str | None = None,
    label: str = "cmd",
) -> CommandResult:
    """执行命令，失败抛 ExecutionError

    Args:
        cmd: 命令字符串或参数列表
        executor: 指定执行器（默认使用全局执行器）
        timeout: 超时秒数
        input_text: 写入 stdin 的内容
        label: 日志标签
    """
    ex = executor or get_executor()
    r = ex.execute(cmd, timeout=timeout, input_text=input_text)
    if not r.success:
        raise ExecutionError(f"{label}失败 (rc={r.returncode}): {r.error_text()}")
    return r
