"""核心数据模型

安装结果、诊断报告、运行状态及部署报告集中定义，
安装器 / 步骤执行器 / 编排器 / CLI 统一从此处导入。
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# =========================================================================
# 安装器返回值
# =========================================================================


@dataclass
class InstallResult:
    """单次 install / verify 调用的结果"""

    success: bool
    message: str = ""
    skipped: bool = False  # 资源已存在且健康，未执行 apply
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "", **details: Any) -> InstallResult:
        return cls(success=True, message=message, details=details)

    @classmethod
    def fail(cls, message: str, **details: Any) -> InstallResult:
        return cls(success=False, message=message, details=details)

    @classmethod
    def already_healthy(cls, message: str) -> InstallResult:
        return cls(success=True, message=message, skipped=True)


@dataclass
class LogFinding:
    """日志中被判定为错误的一行"""

    source: str  # pod 名称或文件路径
    line: str
    keyword: str


@dataclass
class DiagnosticReport:
    """collect_diagnostics 的结果，仅用于提示，不影响部署结果"""

    component: str
    pods_checked: list[str] = field(default_factory=list)
    findings: list[LogFinding] = field(default_factory=list)
    message: str = ""

    @property
    def has_errors(self) -> bool:
        return len(self.findings) > 0

    def count_by_source(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for f in self.findings:
            counts[f.source] = counts.get(f.source, 0) + 1
        return counts


# =========================================================================
# 运行状态
# =========================================================================


class RunStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class StepStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    WARNING = "warning"  # 可选步骤失败，继续执行
    SKIPPED = "skipped"  # 步骤被禁用


@dataclass
class RunState:
    """单次编排运行的状态，生命周期 = 一次 Orchestrator.run()"""

    status: RunStatus = RunStatus.NOT_STARTED
    current_index: int = -1
    started_at: float = 0.0
    finished_at: float = 0.0
    failed_step: str = ""

    def start(self) -> None:
        self.status = RunStatus.RUNNING
        self.started_at = time.time()
        self.current_index = 0

    def finish(self, status: RunStatus, failed_step: str = "") -> None:
        self.status = status
        self.failed_step = failed_step
        self.finished_at = time.time()

    @property
    def duration(self) -> float:
        if not self.started_at:
            return 0.0
        end = self.finished_at or time.time()
        return end - self.started_at


@dataclass
class StepOutcome:
    """单个步骤的执行记录"""

    name: str
    status: StepStatus
    message: str = ""
    duration: float = 0.0  # 秒
    optional: bool = False

    @property
    def passed(self) -> bool:
        return self.status in (StepStatus.PASSED, StepStatus.WARNING, StepStatus.SKIPPED)


@dataclass
class DeploymentReport:
    """编排执行报告"""

    state: RunState
    outcomes: list[StepOutcome] = field(default_factory=list)
    log_path: str = ""

    @property
    def success(self) -> bool:
        return self.state.status == RunStatus.SUCCEEDED

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    @property
    def failed_step(self) -> str:
        return self.state.failed_step

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.state.status.value,
            "duration": round(self.state.duration, 1),
            "failed_step": self.failed_step,
            "log_path": self.log_path,
            "steps": [
                {
                    "name": o.name,
                    "status": o.status.value,
                    "optional": o.optional,
                    "duration": round(o.duration, 1),
                    "message": o.message,
                }
                for o in self.outcomes
            ],
        }
