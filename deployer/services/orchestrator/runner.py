"""步骤执行器 - 执行计划中的单个步骤

契约：
- 开始前写一条 "开始" 记录，结束后写一条 "完成 / 失败" 记录，无论结果如何
- install 失败则不再调用 verify
- install 成功后必须 verify；可选步骤的失败记 WARNING
- verify 通过后采集诊断，仅作提示，不改变结果；诊断中的任何异常只记 WARNING
- 安装器抛出的 DeployerError / OSError 归一化为失败结果，消息原样保留
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable

from deployer.core.exceptions import DeployerError
from deployer.core.models import InstallResult, StepOutcome, StepStatus

if TYPE_CHECKING:
    from deployer.core.config import Config
    from deployer.core.deploy_log import DeploymentLog
    from deployer.core.models import RunState
    from deployer.core.plan import Step

logger = logging.getLogger(__name__)

# 诊断发现较多时只展示前几行
MAX_FINDINGS_SHOWN = 5


def _normalize(call: Callable[[Config], InstallResult], config: Config) -> InstallResult:
    try:
        return call(config)
    except DeployerError as e:
        logger.debug("安装器异常 [%s]: %s", e.code, e)
        return InstallResult.fail(str(e))
    except OSError as e:
        return InstallResult.fail(str(e))


class StepRunner:
    """单步骤执行器"""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock

    def run(
        self, step: Step, config: Config, log: DeploymentLog,
        state: RunState | None = None, index: int = 1, total: int = 1,
    ) -> StepOutcome:
        if state is not None:
            state.current_index = index - 1
        log.step_started(index, total, step.name)
        start = self._clock()

        result = _normalize(step.installer.install, config)
        if result.success:
            if result.skipped:
                log.info(f"{step.name}: {result.message}，跳过安装")
            elif result.message:
                log.info(f"{step.name}: {result.message}")
            result = _normalize(step.installer.verify, config)
            if result.success:
                self._diagnose(step, config, log)
        else:
            log.debug(f"{step.name}: install 失败，不执行 verify")

        duration = self._clock() - start
        if result.success:
            status = StepStatus.PASSED
        elif step.optional:
            status = StepStatus.WARNING
        else:
            status = StepStatus.FAILED

        log.step_completed(
            step.name, result.success, duration, result.message, optional=step.optional,
        )
        return StepOutcome(
            name=step.name, status=status, message=result.message,
            duration=duration, optional=step.optional,
        )

    def _diagnose(self, step: Step, config: Config, log: DeploymentLog) -> None:
        try:
            report = step.installer.collect_diagnostics(config)
        except Exception as e:  # noqa: BLE001
            log.warning(f"{step.name}: 诊断采集失败: {e}")
            return
        if report.message:
            log.debug(f"{step.name}: {report.message}")
        if not report.has_errors:
            if report.pods_checked:
                log.debug(f"{step.name}: {len(report.pods_checked)} 个 pod 近期日志无错误")
            return
        for pod, count in report.count_by_source().items():
            log.warning(f"{step.name}: {pod} 近期日志中发现 {count} 处疑似错误")
        for finding in report.findings[:MAX_FINDINGS_SHOWN]:
            log.debug(f"  [{finding.source}] {finding.line}")
