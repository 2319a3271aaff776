"""部署编排器 - 按固定顺序执行计划

状态机: NOT_STARTED → RUNNING(i) → SUCCEEDED | FAILED
- 非可选步骤成功或任何可选步骤结束后前进
- 非可选步骤失败立即进入 FAILED，后续步骤不再调用
- 不做自动回滚，已安装的组件保持原样，清理需显式执行
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from deployer.core.models import (
    DeploymentReport,
    RunState,
    RunStatus,
    StepOutcome,
    StepStatus,
)
from deployer.services.orchestrator.runner import StepRunner

if TYPE_CHECKING:
    from deployer.core.config import Config
    from deployer.core.deploy_log import DeploymentLog
    from deployer.core.plan import DeploymentPlan

logger = logging.getLogger(__name__)


class Orchestrator:
    """线性部署编排器（遇首个硬失败即中止）"""

    def __init__(self, runner: StepRunner | None = None) -> None:
        self.runner = runner or StepRunner()

    def run(
        self, plan: DeploymentPlan, config: Config, log: DeploymentLog,
    ) -> DeploymentReport:
        plan.validate()

        state = RunState()
        report = DeploymentReport(
            state=state, log_path=str(log.path) if log.path else "",
        )
        enabled = plan.enabled_steps
        state.start()
        log.info(f"开始部署: 环境={config.environment} 命名空间={config.namespace} "
                 f"共 {len(enabled)} 个步骤")

        position = 0
        for step in plan.steps:
            if not step.enabled:
                log.info(f"跳过已禁用步骤: {step.name}")
                report.outcomes.append(StepOutcome(
                    name=step.name, status=StepStatus.SKIPPED,
                    message="已禁用", optional=step.optional,
                ))
                continue
            position += 1
            outcome = self.runner.run(
                step, config, log, state=state, index=position, total=len(enabled),
            )
            report.outcomes.append(outcome)
            if outcome.status == StepStatus.FAILED:
                state.finish(RunStatus.FAILED, failed_step=step.name)
                break
        else:
            state.finish(RunStatus.SUCCEEDED)

        warnings = [o.name for o in report.outcomes if o.status == StepStatus.WARNING]
        if warnings:
            log.warning(f"以下可选步骤未通过: {', '.join(warnings)}")
        if report.success:
            log.success("部署完成")
        else:
            log.error(f"部署失败，失败步骤: {state.failed_step}")
        log.summary(state.status.value, state.duration, state.failed_step)
        return report
