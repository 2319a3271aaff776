"""部署编排模块

- runner.py: 单步骤执行器
- orchestrator.py: 线性编排器
- steps.py: 默认部署计划
"""

from deployer.services.orchestrator.orchestrator import Orchestrator
from deployer.services.orchestrator.runner import StepRunner
from deployer.services.orchestrator.steps import DEFAULT_ORDER, build_default_plan

__all__ = [
    "DEFAULT_ORDER",
    "Orchestrator",
    "StepRunner",
    "build_default_plan",
]
