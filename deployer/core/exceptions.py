"""统一异常体系

所有业务异常继承 DeployerError，替代散落的 ValueError / RuntimeError。
CLI 层可据此输出友好提示，步骤执行器可据此将异常归一化为失败结果。
"""

from __future__ import annotations


class DeployerError(Exception):
    """部署器基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(DeployerError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class PlanError(DeployerError):
    """部署计划定义无效（重名步骤、前置步骤缺失或顺序错误）"""

    code = "PLAN_ERROR"


class PreconditionError(DeployerError):
    """步骤开始前依赖的资源不存在

    message 中应指明需要先执行的前置步骤。
    """

    code = "PRECONDITION_FAILED"

    def __init__(self, message: str, prerequisite: str = "") -> None:
        super().__init__(message)
        self.prerequisite = prerequisite


class ExecutionError(DeployerError):
    """外部命令（helm / kubectl）执行失败"""

    code = "EXECUTION_ERROR"


class StepTimeoutError(DeployerError):
    """等待组件就绪超时"""

    code = "STEP_TIMEOUT"
