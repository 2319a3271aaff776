"""服务容器 — 统一依赖注入

CLI 通过容器获取执行器、集群客户端、日志关键字规则、安装器与编排器，
而非直接 import 构造。同一容器内的实例共享（同一个执行器、同一组客户端）。

依赖关系图（→ 表示依赖）:
  kubectl / helm → executor
  installers     → kubectl, helm, keyword_rules
  smoke_tests    → kubectl

用法:
    container = ServiceContainer(config=Config.from_file("configs/deploy.yml"))
    plan = container.plan()
    report = container.orchestrator.run(plan, container.config, log)

    # 测试时注入假执行器
    container = ServiceContainer(config=cfg, executor=FakeExecutor())
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from deployer.clients.helm import HelmClient
    from deployer.clients.kubectl import KubectlClient
    from deployer.core.config import Config
    from deployer.core.log_checker import KeywordRules
    from deployer.core.plan import DeploymentPlan
    from deployer.core.protocols import ComponentInstaller
    from deployer.installers.smoke import SmokeTest
    from deployer.services.orchestrator import Orchestrator
    from deployer.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(
        self, config: Config | None = None, executor: CommandExecutor | None = None,
    ) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from deployer.core.config import get_config
            config = get_config()
        self._config = config
        if executor is not None:
            self._instances["executor"] = executor

    @property
    def config(self) -> Config:
        return self._config

    # ---- 基础设施 ----

    @property
    def executor(self) -> CommandExecutor:
        if "executor" not in self._instances:
            from deployer.utils.shell import get_executor
            self._instances["executor"] = get_executor()
        return self._instances["executor"]  # type: ignore[return-value]

    @property
    def kubectl(self) -> KubectlClient:
        if "kubectl" not in self._instances:
            from deployer.clients.kubectl import KubectlClient
            self._instances["kubectl"] = KubectlClient(
                executor=self.executor, binary=self._config.kubectl_bin,
            )
        return self._instances["kubectl"]  # type: ignore[return-value]

    @property
    def helm(self) -> HelmClient:
        if "helm" not in self._instances:
            from deployer.clients.helm import HelmClient
            self._instances["helm"] = HelmClient(
                executor=self.executor, binary=self._config.helm_bin,
            )
        return self._instances["helm"]  # type: ignore[return-value]

    @property
    def keyword_rules(self) -> KeywordRules:
        if "keyword_rules" not in self._instances:
            from deployer.core.log_checker import KeywordRules
            self._instances["keyword_rules"] = KeywordRules(
                rules_file=self._config.log_keywords_file,
            )
        return self._instances["keyword_rules"]  # type: ignore[return-value]

    # ---- 安装器 / 编排 ----

    @property
    def installers(self) -> dict[str, ComponentInstaller]:
        if "installers" not in self._instances:
            from deployer.installers import build_installers
            self._instances["installers"] = build_installers(
                self.kubectl, self.helm, self.keyword_rules,
            )
        return self._instances["installers"]  # type: ignore[return-value]

    @property
    def smoke_tests(self) -> dict[str, SmokeTest]:
        if "smoke_tests" not in self._instances:
            from deployer.installers import build_smoke_tests
            self._instances["smoke_tests"] = build_smoke_tests(self.kubectl)
        return self._instances["smoke_tests"]  # type: ignore[return-value]

    @property
    def orchestrator(self) -> Orchestrator:
        if "orchestrator" not in self._instances:
            from deployer.services.orchestrator import Orchestrator
            self._instances["orchestrator"] = Orchestrator()
        return self._instances["orchestrator"]  # type: ignore[return-value]

    def plan(self) -> DeploymentPlan:
        """按当前配置组装默认计划（每次调用新建）"""
        from deployer.services.orchestrator import build_default_plan
        return build_default_plan(self.installers, self.smoke_tests, self._config)

    def installer(self, name: str) -> ComponentInstaller | None:
        """按步骤名查找安装器，冒烟测试步骤名同样可查"""
        if name in self.installers:
            return self.installers[name]
        for smoke in self.smoke_tests.values():
            if smoke.name == name:
                return smoke
        return None

