"""默认部署计划

顺序固定：
  helm 引导 → 集群环境 → postgres → spark operator → cert-manager →
  opensearch → solr → lightning server → api → gui → zeppelin →
  private ai → digiavatar → [airflow] → 初始用户
冒烟测试作为可选步骤紧跟在被测组件之后。
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from deployer.core.plan import DeploymentPlan, Step

if TYPE_CHECKING:
    from deployer.core.config import Config
    from deployer.core.protocols import ComponentInstaller
    from deployer.installers.smoke import SmokeTest

# (步骤名, 前置步骤)
DEFAULT_ORDER: list[tuple[str, list[str]]] = [
    ("helm-bootstrap", []),
    ("cluster-setup", []),
    ("postgres", ["helm-bootstrap", "cluster-setup"]),
    ("spark-operator", ["helm-bootstrap"]),
    ("cert-manager", ["helm-bootstrap", "cluster-setup"]),
    ("opensearch", ["helm-bootstrap", "cluster-setup"]),
    ("solr", ["helm-bootstrap", "cluster-setup"]),
    ("lightning-server", ["postgres", "cluster-setup"]),
    ("lightning-api", ["lightning-server"]),
    ("lightning-gui", ["lightning-api"]),
    ("lightning-zeppelin", ["lightning-server"]),
    ("privateai", ["helm-bootstrap", "cluster-setup"]),
    ("digiavatar", ["helm-bootstrap", "cluster-setup"]),
    ("airflow", ["postgres", "cluster-setup"]),
    ("user-provisioning", ["lightning-server"]),
]


def build_default_plan(
    installers: dict[str, ComponentInstaller],
    smoke_tests: dict[str, SmokeTest],
    config: Config,
) -> DeploymentPlan:
    """按固定顺序组装计划

    airflow 受 config.enable_airflow 控制；冒烟测试受 config.run_smoke_tests 控制。
    """
    plan = DeploymentPlan()
    for name, requires in DEFAULT_ORDER:
        enabled = config.enable_airflow if name == "airflow" else True
        plan.add(Step(
            name=name, installer=installers[name],
            requires=list(requires), enabled=enabled,
        ))
        smoke = smoke_tests.get(name)
        if smoke is not None:
            plan.add(Step(
                name=smoke.name, installer=smoke, optional=True,
                requires=[name], enabled=config.run_smoke_tests,
            ))
    return plan
