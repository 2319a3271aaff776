"""组件安装器

按平台依赖划分：
- bootstrap.py: Helm 引导
- cluster.py: 命名空间 / 服务账号
- postgres.py: PostgreSQL
- operators.py: Spark Operator / cert-manager
- search.py: OpenSearch / Lightning Solr
- lightning.py: Lightning Server / API / GUI / Zeppelin
- ai.py: Private AI / DigiAvatar
- airflow.py: Airflow
- users.py: 初始用户开通
- smoke.py: 冒烟测试（可选步骤）
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from deployer.installers.ai import DigiAvatarInstaller, PrivateAiInstaller
from deployer.installers.airflow import AirflowInstaller
from deployer.installers.bootstrap import HelmBootstrapInstaller
from deployer.installers.cluster import ClusterSetupInstaller
from deployer.installers.lightning import (
    LightningApiInstaller,
    LightningGuiInstaller,
    LightningServerInstaller,
    LightningZeppelinInstaller,
)
from deployer.installers.operators import CertManagerInstaller, SparkOperatorInstaller
from deployer.installers.postgres import PostgresInstaller
from deployer.installers.search import OpenSearchInstaller, SolrInstaller
from deployer.installers.smoke import (
    ApiSmokeTest,
    CertManagerSmokeTest,
    ServerSmokeTest,
    SmokeTest,
    SolrSmokeTest,
    SparkSmokeTest,
)
from deployer.installers.users import UserProvisioningInstaller

if TYPE_CHECKING:
    from deployer.clients.helm import HelmClient
    from deployer.clients.kubectl import KubectlClient
    from deployer.core.log_checker import KeywordRules
    from deployer.core.protocols import ComponentInstaller

HELM_COMPONENTS = (
    PostgresInstaller,
    SparkOperatorInstaller,
    CertManagerInstaller,
    OpenSearchInstaller,
    SolrInstaller,
    LightningServerInstaller,
    LightningApiInstaller,
    LightningGuiInstaller,
    LightningZeppelinInstaller,
    PrivateAiInstaller,
    DigiAvatarInstaller,
    AirflowInstaller,
)

SMOKE_TESTS = (
    SparkSmokeTest,
    CertManagerSmokeTest,
    SolrSmokeTest,
    ServerSmokeTest,
    ApiSmokeTest,
)


def build_installers(
    kubectl: KubectlClient, helm: HelmClient, rules: KeywordRules,
) -> dict[str, ComponentInstaller]:
    """按名称构建全部组件安装器（不含冒烟测试）"""
    installers: dict[str, ComponentInstaller] = {
        HelmBootstrapInstaller.name: HelmBootstrapInstaller(helm),
        ClusterSetupInstaller.name: ClusterSetupInstaller(kubectl),
    }
    for cls in HELM_COMPONENTS:
        installers[cls.name] = cls(kubectl, helm, rules)
    installers[UserProvisioningInstaller.name] = UserProvisioningInstaller(kubectl, rules)
    return installers


def build_smoke_tests(kubectl: KubectlClient) -> dict[str, SmokeTest]:
    """按被测组件名构建冒烟测试"""
    return {cls.target: cls(kubectl) for cls in SMOKE_TESTS}


__all__ = [
    "HELM_COMPONENTS",
    "SMOKE_TESTS",
    "build_installers",
    "build_smoke_tests",
]
