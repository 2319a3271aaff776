"""集群级 Operator 安装器：Spark Operator、cert-manager

两者安装到独立命名空间，清理时额外删除 CRD 与命名空间。
日志关键字使用 error / failed / panic。
"""

from __future__ import annotations

import logging

from deployer.core.config import Config
from deployer.core.log_checker import OPERATOR_KEYWORDS
from deployer.core.models import InstallResult
from deployer.installers.base import HelmComponentInstaller, ReleaseSpec

logger = logging.getLogger(__name__)

SPARK_CRDS = (
    "sparkapplications.sparkoperator.k8s.io",
    "sparkscheduledapplications.sparkoperator.k8s.io",
)

CERT_MANAGER_CRDS = (
    "certificates.cert-manager.io",
    "certificaterequests.cert-manager.io",
    "issuers.cert-manager.io",
    "clusterissuers.cert-manager.io",
    "orders.acme.cert-manager.io",
    "challenges.acme.cert-manager.io",
)

# verify 时必须存在的 cert-manager CRD
CERT_MANAGER_REQUIRED_CRDS = (
    "certificates.cert-manager.io",
    "issuers.cert-manager.io",
    "clusterissuers.cert-manager.io",
)


class SparkOperatorInstaller(HelmComponentInstaller):
    name = "spark-operator"
    display_name = "Spark Operator"

    def release_spec(self, config: Config) -> ReleaseSpec:
        return ReleaseSpec(
            release="spark-operator",
            chart="spark-operator/spark-operator",
            namespace="spark-operator",
            selector="app.kubernetes.io/name=spark-operator",
            helm_timeout_minutes=10,
            ready_timeout=300,
            version="1.2.15",
            create_namespace=True,
            values={"webhook.enable": "true"},
            owned_kinds=(),
            crds=SPARK_CRDS,
            delete_namespace=True,
            keywords=OPERATOR_KEYWORDS,
        )


class CertManagerInstaller(HelmComponentInstaller):
    name = "cert-manager"
    display_name = "cert-manager"

    def release_spec(self, config: Config) -> ReleaseSpec:
        return ReleaseSpec(
            release="cert-manager",
            chart="jetstack/cert-manager",
            namespace="cert-manager",
            selector="app.kubernetes.io/name=cert-manager",
            helm_timeout_minutes=10,
            ready_timeout=300,
            version="v1.7.0",
            values={"installCRDs": "true"},
            owned_kinds=(),
            crds=CERT_MANAGER_CRDS,
            delete_namespace=True,
            keywords=OPERATOR_KEYWORDS,
        )

    def extra_verify(self, config: Config, spec: ReleaseSpec) -> InstallResult | None:
        present = set(self.kubectl.list_crds("cert-manager.io"))
        missing = [c for c in CERT_MANAGER_REQUIRED_CRDS if c not in present]
        if missing:
            return InstallResult.fail(f"cert-manager CRD 不完整，缺少: {', '.join(missing)}")
        return None

    def extra_cleanup(self, config: Config, spec: ReleaseSpec) -> None:
        # CRD 删除前先清掉其实例，避免 finalizer 阻塞
        for kind, all_ns in (
            ("certificates", True), ("issuers", True), ("clusterissuers", False),
        ):
            r = self.kubectl.delete_all(kind, all_namespaces=all_ns)
            if not r.success:
                logger.debug("删除 %s 实例失败: %s", kind, r.error_text())
