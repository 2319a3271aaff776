"""集群环境准备：前置检查、命名空间、共享服务账号

服务账号预先带上 Helm 归属标签与注解，随后 lightning-server release
可以直接接管它，不会因资源已存在而冲突。
"""

from __future__ import annotations

import logging

from deployer.clients.kubectl import KubectlClient
from deployer.core.config import Config
from deployer.core.models import DiagnosticReport, InstallResult

logger = logging.getLogger(__name__)

SA_OWNER_RELEASE = "lightning-server"
CERT_MANAGER_NAMESPACE = "cert-manager"
CERT_MANAGER_NS_LABELS = {"certmanager.k8s.io/disable-validation": "true"}


class ClusterSetupInstaller:
    name = "cluster-setup"
    display_name = "集群环境"

    def __init__(self, kubectl: KubectlClient | None = None) -> None:
        self.kubectl = kubectl or KubectlClient()

    def install(self, config: Config) -> InstallResult:
        if not self.kubectl.cluster_info():
            return InstallResult.fail("无法连接 Kubernetes 集群，请检查 kubectl 配置")
        if config.storage_class and not self.kubectl.storage_class_exists(config.storage_class):
            logger.warning("存储类 %s 不存在，依赖持久卷的组件可能无法启动", config.storage_class)

        created: list[str] = []
        for ns in config.all_namespaces:
            if self.kubectl.namespace_exists(ns):
                logger.debug("命名空间已存在: %s", ns)
                continue
            r = self.kubectl.create_namespace(ns)
            if not r.success:
                return InstallResult.fail(f"创建命名空间 {ns} 失败: {r.error_text()}")
            logger.info("已创建命名空间: %s", ns)
            created.append(f"namespace/{ns}")

        sa, ns = config.service_account, config.namespace
        if not self.kubectl.service_account_exists(sa, ns):
            r = self.kubectl.create_service_account(sa, ns)
            if not r.success:
                return InstallResult.fail(f"创建服务账号 {sa} 失败: {r.error_text()}")
            logger.info("已创建服务账号: %s/%s", ns, sa)
            created.append(f"serviceaccount/{sa}")

        r = self.kubectl.label_service_account(sa, ns, {"app.kubernetes.io/managed-by": "Helm"})
        if r.success:
            r = self.kubectl.annotate_service_account(sa, ns, {
                "meta.helm.sh/release-name": SA_OWNER_RELEASE,
                "meta.helm.sh/release-namespace": ns,
            })
        if not r.success:
            return InstallResult.fail(f"为服务账号 {sa} 添加 Helm 元数据失败: {r.error_text()}")

        if CERT_MANAGER_NAMESPACE in config.all_namespaces:
            r = self.kubectl.label_namespace(CERT_MANAGER_NAMESPACE, CERT_MANAGER_NS_LABELS)
            if not r.success:
                return InstallResult.fail(f"标记命名空间 {CERT_MANAGER_NAMESPACE} 失败: {r.error_text()}")

        if not created:
            return InstallResult.already_healthy("命名空间与服务账号均已存在")
        return InstallResult.ok(f"集群环境已准备（新建 {len(created)} 项）", created=created)

    def verify(self, config: Config) -> InstallResult:
        missing = [ns for ns in config.all_namespaces if not self.kubectl.namespace_exists(ns)]
        if missing:
            return InstallResult.fail(f"命名空间不存在: {', '.join(missing)}")
        if not self.kubectl.service_account_exists(config.service_account, config.namespace):
            return InstallResult.fail(
                f"服务账号 {config.service_account} 不存在于命名空间 {config.namespace}"
            )
        return InstallResult.ok("命名空间与服务账号已就绪")

    def collect_diagnostics(self, config: Config) -> DiagnosticReport:
        return DiagnosticReport(component=self.name, message="无 pod 日志")

    def cleanup(self, config: Config) -> None:
        for ns in reversed(config.all_namespaces):
            r = self.kubectl.delete_namespace(ns)
            if r.success:
                logger.info("已删除命名空间: %s", ns)
            else:
                logger.warning("删除命名空间 %s 失败: %s", ns, r.error_text())
