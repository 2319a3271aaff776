"""冒烟测试

以可选步骤的形式挂在对应组件之后：失败只记 WARNING，不中止部署。
install 执行探测，verify 复用最近一次探测结果。
"""

from __future__ import annotations

import logging
import re

from deployer.clients.kubectl import KubectlClient
from deployer.core.config import Config
from deployer.core.models import DiagnosticReport, InstallResult
from deployer.installers.operators import SPARK_CRDS
from deployer.utils.waiting import poll_until

logger = logging.getLogger(__name__)

CURL_IMAGE = "curlimages/curl:latest"
BUSYBOX_IMAGE = "busybox:latest"
TEST_ISSUER = "test-selfsigned-issuer"

_HTTP_CODE_RE = re.compile(r"\b([1-5]\d\d)\b")


class SmokeTest:
    """冒烟测试基类"""

    name: str = ""
    target: str = ""  # 被测组件步骤名

    def __init__(self, kubectl: KubectlClient | None = None) -> None:
        self.kubectl = kubectl or KubectlClient()
        self._last: InstallResult | None = None

    def check(self, config: Config) -> InstallResult:
        raise NotImplementedError

    def install(self, config: Config) -> InstallResult:
        self._last = self.check(config)
        return self._last

    def verify(self, config: Config) -> InstallResult:
        """紧随 install 时复用其结果（仅一次），否则重新检查"""
        result, self._last = self._last, None
        return result if result is not None else self.check(config)

    def collect_diagnostics(self, config: Config) -> DiagnosticReport:
        return DiagnosticReport(component=self.name)

    def cleanup(self, config: Config) -> None:
        return None

    def _first_pod(self, namespace: str, selector: str) -> str:
        pods = self.kubectl.get_pods(namespace, selector)
        return pods[0].name if pods else ""


class ServerSmokeTest(SmokeTest):
    name = "lightning-server-smoke"
    target = "lightning-server"

    def check(self, config: Config) -> InstallResult:
        pod = self._first_pod(config.namespace, "app=lightning-server-driver")
        if not pod:
            return InstallResult.fail("未找到 lightning-server-driver pod")
        if not self.kubectl.exec(pod, config.namespace, ["pgrep", "-f", "java"]).success:
            return InstallResult.fail(f"{pod} 中没有运行 Java 进程")
        return InstallResult.ok(f"{pod} Java 进程运行中")


class ApiSmokeTest(SmokeTest):
    name = "lightning-api-smoke"
    target = "lightning-api"

    service = "lightning-api-svc"
    default_port = "8888"

    def check(self, config: Config) -> InstallResult:
        ns = config.namespace
        pod = self._first_pod(ns, "app=lightning-api")
        if not pod:
            return InstallResult.fail("未找到 lightning-api pod")
        if not self.kubectl.exec(pod, ns, ["pgrep", "-f", "java"]).success:
            return InstallResult.fail(f"{pod} 中没有运行 Java 进程")

        ip = self.kubectl.get_jsonpath("svc", self.service, "{.spec.clusterIP}", namespace=ns)
        if not ip:
            return InstallResult.fail(f"服务 {self.service} 不存在")
        port = self.kubectl.get_jsonpath("svc", self.service, "{.spec.ports[0].port}", namespace=ns)
        if not port.isdigit():
            port = self.default_port

        r = self.kubectl.run_oneshot(
            "test-lightning-api-connection", CURL_IMAGE, ns,
            ["curl", "-s", "-o", "/dev/null", "-w", "%{http_code}",
             "--connect-timeout", "10", "--max-time", "15",
             f"http://{ip}:{port}/api/v1.0/auth/refresh"],
        )
        m = _HTTP_CODE_RE.search(r.stdout)
        # 任何 2xx-5xx 响应都说明服务在监听
        if m and int(m.group(1)) >= 200:
            return InstallResult.ok(f"Lightning API 有响应 (HTTP {m.group(1)})")

        logger.warning("Lightning API HTTP 探测失败，改用端口探测")
        nc = self.kubectl.run_oneshot(
            "test-lightning-api-nc", BUSYBOX_IMAGE, ns, ["nc", "-z", "-w5", ip, port],
        )
        if nc.success:
            return InstallResult.ok(f"Lightning API 端口 {port} 可达")
        return InstallResult.fail(f"Lightning API 端口 {port} 不可达")


class SolrSmokeTest(SmokeTest):
    name = "solr-smoke"
    target = "solr"

    def check(self, config: Config) -> InstallResult:
        ns = config.namespace
        services = [s for s in self.kubectl.service_names(ns) if "lightning-solr" in s]
        if not services:
            return InstallResult.fail("Lightning Solr 服务不存在")
        url = f"http://{services[0]}.{ns}.svc.cluster.local:8983/solr/admin/info/system"
        r = self.kubectl.run_oneshot(
            "solr-test", CURL_IMAGE, ns,
            ["curl", "-s", "--connect-timeout", "10", "-X", "GET", url],
        )
        if not r.success:
            return InstallResult.fail(f"Lightning Solr 无响应: {r.error_text(200)}")
        return InstallResult.ok("Lightning Solr 有响应")


class CertManagerSmokeTest(SmokeTest):
    name = "cert-manager-smoke"
    target = "cert-manager"

    manifest = (
        "apiVersion: cert-manager.io/v1\n"
        "kind: ClusterIssuer\n"
        "metadata:\n"
        f"  name: {TEST_ISSUER}\n"
        "spec:\n"
        "  selfSigned: {}\n"
    )

    def _issuer_ready(self) -> bool:
        status = self.kubectl.get_jsonpath(
            "clusterissuer", TEST_ISSUER,
            '{.status.conditions[?(@.type=="Ready")].status}',
        )
        return "True" in status

    def check(self, config: Config) -> InstallResult:
        r = self.kubectl.apply_manifest(self.manifest)
        if not r.success:
            return InstallResult.fail(f"创建测试 ClusterIssuer 失败: {r.error_text(200)}")
        try:
            ready = poll_until(
                self._issuer_ready,
                timeout=config.settle_timeout,
                interval=config.poll_interval,
                label="测试 ClusterIssuer",
            )
        finally:
            self.kubectl.delete_manifest(self.manifest)
        if not ready:
            return InstallResult.fail("测试 ClusterIssuer 未就绪")
        return InstallResult.ok("cert-manager 可签发自签名证书")


class SparkSmokeTest(SmokeTest):
    name = "spark-operator-smoke"
    target = "spark-operator"

    def check(self, config: Config) -> InstallResult:
        found = [c for c in self.kubectl.list_crds("sparkoperator.k8s.io") if c in SPARK_CRDS]
        if not found:
            return InstallResult.fail("Spark Operator CRD 未安装")
        return InstallResult.ok(f"Spark Operator CRD 已安装 ({len(found)} 个)")
