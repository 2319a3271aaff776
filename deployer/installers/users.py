"""初始用户开通

在 Lightning Server driver pod 内执行 dev-account.sh 创建初始账号。
"""

from __future__ import annotations

import logging
import shlex

from deployer.clients.kubectl import KubectlClient
from deployer.core.config import Config
from deployer.core.log_checker import KeywordRules
from deployer.core.models import DiagnosticReport, InstallResult

logger = logging.getLogger(__name__)

DRIVER_SELECTOR = "app=lightning-server-driver"
SCRIPT_DIR = "/home/zetaris/lightning/bin"
SCRIPT_NAME = "dev-account.sh"
DRIVER_READY_TIMEOUT = 300


class UserProvisioningInstaller:
    name = "user-provisioning"
    display_name = "初始用户"

    def __init__(
        self, kubectl: KubectlClient | None = None, rules: KeywordRules | None = None,
    ) -> None:
        self.kubectl = kubectl or KubectlClient()
        self.rules = rules or KeywordRules()

    def _driver_pod(self, config: Config) -> str:
        pods = self.kubectl.get_pods(config.namespace, DRIVER_SELECTOR)
        return pods[0].name if pods else ""

    def install(self, config: Config) -> InstallResult:
        config.require("init_email", "init_password", "init_org")
        ns = config.namespace

        logger.info("等待 lightning-server-driver pod 就绪...")
        w = self.kubectl.wait_ready(ns, DRIVER_SELECTOR, DRIVER_READY_TIMEOUT)
        if not w.success:
            return InstallResult.fail(
                f"lightning-server-driver pod 未在 {DRIVER_READY_TIMEOUT} 秒内就绪"
            )
        pod = self._driver_pod(config)
        if not pod:
            return InstallResult.fail("未找到 lightning-server-driver pod")

        script = f"{SCRIPT_DIR}/{SCRIPT_NAME}"
        if not self.kubectl.exec(pod, ns, ["test", "-f", script]).success:
            return InstallResult.fail(f"pod {pod} 中不存在 {script}")

        args = " ".join(shlex.quote(v) for v in (config.init_email, config.init_password, config.init_org))
        logger.info("为 %s (%s) 创建账号", config.init_email, config.init_org)
        r = self.kubectl.exec(pod, ns, ["bash", "-c", f"cd {SCRIPT_DIR}/ && ./{SCRIPT_NAME} {args}"])
        if not r.success:
            return InstallResult.fail(
                f"创建用户 {config.init_email} 失败: {r.error_text(300)}，"
                f"可执行 kubectl logs -n {ns} {pod} 查看详情"
            )
        return InstallResult.ok(f"用户 {config.init_email} 已创建", pod=pod)

    def verify(self, config: Config) -> InstallResult:
        pod = self._driver_pod(config)
        if not pod:
            return InstallResult.fail("未找到 lightning-server-driver pod")
        return InstallResult.ok(f"driver pod {pod} 可用于账号管理")

    def collect_diagnostics(self, config: Config) -> DiagnosticReport:
        report = DiagnosticReport(component=self.name)
        pod = self._driver_pod(config)
        if not pod:
            report.message = "未找到 lightning-server-driver pod"
            return report
        r = self.kubectl.logs(pod, config.namespace, tail=config.diagnostics_tail)
        if not r.success:
            report.message = f"无法读取日志: {pod}"
            return report
        report.pods_checked.append(pod)
        report.findings = self.rules.classifier_for(self.name).classify(
            r.stdout.splitlines(), source=pod,
        )
        return report

    def cleanup(self, config: Config) -> None:
        logger.info("用户账号不随部署清理，如需删除请在 Lightning 中操作")
