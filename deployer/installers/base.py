"""Helm 组件安装器基类

大多数平台组件的生命周期相同，只有常量不同：
  install  - 已有 release 且有就绪 pod 则跳过（仍执行 post_install）；否则 upgrade --install 并等待就绪
  verify   - 命名空间、就绪 pod、服务入口、共享服务账号
  diagnose - 读取近期 pod 日志，按关键字分类
  cleanup  - 卸载 release，删除按标签归属的 PVC / Secret / Ingress

子类只需提供 release_spec(config)（含 --set 覆盖值），
必要时覆盖 settle / post_install / extra_verify / extra_cleanup。
超时抛 StepTimeoutError，由步骤执行器归一化为失败。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from deployer.clients.helm import HelmClient
from deployer.clients.kubectl import KubectlClient, is_not_found
from deployer.core.config import Config
from deployer.core.exceptions import ConfigError, PreconditionError, StepTimeoutError
from deployer.core.log_checker import DEFAULT_KEYWORDS, KeywordRules
from deployer.core.models import DiagnosticReport, InstallResult

logger = logging.getLogger(__name__)

CLUSTER_SETUP_STEP = "cluster-setup"


@dataclass
class ReleaseSpec:
    """单个组件的 Helm release 常量，构造时校验"""

    release: str
    chart: str
    namespace: str
    selector: str
    helm_timeout_minutes: int = 10
    ready_timeout: int = 300  # 秒
    version: str = ""
    create_namespace: bool = False
    values: dict[str, str] = field(default_factory=dict)
    service_account: str = ""  # 非空则安装前检查、验证时检查
    service_match: str = ""  # 入口服务名需包含的子串，空表示不检查
    owned_kinds: tuple[str, ...] = ("pvc", "secret", "ingress")
    owned_selector: str = ""
    crds: tuple[str, ...] = ()
    delete_namespace: bool = False
    keywords: tuple[str, ...] = DEFAULT_KEYWORDS

    def __post_init__(self) -> None:
        missing = [
            n for n in ("release", "chart", "namespace", "selector")
            if not getattr(self, n)
        ]
        if missing:
            raise ConfigError(f"release 定义缺少字段: {', '.join(missing)}")
        if self.helm_timeout_minutes <= 0 or self.ready_timeout <= 0:
            raise ConfigError(f"{self.release}: 超时必须为正数")
        # --set 的值一律按字符串传递
        self.values = {k: "" if v is None else str(v) for k, v in self.values.items()}
        if not self.owned_selector:
            self.owned_selector = self.selector


class HelmComponentInstaller:
    """通用 Helm 组件安装器"""

    name: str = ""
    display_name: str = ""

    def __init__(
        self,
        kubectl: KubectlClient | None = None,
        helm: HelmClient | None = None,
        rules: KeywordRules | None = None,
    ) -> None:
        self.kubectl = kubectl or KubectlClient()
        self.helm = helm or HelmClient()
        self.rules = rules or KeywordRules()

    @property
    def label(self) -> str:
        return self.display_name or self.name

    # =========================================================================
    # 子类扩展点
    # =========================================================================

    def release_spec(self, config: Config) -> ReleaseSpec:
        raise NotImplementedError

    def post_install(self, config: Config, spec: ReleaseSpec) -> InstallResult | None:
        """就绪后的附加动作，返回失败结果即视为安装失败

        release 已健康而跳过安装时同样执行，实现必须幂等。
        """
        return None

    def settle(self, config: Config, spec: ReleaseSpec) -> bool:
        """就绪后等待组件完成初始化，默认无需等待"""
        return True

    def extra_verify(self, config: Config, spec: ReleaseSpec) -> InstallResult | None:
        return None

    def extra_cleanup(self, config: Config, spec: ReleaseSpec) -> None:
        return None

    # =========================================================================
    # install
    # =========================================================================

    def install(self, config: Config) -> InstallResult:
        spec = self.release_spec(config)
        ns = spec.namespace

        if self.helm.release_exists(spec.release, ns):
            ready = self.kubectl.ready_pods(ns, spec.selector)
            if ready:
                logger.info("%s 已存在且有 %d 个就绪 pod，跳过安装", self.label, len(ready))
                extra = self.post_install(config, spec)
                if extra is not None and not extra.success:
                    return extra
                return InstallResult.already_healthy(
                    f"{self.label} 已安装（{len(ready)} 个就绪 pod）"
                )
            logger.warning("%s release 已存在但没有就绪 pod，原地升级", self.label)

        self.check_preconditions(config, spec)

        r = self.helm.upgrade_install(
            spec.release, spec.chart, ns,
            values=spec.values,
            timeout_minutes=spec.helm_timeout_minutes,
            version=spec.version,
            create_namespace=spec.create_namespace,
        )
        if r.timed_out:
            raise StepTimeoutError(
                f"{self.label} helm 安装超时（{spec.helm_timeout_minutes}分钟）"
            )
        if not r.success:
            return InstallResult.fail(f"{self.label} helm 安装失败: {r.error_text()}")

        logger.info("等待 %s pod 就绪 (%s, %ds)", self.label, spec.selector, spec.ready_timeout)
        w = self.kubectl.wait_ready(ns, spec.selector, spec.ready_timeout)
        if w.timed_out:
            raise StepTimeoutError(f"{self.label} 等待 pod 就绪超时（{spec.ready_timeout}秒）")
        if not w.success:
            return InstallResult.fail(
                f"{self.label} pod 未在 {spec.ready_timeout} 秒内就绪: {w.error_text(200)}"
            )

        if not self.settle(config, spec):
            return InstallResult.fail(f"{self.label} 初始化未在 {config.settle_timeout} 秒内完成")

        extra = self.post_install(config, spec)
        if extra is not None and not extra.success:
            return extra
        return InstallResult.ok(f"{self.label} 安装完成", release=spec.release)

    def check_preconditions(self, config: Config, spec: ReleaseSpec) -> None:
        """安装前检查，缺失时抛 PreconditionError 并指明前置步骤"""
        sa = spec.service_account
        if sa and not self.kubectl.service_account_exists(sa, spec.namespace):
            raise PreconditionError(
                f"服务账号 {sa} 不存在于命名空间 {spec.namespace}，"
                f"请先执行步骤 {CLUSTER_SETUP_STEP}",
                prerequisite=CLUSTER_SETUP_STEP,
            )

    # =========================================================================
    # verify
    # =========================================================================

    def verify(self, config: Config) -> InstallResult:
        spec = self.release_spec(config)
        ns = spec.namespace
        if not self.kubectl.namespace_exists(ns):
            return InstallResult.fail(f"{self.label} 命名空间 {ns} 不存在")

        ready = self.kubectl.ready_pods(ns, spec.selector)
        if not ready:
            return InstallResult.fail(f"{self.label} 没有运行中且就绪的 pod ({spec.selector})")

        if spec.service_match:
            services = [s for s in self.kubectl.service_names(ns) if spec.service_match in s]
            if not services:
                return InstallResult.fail(f"{self.label} 服务入口不存在 ({spec.service_match})")

        if spec.service_account and not self.kubectl.service_account_exists(
            spec.service_account, ns,
        ):
            return InstallResult.fail(f"{self.label} 依赖的服务账号 {spec.service_account} 不存在")

        extra = self.extra_verify(config, spec)
        if extra is not None and not extra.success:
            return extra
        return InstallResult.ok(
            f"{self.label} 验证通过（{len(ready)} 个就绪 pod）",
            pods=[p.name for p in ready],
        )

    # =========================================================================
    # diagnostics
    # =========================================================================

    def collect_diagnostics(self, config: Config) -> DiagnosticReport:
        spec = self.release_spec(config)
        report = DiagnosticReport(component=self.name)
        pods = self.kubectl.get_pods(spec.namespace, spec.selector)
        if not pods:
            report.message = f"未找到 {self.label} pod"
            return report

        classifier = self.rules.classifier_for(self.name, spec.keywords)
        unreadable: list[str] = []
        for pod in pods:
            r = self.kubectl.logs(pod.name, spec.namespace, tail=config.diagnostics_tail)
            if not r.success:
                unreadable.append(pod.name)
                continue
            report.pods_checked.append(pod.name)
            report.findings.extend(classifier.classify(r.stdout.splitlines(), source=pod.name))

        if unreadable:
            report.message = f"无法读取日志: {', '.join(unreadable)}"
        return report

    # =========================================================================
    # cleanup
    # =========================================================================

    def cleanup(self, config: Config) -> None:
        spec = self.release_spec(config)
        ns = spec.namespace
        logger.info("清理 %s ...", self.label)

        r = self.helm.uninstall(spec.release, ns)
        if r.success:
            logger.info("已卸载 release %s", spec.release)
        elif is_not_found(r):
            logger.info("release %s 不存在，跳过卸载", spec.release)
        else:
            logger.warning("卸载 release %s 失败: %s", spec.release, r.error_text())

        for kind in spec.owned_kinds:
            d = self.kubectl.delete_by_selector(kind, ns, spec.owned_selector)
            if not d.success:
                logger.warning("删除 %s (%s) 失败: %s", kind, spec.owned_selector, d.error_text())

        self.extra_cleanup(config, spec)

        for crd in spec.crds:
            d = self.kubectl.delete_crd(crd)
            if not d.success:
                logger.warning("删除 CRD %s 失败: %s", crd, d.error_text())

        if spec.delete_namespace:
            d = self.kubectl.delete_namespace(ns)
            if not d.success:
                logger.warning("删除命名空间 %s 失败: %s", ns, d.error_text())
        logger.info("%s 清理完成", self.label)
