"""Helm 引导

检查 helm 客户端版本与集群连通性，登记并刷新 chart 仓库。
helm 二进制本身的安装不在本工具范围内。
"""

from __future__ import annotations

import logging

from deployer.clients.helm import HelmClient, parse_version
from deployer.core.config import Config
from deployer.core.models import DiagnosticReport, InstallResult

logger = logging.getLogger(__name__)

MIN_HELM_VERSION = (3, 10, 0)


def _fmt(version: tuple[int, int, int]) -> str:
    return "v" + ".".join(str(p) for p in version)


class HelmBootstrapInstaller:
    name = "helm-bootstrap"
    display_name = "Helm"

    def __init__(self, helm: HelmClient | None = None) -> None:
        self.helm = helm or HelmClient()

    def _check_client(self) -> InstallResult:
        raw = self.helm.version()
        if not raw:
            return InstallResult.fail(
                f"未找到 helm 客户端，请先安装 helm ({_fmt(MIN_HELM_VERSION)} 或更高版本)"
            )
        version = parse_version(raw)
        if version is None or version < MIN_HELM_VERSION:
            return InstallResult.fail(
                f"helm 版本 {raw} 低于要求的 {_fmt(MIN_HELM_VERSION)}，请先升级 helm"
            )
        if not self.helm.can_list_all():
            return InstallResult.fail("helm 无法访问集群，请检查 kubeconfig 与集群连通性")
        return InstallResult.ok(f"helm {raw} 可用", version=raw)

    def install(self, config: Config) -> InstallResult:
        check = self._check_client()
        if not check.success:
            return check
        logger.info("helm 版本满足要求: %s", check.details.get("version"))

        added: list[str] = []
        urls = config.helm_repo_urls()
        for name, raw in config.helm_repos.items():
            if "{token}" in raw and not config.chart_token:
                logger.warning("未配置 chart_token (ZETARIS_TOKEN)，跳过私有仓库 %s", name)
                continue
            r = self.helm.repo_add(name, urls[name])
            if r.success:
                added.append(name)
            else:
                logger.warning("添加仓库 %s 失败: %s", name, r.error_text(200))

        self.helm.repo_update()
        return InstallResult.ok(
            f"helm 仓库已就绪（{len(added)}/{len(config.helm_repos)}）", repos=added,
        )

    def verify(self, config: Config) -> InstallResult:
        return self._check_client()

    def collect_diagnostics(self, config: Config) -> DiagnosticReport:
        return DiagnosticReport(component=self.name, message="无 pod 日志")

    def cleanup(self, config: Config) -> None:
        logger.info("helm 引导无需清理")
