"""HelmBootstrapInstaller 单元测试"""

from __future__ import annotations

import pytest

from deployer.clients.helm import HelmClient
from deployer.core.config import DEFAULT_HELM_REPOS
from deployer.core.exceptions import ExecutionError
from deployer.installers.bootstrap import HelmBootstrapInstaller


@pytest.fixture
def installer(fake_executor) -> HelmBootstrapInstaller:
    fake_executor.on("helm version", stdout="v3.12.3+g3a31588\n")
    return HelmBootstrapInstaller(HelmClient(fake_executor))


class TestClientCheck:
    def test_supported_version(self, installer) -> None:
        result = installer.verify(None)
        assert result.success
        assert result.details["version"] == "v3.12.3+g3a31588"

    def test_missing_helm(self, installer, fake_executor) -> None:
        fake_executor.on("helm version", returncode=127, stderr="命令不存在: helm")
        result = installer.verify(None)
        assert not result.success and "未找到 helm" in result.message

    def test_old_helm(self, installer, fake_executor) -> None:
        fake_executor.on("helm version", stdout="v3.9.4+gdbc6d8e\n")
        result = installer.verify(None)
        assert not result.success and "v3.10.0" in result.message

    def test_cluster_unreachable(self, installer, fake_executor) -> None:
        fake_executor.on("helm list --all-namespaces", returncode=1, stderr="Kubernetes cluster unreachable")
        assert not installer.verify(None).success


class TestRepos:
    def test_adds_all_repos_with_token(self, installer, fake_executor, config) -> None:
        result = installer.install(config)
        assert result.success
        assert len(result.details["repos"]) == len(DEFAULT_HELM_REPOS)
        assert fake_executor.called(
            "helm repo add helm-postgres "
            "https://tok@raw.githubusercontent.com/zetaris/openshift/main/postgres --force-update"
        )
        assert fake_executor.calls[-1] == "helm repo update"

    def test_private_repos_skipped_without_token(self, installer, fake_executor, config) -> None:
        config.chart_token = ""
        result = installer.install(config)
        assert result.success
        assert "helm-postgres" not in result.details["repos"]
        assert "jetstack" in result.details["repos"]
        assert not fake_executor.called("raw.githubusercontent.com")

    def test_repo_add_failure_is_warning(self, installer, fake_executor, config) -> None:
        fake_executor.on("repo add bitnami", returncode=1, stderr="timeout")
        result = installer.install(config)
        assert result.success
        assert "bitnami" not in result.details["repos"]

    def test_repo_update_failure_raises(self, installer, fake_executor, config) -> None:
        fake_executor.on("helm repo update", returncode=1, stderr="index unreachable")
        with pytest.raises(ExecutionError):
            installer.install(config)

    def test_install_stops_on_bad_client(self, installer, fake_executor, config) -> None:
        fake_executor.on("helm version", returncode=127)
        assert not installer.install(config).success
        assert not fake_executor.called("repo add")
