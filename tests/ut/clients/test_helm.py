"""HelmClient 单元测试"""

from __future__ import annotations

import pytest

from deployer.clients.helm import HelmClient, parse_version
from deployer.core.exceptions import ExecutionError


class TestParseVersion:
    @pytest.mark.parametrize("text,expected", [
        ("v3.12.3+g3a31588", (3, 12, 3)),
        ("v3.10", (3, 10, 0)),
        ("Client: v2.17.0+ga690bad", (2, 17, 0)),
        ("", None),
        ("garbage", None),
    ])
    def test_parse(self, text, expected) -> None:
        assert parse_version(text) == expected


class TestHelmClient:
    def test_version_strips_client_prefix(self, fake_executor) -> None:
        fake_executor.on("helm version", stdout="Client: v2.17.0\n")
        assert HelmClient(fake_executor).version() == "v2.17.0"

    def test_version_missing_binary(self, fake_executor) -> None:
        fake_executor.on("helm version", returncode=127, stderr="命令不存在: helm")
        assert HelmClient(fake_executor).version() == ""

    def test_release_exists(self, fake_executor) -> None:
        fake_executor.on("helm list -n zetaris -q", stdout="postgres\nlightning-server\n")
        h = HelmClient(fake_executor)
        assert h.release_exists("postgres", "zetaris")
        assert not h.release_exists("lightning", "zetaris")

    def test_upgrade_install_args(self, fake_executor) -> None:
        HelmClient(fake_executor).upgrade_install(
            "spark-operator", "spark-operator/spark-operator", "spark-operator",
            values={"webhook.enable": "true"}, timeout_minutes=10,
            version="1.2.15", create_namespace=True,
        )
        assert fake_executor.calls == [
            "helm upgrade --install spark-operator spark-operator/spark-operator "
            "-n spark-operator --version 1.2.15 --create-namespace "
            "--set webhook.enable=true --timeout=10m --wait"
        ]

    def test_repo_update_failure_raises(self, fake_executor) -> None:
        fake_executor.on("helm repo update", returncode=1, stderr="network down")
        with pytest.raises(ExecutionError, match="helm repo update失败"):
            HelmClient(fake_executor).repo_update()
