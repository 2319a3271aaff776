"""CLI 命令测试（CliRunner + 假命令执行器）"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from deployer.cli import main
from deployer.utils.logger import reset_logging
from deployer.utils.yaml_io import load_yaml, save_yaml

ALL_SERVICES = "\n".join(f"service/{s}" for s in (
    "postgres", "opensearch-cluster-master", "lightning-solr-svc", "lightning-server-svc",
    "lightning-api-svc", "lightning-gui-svc", "lightning-zeppelin-svc",
    "privateai-svc", "digiavatar-svc",
))
ALL_CRDS = "\n".join(
    f"customresourcedefinition.apiextensions.k8s.io/{c}" for c in (
        "certificates.cert-manager.io", "issuers.cert-manager.io",
        "clusterissuers.cert-manager.io", "sparkapplications.sparkoperator.k8s.io",
    )
)


@pytest.fixture
def cluster(fake_executor, make_pods, monkeypatch):
    """一个所有检查都能通过的假集群"""
    monkeypatch.setattr("deployer.utils.shell._default_executor", fake_executor)
    fake_executor.on("helm version", stdout="v3.12.3+g3a31588\n")
    fake_executor.on("get pods", stdout=make_pods("pod-0"))
    fake_executor.on("get services", stdout=ALL_SERVICES)
    fake_executor.on("get crd -o name", stdout=ALL_CRDS)
    fake_executor.on("-lqt", stdout=" metastore | postgres |\n auditlog | postgres |\n airflow | postgres |\n")
    yield fake_executor
    reset_logging()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "deploy.yml"
    save_yaml(path, {
        "ZETARIS_TOKEN": "tok",
        "DB_PASSWORD": "secret",
        "LIGHTNING_INIT_EMAIL": "admin@example.com",
        "LIGHTNING_INIT_PASSWORD": "pw",
        "LIGHTNING_INIT_ORG": "acme",
        "settle_timeout": 0,
        "poll_interval": 0,
        "log_dir": str(tmp_path / "logs"),
        "log_keywords_file": str(tmp_path / "none.yml"),
    })
    return path


class TestPlanCommand:
    def test_lists_steps(self, cluster, config_file) -> None:
        result = CliRunner().invoke(main, ["plan", "-c", str(config_file)])
        assert result.exit_code == 0, result.output
        assert "计划有效" in result.output
        airflow = [l for l in result.output.splitlines() if " airflow " in l][0]
        assert "[禁用]" in airflow
        assert "lightning-api-smoke" in result.output

    def test_with_airflow(self, cluster, config_file) -> None:
        result = CliRunner().invoke(main, ["plan", "-c", str(config_file), "--with-airflow"])
        airflow = [l for l in result.output.splitlines() if " airflow " in l][0]
        assert "[禁用]" not in airflow


class TestInstallCommand:
    def test_success(self, cluster, config_file, tmp_path) -> None:
        report_file = tmp_path / "report.yml"
        result = CliRunner().invoke(main, [
            "install", "-c", str(config_file), "--report", str(report_file),
        ])
        assert result.exit_code == 0, result.output
        assert "=== 部署摘要 ===" in result.output
        assert "结果: SUCCEEDED" in result.output
        assert cluster.called("./dev-account.sh admin@example.com pw acme")
        assert not cluster.called("upgrade --install airflow-ing")
        data = load_yaml(report_file)
        assert data["status"] == "SUCCEEDED"
        assert list((tmp_path / "logs").glob("deployment-*.log"))

    def test_failure_stops_and_exits_1(self, cluster, config_file) -> None:
        cluster.on("upgrade --install lightning-solr", returncode=1, stderr="chart not found")
        result = CliRunner().invoke(main, ["install", "-c", str(config_file), "--skip-smoke-tests"])
        assert result.exit_code == 1
        assert "失败步骤: solr" in result.output
        assert "日志文件:" in result.output
        assert not cluster.called("upgrade --install lightning-server")
        assert cluster.called("upgrade --install opensearch")

    def test_log_dir_override(self, cluster, config_file, tmp_path) -> None:
        other = tmp_path / "other-logs"
        result = CliRunner().invoke(main, [
            "install", "-c", str(config_file), "--skip-smoke-tests", "--log-dir", str(other),
        ])
        assert result.exit_code == 0, result.output
        assert list(other.glob("deployment-*.log"))

    def test_invalid_config_exits_1(self, cluster, tmp_path) -> None:
        path = tmp_path / "bad.yml"
        save_yaml(path, {"settle_timeout": "abc"})
        result = CliRunner().invoke(main, ["install", "-c", str(path)])
        assert result.exit_code == 1
        assert "❌" in result.output
        assert "settle_timeout" in result.output
        assert not cluster.called("helm version")


class TestComponentCommands:
    def test_verify(self, cluster, config_file) -> None:
        result = CliRunner().invoke(main, ["verify", "postgres", "-c", str(config_file)])
        assert result.exit_code == 0
        assert "✅ postgres:" in result.output

    def test_verify_failure(self, cluster, config_file) -> None:
        cluster.on("get pods", stdout='{"items": []}')
        result = CliRunner().invoke(main, ["verify", "solr", "-c", str(config_file)])
        assert result.exit_code == 1
        assert "❌ solr" in result.output

    def test_unknown_component(self, cluster, config_file) -> None:
        result = CliRunner().invoke(main, ["verify", "mysql", "-c", str(config_file)])
        assert result.exit_code == 2

    def test_diagnose(self, cluster, config_file) -> None:
        cluster.on("logs pod-0", stdout="ERROR connection reset\n")
        result = CliRunner().invoke(main, ["diagnose", "opensearch", "-c", str(config_file)])
        assert result.exit_code == 0
        assert "pod-0: 1 处疑似错误" in result.output
        assert "[error] pod-0: ERROR connection reset" in result.output

    def test_cleanup_with_yes(self, cluster, config_file) -> None:
        result = CliRunner().invoke(main, ["cleanup", "postgres", "solr", "--yes", "-c", str(config_file)])
        assert result.exit_code == 0
        assert "✅ postgres 已清理" in result.output
        assert cluster.called("helm uninstall lightning-solr -n zetaris")

    def test_cleanup_requires_confirmation(self, cluster, config_file) -> None:
        result = CliRunner().invoke(main, ["cleanup", "postgres", "-c", str(config_file)], input="n\n")
        assert result.exit_code == 1
        assert not cluster.called("helm uninstall")


class TestCheckLog:
    def test_finds_errors(self, tmp_path) -> None:
        log = tmp_path / "install.log"
        log.write_text("starting\nERROR: disk full\nInstall Failed\n", encoding="utf-8")
        result = CliRunner().invoke(main, ["check-log", str(log)])
        reset_logging()
        assert result.exit_code == 0
        assert "日志检查 [发现错误]" in result.output
        assert "命中行数: 2" in result.output

    def test_custom_keywords(self, tmp_path) -> None:
        log = tmp_path / "install.log"
        log.write_text("ERROR: disk full\n", encoding="utf-8")
        result = CliRunner().invoke(main, ["check-log", str(log), "--keywords", "panic"])
        reset_logging()
        assert "日志检查 [通过]" in result.output

    def test_missing_file(self, tmp_path) -> None:
        result = CliRunner().invoke(main, ["check-log", str(tmp_path / "nope.log")])
        reset_logging()
        assert "文件不存在" in result.output
