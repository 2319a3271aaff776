"""Orchestrator 单元测试"""

from __future__ import annotations

import pytest

from deployer.core.exceptions import PlanError, StepTimeoutError
from deployer.core.models import InstallResult, RunStatus, StepStatus
from deployer.core.plan import DeploymentPlan, Step
from deployer.services.orchestrator import Orchestrator


def _plan(*steps: Step) -> DeploymentPlan:
    return DeploymentPlan(list(steps))


class TestFailFast:
    def test_all_succeed(self, make_installer, journal, config, deploy_log) -> None:
        plan = _plan(
            Step("a", make_installer("a")),
            Step("b", make_installer("b"), requires=["a"]),
            Step("c", make_installer("c"), requires=["b"]),
        )
        report = Orchestrator().run(plan, config, deploy_log)
        assert report.success
        assert report.exit_code == 0
        assert report.state.status == RunStatus.SUCCEEDED
        assert [o.status for o in report.outcomes] == [StepStatus.PASSED] * 3
        assert [j for j in journal if j.endswith(".install")] == ["a.install", "b.install", "c.install"]

    def test_stops_at_first_failure(self, make_installer, journal, config, deploy_log) -> None:
        plan = _plan(
            Step("a", make_installer("a")),
            Step("b", make_installer("b", install=InstallResult.fail("boom"))),
            Step("c", make_installer("c")),
        )
        report = Orchestrator().run(plan, config, deploy_log)
        assert not report.success
        assert report.exit_code == 1
        assert report.failed_step == "b"
        assert report.state.current_index == 1
        assert len(report.outcomes) == 2
        assert not any(j.startswith("c.") for j in journal)

    def test_optional_failure_continues(self, make_installer, journal, config, deploy_log) -> None:
        plan = _plan(
            Step("a", make_installer("a")),
            Step("a-smoke", make_installer("a-smoke", verify=InstallResult.fail("no")), optional=True),
            Step("b", make_installer("b")),
        )
        report = Orchestrator().run(plan, config, deploy_log)
        assert report.success
        assert report.outcomes[1].status == StepStatus.WARNING
        assert "b.install" in journal
        assert any("a-smoke" in e.message for e in deploy_log.entries if e.level == "WARNING")

    def test_disabled_steps_recorded_as_skipped(self, make_installer, journal, config, deploy_log) -> None:
        plan = _plan(
            Step("a", make_installer("a")),
            Step("airflow", make_installer("airflow"), enabled=False),
            Step("b", make_installer("b")),
        )
        report = Orchestrator().run(plan, config, deploy_log)
        assert report.success
        assert report.outcomes[1].status == StepStatus.SKIPPED
        assert not any(j.startswith("airflow.") for j in journal)
        assert "[2/2] 开始步骤: b" in [e.message for e in deploy_log.entries]

    def test_invalid_plan_runs_nothing(self, make_installer, journal, config, deploy_log) -> None:
        plan = _plan(
            Step("b", make_installer("b"), requires=["a"]),
            Step("a", make_installer("a")),
        )
        with pytest.raises(PlanError, match="声明在其之后"):
            Orchestrator().run(plan, config, deploy_log)
        assert journal == []


class TestScenarios:
    """三个端到端场景：全部成功、中途失败、健康集群重跑"""

    NAMES = ("helm-bootstrap", "cluster-setup", "postgres", "lightning-server", "lightning-api")

    def test_full_success_writes_summary(self, make_installer, config, deploy_log) -> None:
        plan = _plan(*(Step(n, make_installer(n)) for n in self.NAMES))
        report = Orchestrator().run(plan, config, deploy_log)
        assert report.exit_code == 0
        assert report.log_path == str(deploy_log.path)
        text = deploy_log.path.read_text(encoding="utf-8")
        assert "部署结果: SUCCEEDED" in text
        assert "失败步骤" not in text

    def test_failure_mid_plan(self, make_installer, journal, config, deploy_log) -> None:
        steps = []
        for n in self.NAMES:
            kwargs = {"install": InstallResult.fail("pod 未就绪")} if n == "postgres" else {}
            steps.append(Step(n, make_installer(n, **kwargs)))
        report = Orchestrator().run(_plan(*steps), config, deploy_log)
        assert report.exit_code == 1
        assert [o.name for o in report.outcomes] == ["helm-bootstrap", "cluster-setup", "postgres"]
        assert not any(j.startswith("lightning-") for j in journal)
        text = deploy_log.path.read_text(encoding="utf-8")
        assert "部署结果: FAILED" in text
        assert "失败步骤: postgres" in text
        assert "部署失败，失败步骤: postgres" in text

    def test_ready_timeout_stops_plan(self, make_installer, journal, config, deploy_log) -> None:
        names = ("helm-bootstrap", "cluster-setup", "postgres", "spark-operator", "lightning-server")
        timeout = StepTimeoutError("spark-operator 在 300 秒内未就绪")
        steps = [
            Step(n, make_installer(n, install=timeout if n == "spark-operator" else None))
            for n in names
        ]
        report = Orchestrator().run(_plan(*steps), config, deploy_log)
        assert report.exit_code == 1
        assert report.failed_step == "spark-operator"
        assert report.outcomes[-1].status == StepStatus.FAILED
        assert "300 秒内未就绪" in report.outcomes[-1].message
        assert "spark-operator.verify" not in journal
        assert not any(j.startswith("lightning-server.") for j in journal)
        text = deploy_log.path.read_text(encoding="utf-8")
        assert "失败步骤: spark-operator" in text

    def test_rerun_on_healthy_cluster(self, make_installer, journal, config, deploy_log) -> None:
        plan = _plan(*(
            Step(n, make_installer(n, install=InstallResult.already_healthy(f"{n} 已安装")))
            for n in self.NAMES
        ))
        report = Orchestrator().run(plan, config, deploy_log)
        assert report.exit_code == 0
        assert all(o.status == StepStatus.PASSED for o in report.outcomes)
        assert journal.count("postgres.verify") == 1
        skipped = [e.message for e in deploy_log.entries if e.message.endswith("跳过安装")]
        assert len(skipped) == len(self.NAMES)
