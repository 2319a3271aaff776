"""CLI — 部署命令（install / plan）"""

from __future__ import annotations

import click

from deployer.cli import DEFAULT_CONFIG, _container
from deployer.core.deploy_log import DeploymentLog
from deployer.core.exceptions import DeployerError
from deployer.core.models import DeploymentReport, StepStatus
from deployer.utils.yaml_io import save_yaml


def register(group: click.Group) -> None:
    group.add_command(install)
    group.add_command(show_plan)


_MARKS = {
    StepStatus.PASSED: "OK",
    StepStatus.FAILED: "FAIL",
    StepStatus.WARNING: "WARN",
    StepStatus.SKIPPED: "SKIP",
}


def _print_report(report: DeploymentReport) -> None:
    """打印部署摘要"""
    click.echo("\n=== 部署摘要 ===")
    for o in report.outcomes:
        mark = _MARKS.get(o.status, "?")
        tag = " (可选)" if o.optional else ""
        click.echo(f"  [{mark:4s}] {o.name}{tag}  {o.duration:.1f}s")
    click.echo(f"\n结果: {report.state.status.value}  总耗时: {report.state.duration:.1f}s")
    if report.failed_step:
        click.echo(f"失败步骤: {report.failed_step}")
    if report.log_path:
        click.echo(f"日志文件: {report.log_path}")


@click.command()
@click.option("-c", "--config", "config_path", default=DEFAULT_CONFIG, help="配置文件")
@click.option("--log-dir", default=None, help="部署日志目录（覆盖配置）")
@click.option("--with-airflow", is_flag=True, help="启用 Airflow 步骤")
@click.option("--skip-smoke-tests", is_flag=True, help="跳过冒烟测试步骤")
@click.option("--report", "report_path", default=None, help="将运行报告写入 YAML 文件")
def install(
    config_path: str, log_dir: str | None, with_airflow: bool, skip_smoke_tests: bool,
    report_path: str | None,
) -> None:
    """按固定顺序部署全部组件，失败即中止（退出码 0 成功 / 1 失败）"""
    c = _container(
        config_path,
        log_dir=log_dir,
        enable_airflow=True if with_airflow else None,
        run_smoke_tests=False if skip_smoke_tests else None,
    )
    try:
        plan = c.plan()
        plan.validate()
    except DeployerError as e:
        click.echo(f"❌ {e}", err=True)
        raise SystemExit(1) from e

    with DeploymentLog(c.config.log_dir) as log:
        report = c.orchestrator.run(plan, c.config, log)
    _print_report(report)
    if report_path:
        save_yaml(report_path, report.to_dict())
        click.echo(f"运行报告: {report_path}")
    raise SystemExit(report.exit_code)


@click.command(name="plan")
@click.option("-c", "--config", "config_path", default=DEFAULT_CONFIG, help="配置文件")
@click.option("--with-airflow", is_flag=True, help="启用 Airflow 步骤")
@click.option("--skip-smoke-tests", is_flag=True, help="跳过冒烟测试步骤")
def show_plan(config_path: str, with_airflow: bool, skip_smoke_tests: bool) -> None:
    """显示部署计划（顺序、是否可选、前置步骤）并校验"""
    c = _container(
        config_path,
        enable_airflow=True if with_airflow else None,
        run_smoke_tests=False if skip_smoke_tests else None,
    )
    plan = c.plan()
    click.echo(f"部署计划（{len(plan.enabled_steps)}/{len(plan)} 个步骤启用）:")
    for i, step in enumerate(plan.steps, 1):
        kind = "可选" if step.optional else "必需"
        state = "" if step.enabled else "  [禁用]"
        requires = f"  ← {', '.join(step.requires)}" if step.requires else ""
        click.echo(f"  {i:2d}. {step.name:24s} {kind}{requires}{state}")
    try:
        plan.validate()
    except DeployerError as e:
        click.echo(f"❌ {e}", err=True)
        raise SystemExit(1) from e
    click.echo("计划有效")
