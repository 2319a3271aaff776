"""CLI — 单组件命令（verify / diagnose / cleanup）"""

from __future__ import annotations

import click

from deployer.cli import DEFAULT_CONFIG, _container
from deployer.core.exceptions import DeployerError
from deployer.core.protocols import ComponentInstaller
from deployer.services.container import ServiceContainer


def register(group: click.Group) -> None:
    group.add_command(verify)
    group.add_command(diagnose)
    group.add_command(cleanup)


def _lookup(c: ServiceContainer, name: str) -> ComponentInstaller:
    installer = c.installer(name)
    if installer is None:
        known = ", ".join(c.installers)
        click.echo(f"未知组件: {name}（可选: {known}）", err=True)
        raise SystemExit(2)
    return installer


@click.command()
@click.argument("component")
@click.option("-c", "--config", "config_path", default=DEFAULT_CONFIG, help="配置文件")
def verify(component: str, config_path: str) -> None:
    """只读检查单个组件是否健康"""
    c = _container(config_path)
    installer = _lookup(c, component)
    try:
        result = installer.verify(c.config)
    except DeployerError as e:
        click.echo(f"❌ {component}: {e}")
        raise SystemExit(1) from e
    mark = "✅" if result.success else "❌"
    click.echo(f"{mark} {component}: {result.message}")
    raise SystemExit(0 if result.success else 1)


@click.command()
@click.argument("component")
@click.option("-c", "--config", "config_path", default=DEFAULT_CONFIG, help="配置文件")
def diagnose(component: str, config_path: str) -> None:
    """扫描组件 pod 近期日志中的错误关键字（仅提示）"""
    c = _container(config_path)
    report = _lookup(c, component).collect_diagnostics(c.config)
    if report.message:
        click.echo(report.message)
    for pod in report.pods_checked:
        click.echo(f"已检查: {pod}")
    if not report.has_errors:
        click.echo(f"✅ {component}: 近期日志未发现错误")
        return
    for pod, count in report.count_by_source().items():
        click.echo(f"⚠️ {pod}: {count} 处疑似错误")
    for f in report.findings:
        click.echo(f"  [{f.keyword}] {f.source}: {f.line}")


@click.command()
@click.argument("components", nargs=-1, required=True)
@click.option("-c", "--config", "config_path", default=DEFAULT_CONFIG, help="配置文件")
@click.option("--yes", is_flag=True, help="不再确认")
def cleanup(components: tuple[str, ...], config_path: str, yes: bool) -> None:
    """卸载组件并删除其归属资源（尽力而为，不存在视为成功）"""
    c = _container(config_path)
    installers = [(name, _lookup(c, name)) for name in components]
    if not yes:
        click.confirm(f"将清理 {', '.join(components)}，确认继续?", abort=True)
    failed: list[str] = []
    for name, installer in installers:
        try:
            installer.cleanup(c.config)
            click.echo(f"✅ {name} 已清理")
        except DeployerError as e:
            failed.append(name)
            click.echo(f"⚠️ {name} 清理出错: {e}")
    if failed:
        raise SystemExit(1)
