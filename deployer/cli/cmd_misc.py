"""CLI — 杂项命令（日志检查）"""

from __future__ import annotations

import click

from deployer.core.log_checker import DEFAULT_KEYWORDS, KeywordClassifier


def register(group: click.Group) -> None:
    group.add_command(check_log)


@click.command(name="check-log")
@click.argument("log_file")
@click.option("--keywords", default="", help="逗号分隔的关键字（默认 error,exception,failed）")
def check_log(log_file: str, keywords: str) -> None:
    """按错误关键字扫描日志文件"""
    words = [k.strip() for k in keywords.split(",") if k.strip()] or list(DEFAULT_KEYWORDS)
    report = KeywordClassifier(words).check_file(log_file)
    if report.message:
        click.echo(report.message)
        return
    status = "发现错误" if report.has_errors else "通过"
    click.echo(f"日志检查 [{status}]: {log_file}")
    click.echo(f"关键字: {', '.join(words)}  命中行数: {len(report.findings)}")
    for f in report.findings:
        click.echo(f"  [{f.keyword}] {f.line}")
