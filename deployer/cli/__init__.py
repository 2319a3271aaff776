"""deployer 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

import os

import click

from deployer import __version__
from deployer.core.config import Config, init_config
from deployer.core.exceptions import ConfigError
from deployer.services.container import ServiceContainer
from deployer.utils.logger import setup_logging

DEFAULT_CONFIG = "configs/deploy.yml"


def _container(config_path: str, **overrides: object) -> ServiceContainer:
    """加载配置并构建服务容器，overrides 中非 None 的值覆盖配置项

    配置无效时输出错误并以退出码 1 结束。
    """
    try:
        cfg: Config = init_config(config_path)
    except ConfigError as e:
        click.echo(f"❌ {e}", err=True)
        raise SystemExit(1) from e
    for key, value in overrides.items():
        if value is not None:
            setattr(cfg, key, value)
    return ServiceContainer(config=cfg)


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """deployer - Kubernetes 数据平台部署编排工具"""
    setup_logging(
        level=os.getenv("DEPLOYER_LOG_LEVEL", "INFO"),
        json_output=os.getenv("DEPLOYER_LOG_JSON", "") == "1",
    )


# 注册各领域子命令
from deployer.cli.cmd_component import register as _reg_component  # noqa: E402
from deployer.cli.cmd_deploy import register as _reg_deploy  # noqa: E402
from deployer.cli.cmd_misc import register as _reg_misc  # noqa: E402

_reg_deploy(main)
_reg_component(main)
_reg_misc(main)
