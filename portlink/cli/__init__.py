"""portlink 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import os
from typing import Any

import click

from portlink import __version__
from portlink.core.config import DEFAULT_CONFIG_PATH, Config, init_config
from portlink.core.exceptions import PortlinkError
from portlink.utils.logger import setup_logging


class PortlinkGroup(click.Group):
    """业务异常统一输出为 `portlink: <消息>` 并以状态 1 退出"""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except PortlinkError as e:
            click.echo(f"portlink: {e}", err=True)
            ctx.exit(1)


def _cfg(ctx: click.Context) -> Config:
    """从上下文取出 main 加载的配置"""
    return ctx.find_root().obj


@click.group(cls=PortlinkGroup)
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", default=DEFAULT_CONFIG_PATH,
              show_default=True, help="配置文件路径")
@click.option("--verbose", "-v", is_flag=True, help="显示 git 与 vcpkg 的完整输出")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool) -> None:
    """portlink - 安装 vcpkg 端口并为构建脚本查找原生库"""
    setup_logging(
        level=os.getenv("PORTLINK_LOG_LEVEL", "DEBUG" if verbose else "WARNING"),
        json_output=os.getenv("PORTLINK_LOG_JSON", "") == "1",
    )
    cfg = init_config(config_path)
    if verbose:
        cfg.verbose = True
    ctx.obj = cfg


# 注册各领域子命令
from portlink.cli.cmd_build import register as _reg_build  # noqa: E402
from portlink.cli.cmd_probe import register as _reg_probe  # noqa: E402

_reg_build(main)
_reg_probe(main)
