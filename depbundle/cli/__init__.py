"""depbundle 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

import os

import click

from depbundle import __version__
from depbundle.utils.logger import setup_logging


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """depbundle - 依赖包打包缓存工具"""
    setup_logging(
        level=os.getenv("DEPBUNDLE_LOG_LEVEL", "INFO"),
        json_output=os.getenv("DEPBUNDLE_LOG_JSON", "") == "1",
    )


# 注册各领域子命令
from depbundle.cli.cmd_pack import register as _reg_pack  # noqa: E402

_reg_pack(main)
