"""CLI — 依赖打包命令"""

from __future__ import annotations

import json
from functools import wraps
from pathlib import Path
from typing import Any, Callable

import click

from depbundle.core.config import init_config
from depbundle.core.exceptions import DepBundleError


def register(group: click.Group) -> None:
    group.add_command(pack)
    group.add_command(thumbprint)
    group.add_command(resolve)
    group.add_command(inspect)


def _service(config: str) -> Any:
    from depbundle.services.bundle_service import BundleService
    return BundleService(config=init_config(config))


def _friendly_errors(fn: Callable[..., Any]) -> Callable[..., Any]:
    """将业务异常转为 click 错误输出"""
    @wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except DepBundleError as e:
            stage = f" [{e.stage}]" if e.stage else ""
            raise click.ClickException(f"{e.code}{stage}: {e}") from e
    return wrapper


_config_option = click.option(
    "--config", "-c", default="configs/default.yml", help="配置文件路径",
)
_production_option = click.option(
    "--production/--dev", default=True, help="生产模式下不打包 devDependencies",
)


@click.command()
@click.argument("manifest", type=click.Path(dir_okay=False))
@_production_option
@click.option("--cache-dir", default="", help="缓存根目录（默认取配置）")
@click.option("--exclude", "-x", multiple=True, help="排除模式（可多次指定）")
@click.option("--prefix", default=None, help="归档内的根目录前缀")
@click.option("--compression", default=None,
              type=click.Choice(["STORE", "DEFLATE", "BZIP2", "LZMA"], case_sensitive=False))
@click.option("--level", default=None, type=int, help="压缩级别")
@click.option("--no-cache", is_flag=True, help="忽略已有缓存，强制重新安装")
@click.option("--output", "-o", default=None, type=click.Path(dir_okay=False), help="另存归档到指定文件")
@_config_option
@_friendly_errors
def pack(
    manifest: str, production: bool, cache_dir: str, exclude: tuple[str, ...],
    prefix: str | None, compression: str | None, level: int | None,
    no_cache: bool, output: str | None, config: str,
) -> None:
    """打包清单声明的依赖（依赖集不变时复用缓存）"""
    svc = _service(config)
    result = svc.pack(
        manifest, production=production, cache_dir=cache_dir,
        exclude=list(exclude) or None,
        archive_root=prefix,
        compression=compression.upper() if compression else None,
        compression_level=level,
        disable_cache=no_cache or None,
    )
    if output:
        with open(output, "wb") as f:
            result.archive.write_to(f)
    click.echo(f"fingerprint: {result.fingerprint}")
    click.echo(f"archive:     {result.archive_file}")
    click.echo(f"cache:       {'hit' if result.cached else 'miss'}")
    if output:
        click.echo(f"output:      {Path(output).resolve()}")


@click.command()
@click.argument("manifest", type=click.Path(dir_okay=False))
@_production_option
@_config_option
@_friendly_errors
def thumbprint(manifest: str, production: bool, config: str) -> None:
    """输出清单的基础指纹"""
    click.echo(_service(config).thumbprint(manifest, production=production))


@click.command()
@click.argument("manifest", type=click.Path(dir_okay=False))
@_production_option
@_config_option
@_friendly_errors
def resolve(manifest: str, production: bool, config: str) -> None:
    """输出解析后的清单（本地路径已转为绝对路径）"""
    resolved = _service(config).resolve(manifest, production=production)
    click.echo(json.dumps(resolved.to_dict(), indent=2, ensure_ascii=False))


@click.command()
@click.argument("cache_entry", type=click.Path(file_okay=False))
@_friendly_errors
def inspect(cache_entry: str) -> None:
    """查看缓存条目的上下文"""
    from depbundle.services.bundle_service import BundleService
    click.echo(json.dumps(BundleService.inspect(cache_entry), indent=2, ensure_ascii=False))
