"""依赖清单解析器

职责:
- 读取 package.json 风格的清单文件
- 将 file: 本地路径依赖改写为绝对路径
- 生产模式下剔除 devDependencies

解析是纯函数，只操作路径字符串，不访问磁盘。
无法识别的版本标记原样透传，不报错。
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from depbundle.core.exceptions import ResolutionError
from depbundle.core.models import LOCAL_PREFIX, Manifest, ResolvedManifest, is_local_spec
from depbundle.utils.file_io import load_json

logger = logging.getLogger(__name__)


def load_manifest(path: str | Path) -> Manifest:
    """读取清单文件"""
    p = Path(path)
    try:
        data = load_json(p)
    except FileNotFoundError as e:
        raise ResolutionError(f"清单文件不存在: {p}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise ResolutionError(f"清单文件无法解析: {p} - {e}") from e
    if not isinstance(data, dict):
        raise ResolutionError(f"清单内容不是对象: {p}")
    try:
        return Manifest.from_dict(data)
    except AttributeError as e:
        raise ResolutionError(f"依赖映射格式错误: {p} - {e}") from e


def resolve_deps(deps: dict[str, str] | None, base: str | Path) -> dict[str, str] | None:
    """将单个依赖映射中的 file: 路径解析为绝对路径

    >>> resolve_deps({"foo": "file:../foo"}, "/a/b")
    {'foo': 'file:/a/foo'}
    """
    if deps is None:
        return None

    result: dict[str, str] = {}
    for name, spec in deps.items():
        if is_local_spec(spec):
            rel = spec[len(LOCAL_PREFIX):]
            spec = LOCAL_PREFIX + os.path.normpath(os.path.join(os.path.abspath(base), rel))
        result[name] = spec
    return result


def resolve_manifest(
    manifest: Manifest, base_dir: str | Path, production: bool,
) -> ResolvedManifest:
    """生成解析后的清单

    production=True 时 devDependencies 整体省略；
    缺失的映射保持缺失，不会变成空映射。
    """
    resolved = ResolvedManifest(
        bundled_dependencies=resolve_deps(manifest.bundled_dependencies, base_dir),
        dependencies=resolve_deps(manifest.dependencies, base_dir),
        dev_dependencies=(
            None if production else resolve_deps(manifest.dev_dependencies, base_dir)
        ),
        optional_dependencies=resolve_deps(manifest.optional_dependencies, base_dir),
        peer_dependencies=resolve_deps(manifest.peer_dependencies, base_dir),
    )
    logger.debug(
        "清单已解析: base=%s production=%s 本地依赖=%d",
        base_dir, production, len(resolved.local_entries()),
    )
    return resolved
