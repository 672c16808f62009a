"""文件统一读写工具

集中管理 YAML / JSON 文件的序列化与原子写入，避免各模块重复实现。
缓存条目内的文件（清单、上下文、归档）一律经由 atomic_write 落盘，
中途失败不会留下半截文件。
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# YAML 文件最大大小限制 (10MB)
MAX_YAML_SIZE = 10 * 1024 * 1024


def atomic_write(path: Path, content: str | bytes) -> None:
    """原子写入文件：先写同目录临时文件再 rename

    参数:
        path: 目标文件路径，父目录不存在时自动创建
        content: 文本按 UTF-8 写入，字节原样写入

    异常:
        OSError: 目录创建、写入或替换失败（临时文件会被清理）
        PermissionError: 无写入权限

    示例:
        >>> atomic_write(Path("cache/abc/package.json"), '{"name": "abc"}')
        >>> atomic_write(Path("cache/abc/abc.zip"), zip_bytes)
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        if isinstance(content, bytes):
            with os.fdopen(fd, "wb") as f:
                f.write(content)
        else:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
        os.replace(tmp, str(path))
    except Exception:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def load_yaml(path: str | Path) -> dict[str, Any]:
    """安全读取 YAML 文件

    参数:
        path: YAML 文件路径

    返回:
        dict: 解析后的字典。文件不存在、为空或内容不是字典时返回空字典

    异常:
        yaml.YAMLError: YAML 格式错误
        ValueError: 文件过大（超过 MAX_YAML_SIZE）
        OSError: 其他 IO 错误（如目标是目录、无读取权限）

    示例:
        >>> ctx = load_yaml("cache/abc/context.yml")
        >>> fingerprint = ctx.get("fingerprint", "")
    """
    p = Path(path)
    if not p.exists():
        return {}

    file_size = p.stat().st_size
    if file_size > MAX_YAML_SIZE:
        raise ValueError(
            f"YAML 文件过大: {p} ({file_size} 字节), 超过限制 {MAX_YAML_SIZE} 字节"
        )

    with open(p, encoding="utf-8") as f:
        result = yaml.safe_load(f)

    if result is None:
        return {}
    if not isinstance(result, dict):
        logger.warning(
            "%s 内容不是字典类型 (实际类型: %s)，返回空字典",
            path, type(result).__name__,
        )
        return {}
    return result


def save_yaml(path: str | Path, data: Any) -> None:
    """原子写入 YAML 文件

    参数:
        path: YAML 文件路径
        data: 可序列化的数据（dict、list 等）

    异常:
        OSError: 文件写入失败
        yaml.YAMLError: 数据无法序列化

    说明:
        - 经由 atomic_write 落盘，自动创建父目录
        - 保持键顺序，允许 Unicode 字符

    示例:
        >>> save_yaml("cache/abc/context.yml", {"fingerprint": "abc", "local_packages": {}})
    """
    content = yaml.safe_dump(
        data, default_flow_style=False,
        allow_unicode=True, sort_keys=False,
    )
    atomic_write(Path(path), content)


def load_json(path: str | Path) -> Any:
    """读取 JSON 文件，错误原样抛出"""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def save_json(path: str | Path, data: Any) -> None:
    """原子写入 JSON 文件（两空格缩进，末尾换行）"""
    atomic_write(Path(path), json.dumps(data, indent=2, ensure_ascii=False) + "\n")
