"""清单指纹

对解析后的清单做规范化序列化（各层键排序、紧凑分隔符）后计算摘要，
结果与键的插入顺序无关。默认 sha1 + hex，输出固定 40 个十六进制字符。

复合指纹在基础指纹之上按包名排序折叠每个本地依赖的完整性摘要。
"""

from __future__ import annotations

import base64
import hashlib
import json
from typing import Any

from depbundle.core.exceptions import ConfigError
from depbundle.core.models import LocalPackageRecord, Manifest, ThumbprintOptions

_ENCODINGS = ("hex", "base64")


def canonical_json(data: Any) -> str:
    """规范化 JSON 序列化"""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _digest(payload: str, options: ThumbprintOptions) -> str:
    if options.encoding not in _ENCODINGS:
        raise ConfigError(f"不支持的摘要编码: {options.encoding}，可选: {_ENCODINGS}")
    try:
        h = hashlib.new(options.algorithm)
    except (ValueError, TypeError) as e:
        raise ConfigError(f"不支持的摘要算法: {options.algorithm}") from e
    h.update(payload.encode("utf-8"))
    if options.encoding == "hex":
        return h.hexdigest()
    return base64.b64encode(h.digest()).decode("ascii")


def thumbprint(data: Any, options: ThumbprintOptions | None = None) -> str:
    """计算任意 JSON 兼容数据的指纹"""
    return _digest(canonical_json(data), options or ThumbprintOptions())


def deps_thumbprint(manifest: Manifest, options: ThumbprintOptions | None = None) -> str:
    """计算解析后清单的基础指纹（缺失映射不参与序列化）"""
    return thumbprint(manifest.to_dict(), options)


def composite_thumbprint(
    base: str,
    records: dict[str, LocalPackageRecord],
    options: ThumbprintOptions | None = None,
) -> str:
    """折叠本地依赖完整性摘要得到复合指纹，无本地依赖时即基础指纹"""
    if not records:
        return base
    lines = [base] + [
        f"{name}={records[name].integrity}" for name in sorted(records)
    ]
    return _digest("\n".join(lines), options or ThumbprintOptions())
