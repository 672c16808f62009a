"""依赖清单处理

- resolver.py: 本地路径依赖解析为绝对路径
- thumbprint.py: 清单指纹计算
"""

from depbundle.core.dep.resolver import load_manifest, resolve_deps, resolve_manifest
from depbundle.core.dep.thumbprint import composite_thumbprint, deps_thumbprint, thumbprint

__all__ = [
    "load_manifest",
    "resolve_deps",
    "resolve_manifest",
    "thumbprint",
    "deps_thumbprint",
    "composite_thumbprint",
]
