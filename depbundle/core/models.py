"""核心数据模型

所有核心数据类集中定义，各模块统一从此处导入。
"""

from __future__ import annotations

import zipfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator

if TYPE_CHECKING:
    from depbundle.core.config import Config
    from depbundle.services.bundle.archiver import BundleArchive

# 本地路径依赖的版本标记前缀
LOCAL_PREFIX = "file:"

# (属性名, 清单中的键名)，顺序即处理顺序
DEP_FIELDS: tuple[tuple[str, str], ...] = (
    ("bundled_dependencies", "bundledDependencies"),
    ("dependencies", "dependencies"),
    ("dev_dependencies", "devDependencies"),
    ("optional_dependencies", "optionalDependencies"),
    ("peer_dependencies", "peerDependencies"),
)

COMPRESSION_METHODS: dict[str, int] = {
    "STORE": zipfile.ZIP_STORED,
    "DEFLATE": zipfile.ZIP_DEFLATED,
    "BZIP2": zipfile.ZIP_BZIP2,
    "LZMA": zipfile.ZIP_LZMA,
}


def is_local_spec(spec: str) -> bool:
    """版本标记是否指向本地目录"""
    return spec.startswith(LOCAL_PREFIX)


# =========================================================================
# 依赖清单
# =========================================================================


@dataclass
class Manifest:
    """依赖清单 — 五类依赖映射

    None 表示清单中没有该映射，{} 表示映射存在但为空，两者语义不同。
    解析后的清单（ResolvedManifest）使用同一结构。
    """

    bundled_dependencies: dict[str, str] | None = None
    dependencies: dict[str, str] | None = None
    dev_dependencies: dict[str, str] | None = None
    optional_dependencies: dict[str, str] | None = None
    peer_dependencies: dict[str, str] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Manifest:
        """从 package.json 风格的字典构造，忽略非依赖字段"""
        kwargs: dict[str, dict[str, str] | None] = {}
        for attr, key in DEP_FIELDS:
            deps = data.get(key)
            kwargs[attr] = None if deps is None else {
                str(k): str(v) for k, v in deps.items()
            }
        return cls(**kwargs)

    def to_dict(self) -> dict[str, dict[str, str]]:
        """转为 package.json 风格的字典，省略缺失的映射"""
        return {
            key: dict(deps)
            for key, deps in self.sections()
        }

    def sections(self) -> Iterator[tuple[str, dict[str, str]]]:
        """遍历存在的映射，产出 (清单键名, 映射)"""
        for attr, key in DEP_FIELDS:
            deps = getattr(self, attr)
            if deps is not None:
                yield key, deps

    def local_entries(self) -> list[tuple[str, str, str]]:
        """列出全部本地路径依赖，返回 [(清单键名, 包名, 版本标记)]"""
        return [
            (key, name, spec)
            for key, deps in self.sections()
            for name, spec in deps.items()
            if is_local_spec(spec)
        ]


ResolvedManifest = Manifest


@dataclass(frozen=True)
class ThumbprintOptions:
    """指纹摘要配置"""

    algorithm: str = "sha1"
    encoding: str = "hex"  # "hex" | "base64"


# =========================================================================
# 缓存上下文
# =========================================================================


@dataclass
class LocalPackageRecord:
    """单个本地依赖上次打包产物的完整性摘要"""

    integrity: str


@dataclass
class CacheContext:
    """缓存条目的持久化上下文

    modified 只在本次运行内有效，不写入磁盘。
    """

    local_packages: dict[str, LocalPackageRecord] = field(default_factory=dict)
    fingerprint: str = ""
    modified: set[str] = field(default_factory=set)

    @property
    def invalidated(self) -> bool:
        return bool(self.modified)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheContext:
        """从持久化字典构造，结构不符时抛 ValueError"""
        raw = data.get("local_packages") or {}
        if not isinstance(raw, dict):
            raise ValueError(
                f"local_packages 应为映射 (实际类型: {type(raw).__name__})"
            )
        records = {
            str(name): LocalPackageRecord(integrity=str(rec.get("integrity", "")))
            for name, rec in raw.items()
            if isinstance(rec, dict)
        }
        return cls(local_packages=records, fingerprint=str(data.get("fingerprint") or ""))

    def to_dict(self) -> dict[str, Any]:
        return {
            "fingerprint": self.fingerprint,
            "local_packages": {
                name: {"integrity": rec.integrity}
                for name, rec in sorted(self.local_packages.items())
            },
        }


@dataclass
class PackedArtifact:
    """打包步骤的产物"""

    filename: str
    integrity: str
    path: Path | None = None


# =========================================================================
# 打包选项与结果
# =========================================================================


class Stage(str, Enum):
    """编排状态机的阶段"""
    START = "start"
    PREPARED = "prepared"
    LOCALS_PACKED = "locals-packed"
    CACHE_CHECKED = "cache-checked"
    MANIFEST_WRITTEN = "manifest-written"
    INSTALLED = "installed"
    ARCHIVED = "archived"
    CONTEXT_SAVED = "context-saved"
    DONE = "done"


@dataclass
class BundleOptions:
    """单次打包调用的选项"""

    compression: str = "DEFLATE"
    compression_level: int | None = 6
    exclude: list[str] = field(default_factory=list)
    archive_root: str = ""
    disable_cache: bool = False
    pattern: str = "node_modules/**"
    max_workers: int = 4
    thumbprint: ThumbprintOptions = field(default_factory=ThumbprintOptions)

    @classmethod
    def from_config(cls, cfg: Config, **overrides: Any) -> BundleOptions:
        """从全局配置构造，overrides 中非 None 的值优先"""
        opts = cls(
            compression=cfg.compression,
            compression_level=cfg.compression_level,
            exclude=list(cfg.exclude or []),
            archive_root=cfg.archive_root,
            max_workers=cfg.max_workers,
            thumbprint=ThumbprintOptions(
                algorithm=cfg.thumbprint_algorithm,
                encoding=cfg.thumbprint_encoding,
            ),
        )
        for k, v in overrides.items():
            if v is not None:
                setattr(opts, k, v)
        return opts


@dataclass
class BundleResult:
    """打包结果"""

    cache_dir: Path
    archive_file: Path
    fingerprint: str
    archive: BundleArchive
    cached: bool = False
    stages: list[Stage] = field(default_factory=list)
