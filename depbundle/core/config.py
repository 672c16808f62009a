"""集中配置管理

提供统一的配置入口，支持从 YAML 文件加载 + 编程式覆盖。
库函数不读取全局配置，一律显式传入 Config / BundleOptions；
全局单例仅供 CLI 入口使用。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

from depbundle.utils.file_io import load_yaml

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """打包缓存全局配置"""

    # 目录
    cache_dir: str = ".depbundle/cache"

    # 并发
    max_workers: int = 4

    # 归档
    compression: str = "DEFLATE"
    compression_level: int = 6
    exclude: list[str] = field(default_factory=list)
    archive_root: str = ""

    # 指纹
    thumbprint_algorithm: str = "sha1"
    thumbprint_encoding: str = "hex"

    # 外部工具
    npm_command: str = "npm"

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = "configs/default.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    def to_dict(self) -> dict:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "configs/default.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
