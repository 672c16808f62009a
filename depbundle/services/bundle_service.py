"""打包服务 — 清单解析 / 指纹 / 打包 / 缓存查看

面向 CLI 的门面，持有配置和外部工具适配器，
把文件路径形式的输入转换成编排器需要的请求。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from depbundle.core.config import Config
from depbundle.core.dep.resolver import load_manifest, resolve_manifest
from depbundle.core.dep.thumbprint import deps_thumbprint
from depbundle.core.models import BundleOptions, BundleResult, ResolvedManifest, ThumbprintOptions
from depbundle.services.bundle.context import ContextStore
from depbundle.services.bundle.installer import Installer, NpmInstaller
from depbundle.services.bundle.models import BundleRequest
from depbundle.services.bundle.orchestrator import BundleOrchestrator
from depbundle.services.bundle.packer import NpmPacker, Packer
from depbundle.utils.shell import CommandExecutor, LocalExecutor

logger = logging.getLogger(__name__)


class BundleService:
    """依赖打包生命周期管理"""

    def __init__(
        self,
        config: Config | None = None,
        installer: Installer | None = None,
        packer: Packer | None = None,
        executor: CommandExecutor | None = None,
    ) -> None:
        self.config = config or Config()
        executor = executor or LocalExecutor()
        npm = self.config.npm_command
        self.orchestrator = BundleOrchestrator(
            installer=installer or NpmInstaller(executor, npm=npm),
            packer=packer or NpmPacker(executor, npm=npm),
        )

    def _thumbprint_options(self) -> ThumbprintOptions:
        return ThumbprintOptions(
            algorithm=self.config.thumbprint_algorithm,
            encoding=self.config.thumbprint_encoding,
        )

    def resolve(self, manifest_path: str | Path, production: bool = True) -> ResolvedManifest:
        """解析清单文件，本地路径相对清单所在目录"""
        p = Path(manifest_path).resolve()
        return resolve_manifest(load_manifest(p), p.parent, production)

    def thumbprint(self, manifest_path: str | Path, production: bool = True) -> str:
        """计算清单文件的基础指纹"""
        return deps_thumbprint(self.resolve(manifest_path, production), self._thumbprint_options())

    def pack(
        self,
        manifest_path: str | Path,
        production: bool = True,
        cache_dir: str | Path = "",
        **overrides: Any,
    ) -> BundleResult:
        """打包清单文件声明的依赖

        overrides 覆盖 BundleOptions 中对应字段（None 表示沿用配置）。
        """
        p = Path(manifest_path).resolve()
        cache_root = Path(cache_dir or self.config.cache_dir).resolve()
        options = BundleOptions.from_config(self.config, **overrides)
        request = BundleRequest(
            manifest=load_manifest(p),
            base_dir=p.parent,
            production=production,
            cache_root=cache_root,
            options=options,
        )
        logger.info("打包依赖: %s (production=%s)", p, production)
        return self.orchestrator.run(request)

    @staticmethod
    def inspect(cache_entry_dir: str | Path) -> dict[str, Any]:
        """查看缓存条目的上下文与归档文件"""
        entry = Path(cache_entry_dir)
        loaded = ContextStore.for_entry(entry).read()
        archives = sorted(p.name for p in entry.glob("*.zip")) if entry.is_dir() else []
        return {
            "cache_dir": str(entry),
            "context_found": loaded.found,
            "context": loaded.context.to_dict(),
            "archives": archives,
        }
