"""编排步骤实现

阶段顺序:
  start → prepared → locals-packed → cache-checked
    命中: → done
    未命中: → manifest-written → installed → archived → context-saved → done

每个步骤只读写 BundleRun，完成后推进到自己的阶段。
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from depbundle.core.dep.resolver import resolve_manifest
from depbundle.core.dep.thumbprint import composite_thumbprint, deps_thumbprint
from depbundle.core.exceptions import ArchiveError, ContextIOError
from depbundle.core.models import Stage
from depbundle.services.bundle.archiver import BundleArchive, build_archive
from depbundle.services.bundle.models import MANIFEST_FILE, BundleRun
from depbundle.services.bundle.repacker import LocalPackageRepacker
from depbundle.utils.file_io import save_json

if TYPE_CHECKING:
    from depbundle.services.bundle.installer import Installer
    from depbundle.services.bundle.packer import Packer

logger = logging.getLogger(__name__)


class BundleSteps:
    """编排步骤集合"""

    def __init__(self, installer: Installer, packer: Packer) -> None:
        self.installer = installer
        self.packer = packer

    def start(self, run: BundleRun) -> None:
        """解析清单、计算基础指纹、确定缓存条目目录并读取上下文"""
        req = run.request
        run.resolved = resolve_manifest(req.manifest, req.base_dir, req.production)
        run.base_fingerprint = deps_thumbprint(run.resolved, req.options.thumbprint)
        run.context = run.store.load()
        logger.info("缓存目录: %s", run.cache_dir)
        logger.debug("上次上下文: %s", run.context.to_dict())
        run.advance(Stage.START)

    def prepare(self, run: BundleRun) -> None:
        try:
            run.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ContextIOError(f"无法创建缓存目录: {run.cache_dir} - {e}") from e
        run.advance(Stage.PREPARED)

    def pack_locals(self, run: BundleRun) -> None:
        """重新打包全部本地依赖，收集已修改的包名"""
        repacker = LocalPackageRepacker(
            self.packer, run.cache_dir, max_workers=run.request.options.max_workers,
        )
        run.modified = repacker.repack(run.resolved, run.context)
        run.advance(Stage.LOCALS_PACKED)

    def check_cache(self, run: BundleRun) -> None:
        """判断缓存是否命中；命中时直接填充结果"""
        opts = run.request.options
        run.advance(Stage.CACHE_CHECKED)
        if opts.disable_cache:
            logger.info("缓存已禁用")
            return
        if run.modified:
            logger.info("缓存已失效: 本地依赖变更 %s", sorted(run.modified))
            return

        fingerprint = run.context.fingerprint or run.base_fingerprint
        path = run.archive_path(fingerprint)
        archive = BundleArchive.open(path)
        if archive is None:
            logger.info("缓存未找到: %s", path)
            return

        logger.info("缓存命中: %s", path)
        run.hit = True
        run.archive = archive
        run.archive_file = path
        run.fingerprint = fingerprint

    def write_manifest(self, run: BundleRun) -> None:
        """写入缓存条目的 package.json，包名取基础指纹"""
        doc = {"name": run.base_fingerprint, "private": True, **run.resolved.to_dict()}
        path = run.cache_dir / MANIFEST_FILE
        try:
            save_json(path, doc)
        except OSError as e:
            raise ContextIOError(f"写入清单失败: {path} - {e}") from e
        run.advance(Stage.MANIFEST_WRITTEN)

    def install(self, run: BundleRun) -> None:
        self.installer.install(run.cache_dir, run.request.production)
        run.advance(Stage.INSTALLED)

    def archive(self, run: BundleRun) -> None:
        opts = run.request.options
        run.archive = build_archive(
            run.cache_dir,
            pattern=opts.pattern,
            exclude=opts.exclude,
            compression=opts.compression,
            compression_level=opts.compression_level,
            prefix=opts.archive_root,
            max_workers=opts.max_workers,
        )
        run.advance(Stage.ARCHIVED)

    def save_context(self, run: BundleRun) -> None:
        """计算复合指纹，写出归档文件后再写回上下文"""
        if run.archive is None:
            raise ArchiveError("归档尚未生成")
        run.fingerprint = composite_thumbprint(
            run.base_fingerprint, run.context.local_packages,
            run.request.options.thumbprint,
        )
        run.archive_file = run.archive_path(run.fingerprint)
        run.archive.save(run.archive_file)

        run.context.fingerprint = run.fingerprint
        run.context.modified.clear()
        run.store.save(run.context)
        run.advance(Stage.CONTEXT_SAVED)
