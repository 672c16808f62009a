"""打包缓存编排器 - 按阶段顺序驱动各步骤

任一阶段失败即中止，异常原样抛给调用方，并在 stage 属性上标明失败阶段。
本模块不做重试，也不加锁：同一指纹的并发运行互不排斥。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from depbundle.core.exceptions import DepBundleError
from depbundle.core.models import BundleOptions, BundleResult, Manifest, Stage
from depbundle.services.bundle.installer import Installer, NpmInstaller
from depbundle.services.bundle.models import BundleRequest, BundleRun
from depbundle.services.bundle.packer import NpmPacker, Packer
from depbundle.services.bundle.steps import BundleSteps

logger = logging.getLogger(__name__)


class BundleOrchestrator:
    """依赖打包缓存编排器"""

    def __init__(self, installer: Installer | None = None, packer: Packer | None = None) -> None:
        self.steps = BundleSteps(
            installer=installer or NpmInstaller(),
            packer=packer or NpmPacker(),
        )

    def run(self, request: BundleRequest) -> BundleResult:
        """执行编排流程"""
        run = BundleRun(request=request)
        s = self.steps

        for stage, step in (
            (Stage.START, s.start),
            (Stage.PREPARED, s.prepare),
            (Stage.LOCALS_PACKED, s.pack_locals),
            (Stage.CACHE_CHECKED, s.check_cache),
        ):
            self._do(run, stage, step)

        if not run.hit:
            for stage, step in (
                (Stage.MANIFEST_WRITTEN, s.write_manifest),
                (Stage.INSTALLED, s.install),
                (Stage.ARCHIVED, s.archive),
                (Stage.CONTEXT_SAVED, s.save_context),
            ):
                self._do(run, stage, step)

        run.advance(Stage.DONE)
        logger.info(
            "打包完成: %s (%s) -> %s",
            run.fingerprint, "命中" if run.hit else "重建", run.archive_file,
        )
        return run.to_result()

    @staticmethod
    def _do(run: BundleRun, stage: Stage, step: Callable[[BundleRun], None]) -> None:
        try:
            step(run)
        except DepBundleError as e:
            if not e.stage:
                e.stage = stage.value
            logger.error(
                "阶段 %s 失败 (已完成 %s): %s", e.stage, run.stage.value, e,
                extra={"stage": e.stage},
            )
            raise


def pack_dependencies(
    manifest: Manifest,
    base_dir: str | Path,
    production: bool,
    cache_root: str | Path,
    options: BundleOptions | None = None,
    *,
    installer: Installer | None = None,
    packer: Packer | None = None,
) -> BundleResult:
    """打包依赖：命中缓存时复用已有归档，否则安装后重新归档"""
    request = BundleRequest(
        manifest=manifest,
        base_dir=Path(base_dir).resolve(),
        production=production,
        cache_root=Path(cache_root).resolve(),
        options=options or BundleOptions(),
    )
    return BundleOrchestrator(installer=installer, packer=packer).run(request)
