"""编排运行状态

BundleRun 在各阶段之间传递，记录当前阶段、已走过的阶段路径
以及逐步填充的中间结果。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from depbundle.core.exceptions import ArchiveError, DepBundleError
from depbundle.core.models import (
    BundleOptions,
    BundleResult,
    CacheContext,
    Manifest,
    ResolvedManifest,
    Stage,
)
from depbundle.services.bundle.context import ContextStore

if TYPE_CHECKING:
    from depbundle.services.bundle.archiver import BundleArchive

ARCHIVE_SUFFIX = ".zip"
MANIFEST_FILE = "package.json"


@dataclass
class BundleRequest:
    """一次打包请求"""

    manifest: Manifest
    base_dir: Path
    production: bool
    cache_root: Path
    options: BundleOptions = field(default_factory=BundleOptions)


@dataclass
class BundleRun:
    """单次编排的可变状态

    cache_dir / store 由基础指纹推导，start 阶段之前访问会抛 DepBundleError。
    """

    request: BundleRequest
    stage: Stage = Stage.START
    stages: list[Stage] = field(default_factory=list)

    resolved: ResolvedManifest = field(default_factory=Manifest)
    base_fingerprint: str = ""
    context: CacheContext = field(default_factory=CacheContext)
    modified: set[str] = field(default_factory=set)

    hit: bool = False
    archive: BundleArchive | None = None
    archive_file: Path | None = None
    fingerprint: str = ""

    @property
    def cache_dir(self) -> Path:
        """缓存条目目录: <cache_root>/<基础指纹>"""
        if not self.base_fingerprint:
            raise DepBundleError("缓存目录尚未确定: 基础指纹未计算")
        return self.request.cache_root / self.base_fingerprint

    @property
    def store(self) -> ContextStore:
        return ContextStore.for_entry(self.cache_dir)

    def advance(self, stage: Stage) -> None:
        self.stage = stage
        self.stages.append(stage)

    def archive_path(self, fingerprint: str) -> Path:
        return self.cache_dir / f"{fingerprint}{ARCHIVE_SUFFIX}"

    def to_result(self) -> BundleResult:
        if self.archive is None or self.archive_file is None:
            raise ArchiveError("归档尚未生成", stage=self.stage.value)
        return BundleResult(
            cache_dir=self.cache_dir,
            archive_file=self.archive_file,
            fingerprint=self.fingerprint,
            archive=self.archive,
            cached=self.hit,
            stages=list(self.stages),
        )
