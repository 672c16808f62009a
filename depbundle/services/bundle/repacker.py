"""本地依赖重新打包

对解析后清单中的每个 file: 依赖:
  1. 打包为 tarball 并计算完整性摘要（每次运行都会重新打包）
  2. 将版本标记改写为 file:./local/<映射>/<包名>/<产物文件名>（相对缓存条目目录）
  3. 与上下文中记录的摘要比较，缺失或不同则更新记录并标记为已修改

每个依赖独占一个产物目录，同名同版本的不同本地包互不覆盖。
同一映射内的依赖并发打包；上下文记录只在主线程中更新。
任一依赖打包失败即中止，已生成的其他产物保留在磁盘上。
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from depbundle.core.exceptions import PackagingError
from depbundle.core.models import (
    LOCAL_PREFIX,
    CacheContext,
    LocalPackageRecord,
    PackedArtifact,
    ResolvedManifest,
    is_local_spec,
)
from depbundle.services.bundle.packer import Packer, safe_name

logger = logging.getLogger(__name__)

# 本地依赖产物目录（相对缓存条目）
LOCAL_ARTIFACT_DIR = "local"

# npm 包名规则（可带 scope），满足时直接作为相对路径使用
_NPM_NAME_RE = re.compile(
    r"^(?:@[a-z0-9~-][a-z0-9._~-]*/)?[a-z0-9~-][a-z0-9._~-]*$", re.IGNORECASE,
)


class LocalPackageRepacker:
    """本地依赖打包与变更检测"""

    def __init__(self, packer: Packer, cache_dir: Path, max_workers: int = 4) -> None:
        self.packer = packer
        self.cache_dir = cache_dir
        self.max_workers = max(1, max_workers)

    def repack(self, manifest: ResolvedManifest, context: CacheContext) -> set[str]:
        """处理全部映射，返回本次被标记为已修改的包名"""
        modified: set[str] = set()
        for key, deps in manifest.sections():
            changed = self.repack_section(key, deps, context)
            if changed:
                logger.info("  %s 中本地依赖有变更: %s", key, sorted(changed))
            modified |= changed
        return modified

    def repack_section(self, key: str, deps: dict[str, str], context: CacheContext) -> set[str]:
        """处理单个依赖映射（原地改写版本标记）"""
        sources = [
            (name, Path(spec[len(LOCAL_PREFIX):]))
            for name, spec in deps.items()
            if is_local_spec(spec)
        ]
        if not sources:
            return set()

        workers = min(self.max_workers, len(sources))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                (name, pool.submit(self._pack_one, key, name, src))
                for name, src in sources
            ]
            artifacts = [(name, fut.result()) for name, fut in futures]

        modified: set[str] = set()
        for name, artifact in artifacts:
            rel = self.artifact_dir(key, name).relative_to(self.cache_dir).as_posix()
            deps[name] = f"{LOCAL_PREFIX}./{rel}/{artifact.filename}"
            prev = context.local_packages.get(name)
            if prev is None or prev.integrity != artifact.integrity:
                logger.debug(
                    "本地依赖已变更: %s (%s -> %s)",
                    name, prev.integrity if prev else "-", artifact.integrity,
                )
                context.local_packages[name] = LocalPackageRecord(integrity=artifact.integrity)
                context.modified.add(name)
                modified.add(name)
        return modified

    def artifact_dir(self, key: str, name: str) -> Path:
        """依赖产物所在目录: <缓存条目>/local/<映射>/<包名>"""
        sub = name if _NPM_NAME_RE.match(name) else safe_name(name)
        return self.cache_dir / LOCAL_ARTIFACT_DIR / key / sub

    def _pack_one(self, key: str, name: str, source: Path) -> PackedArtifact:
        dest = self.artifact_dir(key, name)
        try:
            dest.mkdir(parents=True, exist_ok=True)
            return self.packer.pack(source, dest)
        except PackagingError:
            raise
        except OSError as e:
            raise PackagingError(f"本地依赖 {name} 打包失败: {source} - {e}") from e
