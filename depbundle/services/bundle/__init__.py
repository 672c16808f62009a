"""依赖打包缓存模块

拆分说明:
- context.py: 缓存上下文读写
- packer.py: 本地依赖打包（npm pack / 纯 Python tarball）
- repacker.py: 本地依赖重新打包与变更检测
- installer.py: 外部安装器适配
- archiver.py: 依赖目录 zip 归档
- steps.py / orchestrator.py: 编排状态机
"""

from depbundle.services.bundle.archiver import BundleArchive, build_archive, stream_archive
from depbundle.services.bundle.context import ContextStore
from depbundle.services.bundle.installer import NpmInstaller
from depbundle.services.bundle.orchestrator import BundleOrchestrator, pack_dependencies
from depbundle.services.bundle.packer import NpmPacker, TarballPacker
from depbundle.services.bundle.repacker import LocalPackageRepacker

__all__ = [
    "BundleArchive",
    "BundleOrchestrator",
    "ContextStore",
    "LocalPackageRepacker",
    "NpmInstaller",
    "NpmPacker",
    "TarballPacker",
    "build_archive",
    "pack_dependencies",
    "stream_archive",
]
