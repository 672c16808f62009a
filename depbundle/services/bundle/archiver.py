"""依赖目录归档

遍历已安装的依赖目录树，按匹配模式选取文件（含点文件，跳过目录），
排除 exclude 模式命中的文件，写入 zip 归档。
每个条目保留原文件的权限位和修改时间，可选加统一的根前缀。

文件读取在有界线程池中并发进行，条目按路径排序后顺序写入。
"""

from __future__ import annotations

import fnmatch
import functools
import io
import itertools
import logging
import os
import time
import zipfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import BinaryIO, Iterable

from depbundle.core.exceptions import ArchiveError, ConfigError
from depbundle.core.models import COMPRESSION_METHODS
from depbundle.utils.file_io import atomic_write

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "node_modules/**"
_CHUNK_SIZE = 64 * 1024


class BundleArchive:
    """内存中的 zip 归档句柄"""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._zip = zipfile.ZipFile(io.BytesIO(data))

    @classmethod
    def load(cls, data: bytes) -> BundleArchive:
        """从字节加载归档，无法解析抛 ArchiveError"""
        try:
            return cls(data)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as e:
            raise ArchiveError(f"归档无法解析: {e}") from e

    @classmethod
    def open(cls, path: Path) -> BundleArchive | None:
        """读取归档文件，不存在时返回 None"""
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ArchiveError(f"读取归档失败: {path} - {e}") from e
        try:
            return cls.load(data)
        except ArchiveError as e:
            raise ArchiveError(f"{path}: {e}") from e

    def names(self) -> list[str]:
        return self._zip.namelist()

    def __contains__(self, name: object) -> bool:
        return name in self._zip.NameToInfo

    def __len__(self) -> int:
        return len(self._zip.infolist())

    def info(self, name: str) -> zipfile.ZipInfo:
        return self._zip.getinfo(name)

    def read(self, name: str) -> bytes:
        return self._zip.read(name)

    def mode(self, name: str) -> int:
        """条目记录的权限位"""
        return (self.info(name).external_attr >> 16) & 0o7777

    def to_bytes(self) -> bytes:
        return self._data

    def write_to(self, sink: BinaryIO, chunk_size: int = _CHUNK_SIZE) -> int:
        """分块写出到目标流，返回写出的字节数"""
        view = memoryview(self._data)
        for start in range(0, len(view), chunk_size):
            sink.write(view[start:start + chunk_size])
        return len(self._data)

    def save(self, path: Path) -> None:
        """原子写入归档文件"""
        try:
            atomic_write(path, self._data)
        except OSError as e:
            raise ArchiveError(f"写入归档失败: {path} - {e}") from e


@functools.lru_cache(maxsize=256)
def _expand(pattern: str) -> tuple[str, ...]:
    """展开 "**/" 匹配零层目录的等价写法

    "node_modules/**/*.md" -> ("node_modules/**/*.md", "node_modules/*.md")
    """
    parts = pattern.split("**/")
    variants = []
    for joins in itertools.product(("**/", ""), repeat=len(parts) - 1):
        variants.append(parts[0] + "".join(j + p for j, p in zip(joins, parts[1:])))
    return tuple(variants)


def _match(rel: str, pattern: str) -> bool:
    if any(fnmatch.fnmatchcase(rel, p) for p in _expand(pattern)):
        return True
    # "dir/**" 同时匹配 dir 下任意层级
    if pattern.endswith("/**"):
        return rel.startswith(pattern[:-2])
    return False


def select_files(root: Path, pattern: str = DEFAULT_PATTERN, exclude: Iterable[str] = ()) -> list[str]:
    """列出 root 下匹配 pattern 且未被排除的文件（相对路径，已排序）"""
    excludes = list(exclude or ())
    selected: list[str] = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for fname in filenames:
            rel = Path(dirpath, fname).relative_to(root).as_posix()
            if not _match(rel, pattern):
                continue
            if any(_match(rel, ex) for ex in excludes):
                continue
            selected.append(rel)
    return sorted(selected)


def _compression(name: str) -> int:
    try:
        return COMPRESSION_METHODS[name.upper()]
    except KeyError:
        raise ConfigError(
            f"不支持的压缩方式: {name}，可选: {list(COMPRESSION_METHODS)}"
        ) from None


def _read_entry(root: Path, rel: str) -> tuple[os.stat_result, bytes]:
    path = root / rel
    try:
        return path.stat(), path.read_bytes()
    except OSError as e:
        raise ArchiveError(f"读取文件失败: {path} - {e}") from e


def _entry_info(rel: str, st: os.stat_result, prefix: str, method: int) -> zipfile.ZipInfo:
    arcname = f"{prefix.strip('/')}/{rel}" if prefix.strip("/") else rel
    mtime = max(st.st_mtime, 315532800)  # zip 时间戳下限 1980-01-01
    info = zipfile.ZipInfo(arcname, date_time=time.localtime(mtime)[:6])
    info.external_attr = (st.st_mode & 0xFFFF) << 16
    info.compress_type = method
    return info



def stream_archive(
    root: Path,
    sink: BinaryIO,
    pattern: str = DEFAULT_PATTERN,
    exclude: Iterable[str] = (),
    compression: str = "DEFLATE",
    compression_level: int | None = 6,
    prefix: str = "",
    max_workers: int = 4,
) -> int:
    """将 root 下选中的文件流式写入 sink（可为不可 seek 的流），返回条目数"""
    method = _compression(compression)
    level = compression_level if method != zipfile.ZIP_STORED else None
    files = select_files(root, pattern, exclude)
    logger.info("  归档 %d 个文件 (root=%s, pattern=%s)", len(files), root, pattern)

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool, \
            zipfile.ZipFile(sink, "w", compression=method, compresslevel=level) as zf:
        entries = pool.map(lambda rel: _read_entry(root, rel), files)
        for rel, (st, data) in zip(files, entries):
            zf.writestr(_entry_info(rel, st, prefix, method), data, compresslevel=level)
    return len(files)


def build_archive(
    root: Path,
    pattern: str = DEFAULT_PATTERN,
    exclude: Iterable[str] = (),
    compression: str = "DEFLATE",
    compression_level: int | None = 6,
    prefix: str = "",
    max_workers: int = 4,
) -> BundleArchive:
    """生成完整写入内存的归档句柄"""
    buf = io.BytesIO()
    stream_archive(
        root, buf, pattern=pattern, exclude=exclude,
        compression=compression, compression_level=compression_level,
        prefix=prefix, max_workers=max_workers,
    )
    return BundleArchive.load(buf.getvalue())
