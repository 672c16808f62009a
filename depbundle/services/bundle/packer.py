"""本地依赖打包器

打包步骤接口: pack(source_dir, dest_dir) -> PackedArtifact

实现:
- NpmPacker: 调用 `npm pack --json`，产物与完整性摘要由 npm 给出
- TarballPacker: 纯 Python 实现，生成可复现的 .tgz（条目排序、
  时间戳和属主归零），目录内容不变时完整性摘要不变
"""

from __future__ import annotations

import base64
import gzip
import hashlib
import io
import json
import logging
import re
import tarfile
from pathlib import Path
from typing import Protocol

from depbundle.core.exceptions import PackagingError
from depbundle.core.models import PackedArtifact
from depbundle.utils.shell import CommandExecutor, LocalExecutor

logger = logging.getLogger(__name__)

# 打包时跳过的目录
_SKIP_DIRS = {"node_modules", ".git"}
_UNSAFE_NAME_RE = re.compile(r"[^a-zA-Z0-9._-]+")


class Packer(Protocol):
    """打包步骤协议"""

    def pack(self, source_dir: Path, dest_dir: Path) -> PackedArtifact:
        ...


def safe_name(name: str) -> str:
    """将包名转为可用作文件名的形式（去掉 scope 的 @ 和开头的点，非法字符替换为 -）"""
    return _UNSAFE_NAME_RE.sub("-", name.lstrip("@")).lstrip(".") or "package"


def sri_integrity(data: bytes) -> str:
    """计算 SRI 格式的 sha512 完整性摘要"""
    return "sha512-" + base64.b64encode(hashlib.sha512(data).digest()).decode("ascii")


class NpmPacker:
    """通过 npm pack 打包本地依赖"""

    def __init__(self, executor: CommandExecutor | None = None, npm: str = "npm") -> None:
        self.executor = executor or LocalExecutor()
        self.npm = npm

    def pack(self, source_dir: Path, dest_dir: Path) -> PackedArtifact:
        cmd = [
            self.npm, "pack", str(source_dir),
            "--json", "--pack-destination", str(dest_dir),
        ]
        r = self.executor.execute(cmd, cwd=str(dest_dir))
        if not r.success:
            raise PackagingError(
                f"npm pack 失败 (rc={r.returncode}): {source_dir} - {r.stderr[:500]}"
            )
        try:
            report = json.loads(r.stdout)
            entry = report[0] if isinstance(report, list) else report
            filename = str(entry["filename"])
            integrity = str(entry["integrity"])
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise PackagingError(f"无法解析 npm pack 输出: {source_dir} - {e}") from e
        # 部分 npm 版本会把 scope 的 "/" 写进文件名
        filename = filename.replace("/", "-").lstrip("@")
        return PackedArtifact(
            filename=filename, integrity=integrity, path=dest_dir / filename,
        )


class TarballPacker:
    """纯 Python 的可复现 tarball 打包器"""

    def pack(self, source_dir: Path, dest_dir: Path) -> PackedArtifact:
        if not source_dir.is_dir():
            raise PackagingError(f"本地依赖目录不存在: {source_dir}")

        name, version = self._read_meta(source_dir)
        filename = f"{safe_name(name)}-{version}.tgz"
        try:
            data = self._build_tarball(source_dir)
            dest = dest_dir / filename
            dest_dir.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(data)
        except OSError as e:
            raise PackagingError(f"打包失败: {source_dir} - {e}") from e

        integrity = sri_integrity(data)
        logger.debug("已打包 %s -> %s (%s)", source_dir, filename, integrity[:20])
        return PackedArtifact(filename=filename, integrity=integrity, path=dest)

    @staticmethod
    def _read_meta(source_dir: Path) -> tuple[str, str]:
        pkg_file = source_dir / "package.json"
        name, version = source_dir.name, "0.0.0"
        if pkg_file.is_file():
            try:
                meta = json.loads(pkg_file.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                raise PackagingError(f"package.json 无法解析: {pkg_file} - {e}") from e
            if isinstance(meta, dict):
                name = str(meta.get("name") or name)
                version = str(meta.get("version") or version)
        return name, version

    @staticmethod
    def _iter_files(source_dir: Path) -> list[Path]:
        files = []
        for p in source_dir.rglob("*"):
            rel = p.relative_to(source_dir)
            if _SKIP_DIRS.intersection(rel.parts):
                continue
            if p.is_file():
                files.append(p)
        return sorted(files, key=lambda p: p.relative_to(source_dir).as_posix())

    def _build_tarball(self, source_dir: Path) -> bytes:
        buf = io.BytesIO()
        with gzip.GzipFile(filename="", fileobj=buf, mode="wb", mtime=0) as gz:
            with tarfile.open(fileobj=gz, mode="w", format=tarfile.PAX_FORMAT) as tf:
                for path in self._iter_files(source_dir):
                    arcname = "package/" + path.relative_to(source_dir).as_posix()
                    info = tarfile.TarInfo(arcname)
                    content = path.read_bytes()
                    info.size = len(content)
                    info.mode = 0o755 if path.stat().st_mode & 0o111 else 0o644
                    info.mtime = 0
                    info.uid = info.gid = 0
                    info.uname = info.gname = ""
                    tf.addfile(info, io.BytesIO(content))
        return buf.getvalue()
