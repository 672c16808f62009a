"""打包器测试 - TarballPacker 可复现 + NpmPacker 输出解析"""

from __future__ import annotations

import json
import os
import tarfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from depbundle.core.exceptions import PackagingError
from depbundle.services.bundle.packer import NpmPacker, TarballPacker
from depbundle.utils.shell import CommandResult


class TestTarballPacker:
    def test_pack_names_and_contents(self, local_package: Path, tmp_path: Path) -> None:
        (local_package / "node_modules" / "x").mkdir(parents=True)
        (local_package / "node_modules" / "x" / "f.js").write_text("skip")
        art = TarballPacker().pack(local_package, tmp_path / "out")
        assert art.filename == "local-package-1.0.0.tgz"
        assert art.integrity.startswith("sha512-")
        assert art.path == tmp_path / "out" / art.filename
        with tarfile.open(art.path, "r:gz") as tf:
            assert sorted(tf.getnames()) == ["package/README.md", "package/package.json"]

    def test_same_content_same_integrity(self, local_package: Path, tmp_path: Path) -> None:
        first = TarballPacker().pack(local_package, tmp_path / "a")
        os.utime(local_package / "README.md", (1, 1))
        second = TarballPacker().pack(local_package, tmp_path / "b")
        assert first.integrity == second.integrity

    def test_changed_content_changes_integrity(self, local_package: Path, tmp_path: Path) -> None:
        first = TarballPacker().pack(local_package, tmp_path / "a")
        (local_package / "README.md").write_text("changed: test\n")
        second = TarballPacker().pack(local_package, tmp_path / "a")
        assert first.integrity != second.integrity
        assert first.filename == second.filename

    def test_scoped_name_sanitized(self, make_package, tmp_path: Path) -> None:
        src = make_package(tmp_path / "scoped", name="@acme/util")
        assert TarballPacker().pack(src, tmp_path).filename == "acme-util-1.0.0.tgz"

    def test_missing_dir_raises(self, tmp_path: Path) -> None:
        with pytest.raises(PackagingError, match="不存在"):
            TarballPacker().pack(tmp_path / "missing", tmp_path)

    def test_without_package_json(self, tmp_path: Path) -> None:
        src = tmp_path / "bare"
        src.mkdir()
        (src / "index.js").write_text("1")
        assert TarballPacker().pack(src, tmp_path).filename == "bare-0.0.0.tgz"


class TestNpmPacker:
    def _executor(self, rc: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
        executor = MagicMock()
        executor.execute.return_value = CommandResult(returncode=rc, stdout=stdout, stderr=stderr)
        return executor

    def test_parses_report(self, tmp_path: Path) -> None:
        report = [{"filename": "lib-1.0.0.tgz", "integrity": "sha512-abc"}]
        executor = self._executor(stdout=json.dumps(report))
        art = NpmPacker(executor).pack(Path("/src/lib"), tmp_path)
        assert art.filename == "lib-1.0.0.tgz"
        assert art.integrity == "sha512-abc"
        cmd = executor.execute.call_args.args[0]
        assert cmd == ["npm", "pack", "/src/lib", "--json", "--pack-destination", str(tmp_path)]
        assert executor.execute.call_args.kwargs["cwd"] == str(tmp_path)

    def test_failure_raises(self, tmp_path: Path) -> None:
        executor = self._executor(rc=1, stderr="ENOENT")
        with pytest.raises(PackagingError, match="ENOENT"):
            NpmPacker(executor).pack(Path("/src/lib"), tmp_path)

    @pytest.mark.parametrize("stdout", ["not json", "[]", '[{"filename": "x.tgz"}]'])
    def test_bad_report_raises(self, tmp_path: Path, stdout: str) -> None:
        with pytest.raises(PackagingError, match="无法解析"):
            NpmPacker(self._executor(stdout=stdout)).pack(Path("/src/lib"), tmp_path)
