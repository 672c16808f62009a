"""共享 fixture — 模拟 npm install 的安装器 + 本地依赖目录构造

FakeInstaller 读取缓存条目中的 package.json:
  - 注册表依赖: 生成 node_modules/<name>/{package.json,README.md}
  - file:./x.tgz 依赖: 解压 tarball 的 package/ 内容到 node_modules/<name>/
无需真实 npm 与网络。
"""

from __future__ import annotations

import json
import tarfile
from pathlib import Path

import pytest

from depbundle.core.exceptions import InstallationError


class FakeInstaller:
    """记录调用次数的假安装器"""

    def __init__(self, fail: bool = False) -> None:
        self.calls: list[tuple[Path, bool]] = []
        self.fail = fail

    def install(self, target_dir: Path, production: bool) -> None:
        self.calls.append((target_dir, production))
        if self.fail:
            raise InstallationError("npm 退出码 1: boom", returncode=1)
        doc = json.loads((target_dir / "package.json").read_text(encoding="utf-8"))
        modules = target_dir / "node_modules"
        for key in ("bundledDependencies", "dependencies", "optionalDependencies",
                    "peerDependencies", "devDependencies"):
            for name, spec in (doc.get(key) or {}).items():
                dest = modules / name
                dest.mkdir(parents=True, exist_ok=True)
                if spec.startswith("file:"):
                    self._extract(target_dir / spec[len("file:"):], dest)
                else:
                    (dest / "package.json").write_text(
                        json.dumps({"name": name, "version": spec}), encoding="utf-8",
                    )
                    (dest / "README.md").write_text(f"# {name}\n", encoding="utf-8")

    @staticmethod
    def _extract(tarball: Path, dest: Path) -> None:
        with tarfile.open(tarball, "r:gz") as tf:
            for member in tf.getmembers():
                if not member.isfile():
                    continue
                rel = member.name.split("/", 1)[1]
                out = dest / rel
                out.parent.mkdir(parents=True, exist_ok=True)
                src = tf.extractfile(member)
                assert src is not None
                out.write_bytes(src.read())


@pytest.fixture()
def fake_installer() -> FakeInstaller:
    return FakeInstaller()


@pytest.fixture()
def failing_installer() -> FakeInstaller:
    return FakeInstaller(fail=True)


def _make_local_package(root: Path, name: str = "local-package", readme: str = "hello\n") -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "package.json").write_text(
        json.dumps({"name": name, "version": "1.0.0"}), encoding="utf-8",
    )
    (root / "README.md").write_text(readme, encoding="utf-8")
    return root


@pytest.fixture()
def make_package():
    """工厂: 在指定目录创建一个本地依赖（package.json + README.md）"""
    return _make_local_package


@pytest.fixture()
def local_package(tmp_path: Path) -> Path:
    return _make_local_package(tmp_path / "project" / "local-package")
