"""NpmInstaller 测试"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from depbundle.core.exceptions import InstallationError
from depbundle.services.bundle.installer import NpmInstaller
from depbundle.utils.shell import CommandResult


def _executor(rc: int = 0, stderr: str = "") -> MagicMock:
    executor = MagicMock()
    executor.execute.return_value = CommandResult(returncode=rc, stdout="", stderr=stderr)
    return executor


class TestNpmInstaller:
    @pytest.mark.parametrize("production,expected", [
        (True, ["npm", "install", "--no-package-lock", "--omit=dev"]),
        (False, ["npm", "install", "--no-package-lock"]),
    ])
    def test_command(self, tmp_path: Path, production: bool, expected: list[str]) -> None:
        executor = _executor()
        NpmInstaller(executor).install(tmp_path, production)
        executor.execute.assert_called_once_with(expected, cwd=str(tmp_path))

    def test_custom_npm(self) -> None:
        assert NpmInstaller(_executor(), npm="/opt/npm")._command(True)[0] == "/opt/npm"

    def test_nonzero_exit_raises(self, tmp_path: Path) -> None:
        with pytest.raises(InstallationError, match="退出码 2") as exc:
            NpmInstaller(_executor(rc=2, stderr="E404")).install(tmp_path, True)
        assert exc.value.returncode == 2
