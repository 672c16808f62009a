"""依赖安装器

安装器接口: install(target_dir, production) -> None
按 target_dir 下已写好的 package.json 安装依赖，生成 node_modules 目录树。
异常退出抛 InstallationError，本模块内不重试。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from depbundle.core.exceptions import InstallationError
from depbundle.utils.shell import CommandExecutor, LocalExecutor

logger = logging.getLogger(__name__)


class Installer(Protocol):
    """安装器协议"""

    def install(self, target_dir: Path, production: bool) -> None:
        ...


class NpmInstaller:
    """通过 npm install 安装依赖，工作目录经 cwd 传入"""

    def __init__(self, executor: CommandExecutor | None = None, npm: str = "npm") -> None:
        self.executor = executor or LocalExecutor()
        self.npm = npm

    def _command(self, production: bool) -> list[str]:
        cmd = [self.npm, "install", "--no-package-lock"]
        if production:
            cmd.append("--omit=dev")
        return cmd

    def install(self, target_dir: Path, production: bool) -> None:
        cmd = self._command(production)
        logger.info("  安装依赖: %s (cwd=%s)", " ".join(cmd), target_dir)
        r = self.executor.execute(cmd, cwd=str(target_dir))
        if not r.success:
            raise InstallationError(
                f"npm 退出码 {r.returncode}: {r.stderr[:500]}",
                returncode=r.returncode,
            )
