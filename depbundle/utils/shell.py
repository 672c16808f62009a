"""子进程执行工具

通过 CommandExecutor 协议抽象子进程执行，安装器与打包器都经由它调用 npm，
测试时注入 mock 实现即可，无需 patch subprocess。
工作目录一律通过 cwd 参数传入，从不修改进程当前目录。
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandExecutor(Protocol):
    """命令执行器协议"""

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """执行命令并返回结果"""
        ...


class LocalExecutor:
    """本地子进程执行器（默认实现）"""

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        args = shlex.split(cmd) if isinstance(cmd, str) else cmd
        logger.debug("执行: %s (cwd=%s)", " ".join(args), cwd)
        try:
            r = subprocess.run(
                args, capture_output=True, text=True,
                cwd=cwd, env=env, check=False,
            )
        except FileNotFoundError as e:
            # 可执行文件不存在，按 shell 惯例返回 127
            return CommandResult(returncode=127, stdout="", stderr=str(e))
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout,
            stderr=r.stderr,
        )
