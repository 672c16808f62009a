"""统一异常体系

所有业务异常继承 DepBundleError。
编排器抛出的异常带有 stage 属性，标明失败发生在哪个阶段；
CLI 层据此输出友好提示。
"""

from __future__ import annotations


class DepBundleError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str, stage: str = "") -> None:
        super().__init__(message)
        self.stage = stage


class ConfigError(DepBundleError):
    """配置文件或选项无效"""

    code = "CONFIG_ERROR"


class ResolutionError(DepBundleError):
    """依赖清单缺失或格式错误"""

    code = "RESOLUTION_ERROR"


class PackagingError(DepBundleError):
    """本地依赖包打包失败"""

    code = "PACKAGING_ERROR"


class InstallationError(DepBundleError):
    """外部安装器异常退出"""

    code = "INSTALLATION_ERROR"

    def __init__(self, message: str, returncode: int | None = None, stage: str = "") -> None:
        super().__init__(message, stage=stage)
        self.returncode = returncode


class ArchiveError(DepBundleError):
    """文件无法读取/压缩，或缓存归档无法解析"""

    code = "ARCHIVE_ERROR"


class ContextIOError(DepBundleError):
    """缓存上下文文件读写失败（文件不存在除外）"""

    code = "CONTEXT_IO_ERROR"
