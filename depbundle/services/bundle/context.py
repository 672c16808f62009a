"""缓存上下文存储

上下文文件 context.yml 位于缓存条目目录内，记录本地依赖的完整性摘要
和归档实际使用的复合指纹。

读取区分三种情况:
  - 文件不存在: 正常的未命中路径，返回空上下文
  - 内容损坏或结构不符: 记录告警，返回空上下文
  - 其他 IO 错误: 抛 ContextIOError
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from depbundle.core.exceptions import ContextIOError
from depbundle.core.models import CacheContext
from depbundle.utils.file_io import load_yaml, save_yaml

logger = logging.getLogger(__name__)

CONTEXT_FILE = "context.yml"


@dataclass
class ContextLoad:
    """上下文读取结果"""

    context: CacheContext
    found: bool


class ContextStore:
    """缓存上下文读写"""

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def for_entry(cls, cache_dir: Path) -> ContextStore:
        return cls(cache_dir / CONTEXT_FILE)

    def read(self) -> ContextLoad:
        """读取上下文，区分“存在”与“不存在”"""
        if not self.path.exists():
            return ContextLoad(context=CacheContext(), found=False)
        try:
            context = CacheContext.from_dict(load_yaml(self.path))
        except (yaml.YAMLError, ValueError) as e:
            logger.warning("上下文文件损坏，按空上下文处理: %s (%s)", self.path, e)
            return ContextLoad(context=CacheContext(), found=False)
        except FileNotFoundError:
            return ContextLoad(context=CacheContext(), found=False)
        except OSError as e:
            raise ContextIOError(f"读取上下文失败: {self.path} - {e}") from e
        return ContextLoad(context=context, found=True)

    def load(self) -> CacheContext:
        """读取上下文，不存在时返回空上下文"""
        return self.read().context

    def save(self, context: CacheContext) -> None:
        """写回上下文（原子写入）"""
        try:
            save_yaml(self.path, context.to_dict())
        except (OSError, yaml.YAMLError) as e:
            raise ContextIOError(f"写入上下文失败: {self.path} - {e}") from e
        logger.debug("上下文已写入: %s", self.path)
