"""depbundle - 依赖包打包缓存工具"""

__version__ = "0.3.0"
