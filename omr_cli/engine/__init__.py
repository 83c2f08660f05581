"""
识别引擎绑定

子模块：
- loader: 按配置创建引擎
- dry_run: 演练引擎（记录步骤、保存状态，不做识别）
"""

from .dry_run import DryRunBook, DryRunEngine, DryRunStub, create_engine
from .loader import load_engine

__all__ = [
    "load_engine",
    "create_engine",
    "DryRunEngine",
    "DryRunBook",
    "DryRunStub",
]
