"""
配置层 - 加载运行期配置与别名表

职责：
- 加载 config/omr_cli.yaml（运行期参数，支持环境变量覆盖）
- 加载乐谱别名表（用于推导 radix）
- 提供类型安全的配置访问接口
"""

from .alias_table import AliasTable, load_aliases
from .runtime_config import (
    EngineConfig,
    LoggingConfig,
    RunnerConfig,
    RuntimeConfig,
    get_config,
    reload_config,
)

__all__ = [
    "AliasTable",
    "load_aliases",
    "RuntimeConfig",
    "LoggingConfig",
    "EngineConfig",
    "RunnerConfig",
    "get_config",
    "reload_config",
]
