"""
识别引擎加载 - 按配置的工厂路径创建引擎

配置项 engine.factory 形如 "package.module:callable"，
callable 接收 RuntimeConfig 并返回 IEngine 实例。
"""

from __future__ import annotations

import importlib
import logging

from ..config import RuntimeConfig
from ..interfaces import EngineConfigError, IEngine

logger = logging.getLogger(__name__)


def load_engine(config: RuntimeConfig) -> IEngine:
    """创建识别引擎"""
    factory_path = config.engine.factory
    module_name, _, attr = factory_path.partition(":")
    if not module_name or not attr:
        raise EngineConfigError(f"引擎工厂格式错误: {factory_path} (应为 module:callable)")

    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise EngineConfigError(f"无法加载引擎工厂 {factory_path}: {e}") from e

    engine = factory(config)
    if not isinstance(engine, IEngine):
        raise EngineConfigError(f"引擎工厂返回类型错误: {type(engine).__name__}")

    logger.debug(f"识别引擎: {type(engine).__name__}")
    return engine
