"""
运行期配置 - 读取 config/omr_cli.yaml

职责：
- 加载存储路径/日志/引擎/任务调度等运行参数
- 提供环境变量覆盖机制（OMR_ 前缀，嵌套用 __ 分隔）
- 类型安全的配置访问
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

DEFAULT_CONFIG_PATH = Path("config/omr_cli.yaml")


class LoggingConfig(BaseModel):
    """日志配置"""

    log_level: str = "INFO"
    log_to_file: bool = True
    log_format: str = "%(asctime)s %(levelname)s [%(omr_context)s] %(name)s: %(message)s"


class EngineConfig(BaseModel):
    """识别引擎配置"""

    factory: str = "omr_cli.engine.dry_run:create_engine"


class RunnerConfig(BaseModel):
    """任务序列调度配置"""

    stop_on_error: bool = False
    stop_on_cancel: bool = True
    report_file: Path | None = None


class RuntimeConfig(BaseSettings):
    """运行期配置（支持环境变量覆盖）"""

    # 基础路径
    storage_dir: Path = Path("storage")
    alias_table_path: Path | None = None

    # 各子配置
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    runner: RunnerConfig = Field(default_factory=RunnerConfig)

    model_config = {
        "env_prefix": "OMR_",
        "env_nested_delimiter": "__",
        "arbitrary_types_allowed": True,
    }

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> RuntimeConfig:
        """从YAML文件加载配置"""
        path = Path(yaml_path)
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        runtime_opts = data.get("runtime_options", {})
        values: dict[str, Any] = {
            **cls._extract(runtime_opts, "paths"),
            "logging": cls._extract(runtime_opts, "logging"),
            "engine": cls._extract(runtime_opts, "engine"),
            "runner": cls._extract(runtime_opts, "runner"),
        }

        # 环境变量优先于YAML（构造参数本身优先级最高，需先合并）
        env_values = cls().model_dump(exclude_unset=True)
        config = cls(**cls._merge(values, env_values))

        config._resolve_paths(base_dir=path.parent)
        return config

    @staticmethod
    def _extract(data: dict[str, Any], key: str) -> dict[str, Any]:
        """提取并展平配置"""
        section = data.get(key) or {}
        result = {}
        for k, v in section.items():
            if isinstance(v, dict) and "default" in v:
                result[k] = v["default"]
            elif not isinstance(v, dict):
                result[k] = v
        return result

    @staticmethod
    def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """按键递归合并，override 优先"""
        result = dict(base)
        for k, v in override.items():
            if isinstance(v, dict) and isinstance(result.get(k), dict):
                result[k] = RuntimeConfig._merge(result[k], v)
            else:
                result[k] = v
        return result

    def _resolve_paths(self, base_dir: Path) -> None:
        """别名表相对路径基于配置文件所在目录解析"""
        if self.alias_table_path and not self.alias_table_path.is_absolute():
            self.alias_table_path = (base_dir / self.alias_table_path).resolve()

    def get_book_dir(self, radix: str) -> Path:
        """获取某个乐谱的默认存储目录"""
        return self.storage_dir / radix


# 全局配置实例
_config: RuntimeConfig | None = None


def get_config() -> RuntimeConfig:
    """获取全局配置（惰性加载）"""
    global _config
    if _config is None:
        _config = RuntimeConfig.from_yaml(DEFAULT_CONFIG_PATH)
    return _config


def reload_config(yaml_path: str | Path | None = None) -> RuntimeConfig:
    """重新加载配置"""
    global _config
    path = yaml_path or DEFAULT_CONFIG_PATH
    _config = RuntimeConfig.from_yaml(path)
    return _config
