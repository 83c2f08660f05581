"""
别名表加载器 - 读取乐谱别名配置（YAML）

职责：
- 按文件名（去扩展名）查找乐谱别名
- 精确名称优先，其次按正则模式匹配
- 缓存加载结果（避免重复解析）

文件格式：
    names:
      IMG_0001: bach-bwv1007
    patterns:
      - "scan-\\d+-(.+)"      # 第一个分组即别名

使用方式：
    aliases = load_aliases("config/aliases.yaml")
    aliases.get_alias("scan-001-chopin")  # -> "chopin"
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field


class AliasTable(BaseModel):
    """乐谱别名表"""

    names: dict[str, str] = Field(default_factory=dict)
    patterns: list[str] = Field(default_factory=list)

    def get_alias(self, name: str) -> str | None:
        """查找别名，未定义时返回None"""
        if name in self.names:
            return self.names[name]

        for pattern in self.patterns:
            match = re.fullmatch(pattern, name)
            if match:
                return match.group(1) if match.groups() else match.group(0)

        return None


@lru_cache(maxsize=8)
def load_aliases(path: str | Path | None = None) -> AliasTable:
    """加载并缓存别名表（文件不存在时返回空表）"""
    if path is None:
        return AliasTable()

    alias_path = Path(path)
    if not alias_path.exists():
        return AliasTable()

    with open(alias_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return AliasTable(**data)
