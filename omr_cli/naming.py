"""
乐谱命名 - 由源文件路径推导 radix（乐谱简名）

规则：
1. 去掉文件名的最后一个扩展名
2. 在别名表中查找该名称
3. 别名存在且非空时使用别名，否则使用去扩展名后的名称

测试要点：
- test_radix_from_stem: 无别名
- test_radix_from_alias: 有别名
- test_empty_alias_ignored: 空别名视为未定义
- test_radix_idempotent: 幂等
"""

from __future__ import annotations

from pathlib import Path

from .config import AliasTable


def name_sans_extension(path: str | Path) -> str:
    """文件名去掉最后一个扩展名"""
    return Path(path).stem


def resolve_radix(path: str | Path, aliases: AliasTable | None = None) -> str:
    """推导乐谱radix"""
    name = name_sans_extension(path)
    alias = aliases.get_alias(name) if aliases else None
    return alias if alias else name
