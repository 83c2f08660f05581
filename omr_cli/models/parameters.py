"""
命令行参数模型 - 解析完成后的只读参数快照

对应命令行选项：-help/-batch/-step/-option/-script/-input/-book/-sheets
以及 print/export/save 三组（开关/指定文件/指定目录）

约束：
- 解析后不可修改（frozen，集合字段均为 tuple）
- 同一输出动作同时给出文件与目录时，文件优先
- sheets 缺省表示全部页
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .step import Step


class OutputSpec(BaseModel):
    """单个输出动作的参数（开关 + 指定文件 + 指定目录）"""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    file: Path | None = Field(None, description="指定输出文件（优先）")
    folder: Path | None = Field(None, description="指定输出目录（指定文件时忽略）")

    @property
    def requested(self) -> bool:
        """是否需要执行该输出动作"""
        return self.enabled or self.file is not None or self.folder is not None


class Parameters(BaseModel):
    """命令行参数快照"""

    model_config = ConfigDict(frozen=True)

    help_mode: bool = False
    batch_mode: bool = False

    # 目标步骤
    step: Step | None = None

    # 应用常量（key, value），同一 key 只保留最后一次定义
    options: tuple[tuple[str, str], ...] = ()

    # 待处理文件（保持命令行顺序，允许重复）
    script_files: tuple[Path, ...] = ()
    input_files: tuple[Path, ...] = ()
    book_files: tuple[Path, ...] = ()
    arguments: tuple[Path, ...] = Field((), description="尾随参数，按输入文件处理")

    # 指定页（从1开始），None表示全部
    sheets: tuple[int, ...] | None = None

    # 输出动作
    print_spec: OutputSpec = Field(default_factory=OutputSpec)
    export_spec: OutputSpec = Field(default_factory=OutputSpec)
    save_spec: OutputSpec = Field(default_factory=OutputSpec)

    @property
    def option_map(self) -> dict[str, str]:
        """应用常量（副本）"""
        return dict(self.options)

    @property
    def sheet_ids(self) -> tuple[int, ...] | None:
        """去重排序后的页号，None表示全部页"""
        if self.sheets is None:
            return None
        return tuple(sorted(set(self.sheets)))

    def has_outputs(self) -> bool:
        return any(s.requested for s in (self.print_spec, self.export_spec, self.save_spec))
