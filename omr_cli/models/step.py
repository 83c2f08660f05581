"""
识别步骤定义 - 乐谱识别的有序步骤目录

职责：
1. 定义各步骤的名称与说明（命令行帮助中按顺序列出）
2. 提供步骤先后比较（"确保到达某步骤"依赖顺序）
3. 命令行步骤名解析（大小写不敏感）

测试要点：
- test_step_order: 步骤顺序
- test_parse_case_insensitive: 名称解析
- test_parse_unknown: 未知步骤
"""

from __future__ import annotations

from enum import Enum


class Step(str, Enum):
    """识别步骤枚举（按执行顺序排列）"""
    LOAD = "LOAD"
    BINARY = "BINARY"
    SCALE = "SCALE"
    GRID = "GRID"
    HEADERS = "HEADERS"
    STEM_SEEDS = "STEM_SEEDS"
    BEAMS = "BEAMS"
    LEDGERS = "LEDGERS"
    HEADS = "HEADS"
    STEMS = "STEMS"
    REDUCTION = "REDUCTION"
    CUE_BEAMS = "CUE_BEAMS"
    TEXTS = "TEXTS"
    MEASURES = "MEASURES"
    CHORDS = "CHORDS"
    CURVES = "CURVES"
    SYMBOLS = "SYMBOLS"
    LINKS = "LINKS"
    RHYTHMS = "RHYTHMS"
    PAGE = "PAGE"

    @property
    def description(self) -> str:
        return STEP_DESCRIPTIONS[self]

    @property
    def order(self) -> int:
        """在步骤序列中的位置（从0开始）"""
        return STEP_ORDER.index(self)

    def is_before(self, other: Step) -> bool:
        return self.order < other.order

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str) -> Step:
        """解析步骤名（大小写不敏感）"""
        key = name.strip().upper().replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            known = ", ".join(s.value for s in cls)
            raise ValueError(f"未知步骤: {name} (可选: {known})") from None


STEP_ORDER: list[Step] = list(Step)

STEP_DESCRIPTIONS: dict[Step, str] = {
    Step.LOAD: "Load the sheet (gray) picture",
    Step.BINARY: "Binarize the sheet picture",
    Step.SCALE: "Compute sheet line thickness, interline, beam thickness",
    Step.GRID: "Retrieve staff lines, bar-lines, systems & parts",
    Step.HEADERS: "Retrieve Clef-Key-Time systems headers",
    Step.STEM_SEEDS: "Retrieve stem thickness & seeds for stems",
    Step.BEAMS: "Retrieve beams",
    Step.LEDGERS: "Retrieve ledgers",
    Step.HEADS: "Retrieve note heads",
    Step.STEMS: "Build stems connected to heads & beams",
    Step.REDUCTION: "Reduce structures of heads, stems & beams",
    Step.CUE_BEAMS: "Retrieve cue beams",
    Step.TEXTS: "Call OCR on textual items",
    Step.MEASURES: "Retrieve raw measures from groups of bar lines",
    Step.CHORDS: "Gather notes heads into chords",
    Step.CURVES: "Retrieve slurs, wedges & endings",
    Step.SYMBOLS: "Retrieve fixed-shape symbols",
    Step.LINKS: "Link and reduce symbols",
    Step.RHYTHMS: "Handle rhythms within measures",
    Step.PAGE: "Connect systems within page",
}
