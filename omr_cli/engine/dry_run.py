"""
演练引擎 - 不做识别的参考引擎实现

职责：
1. 按页记录已到达的识别步骤（逐步推进，幂等）
2. 乐谱状态以YAML保存（.omr），保存时可备份旧文件（<name>.bak）
3. 打印/导出写出占位文件（文本摘要 / MusicXML骨架）
4. 执行YAML脚本（加载 → 推进步骤 → 可选保存）

演练参数（-option）：
- dryrun.sheets=N       每个图像文件生成N页（默认1）
- dryrun.invalid=1,3    标记为无效的页
- dryrun.cancel_at=STEP 某页到达该步骤时取消处理

脚本格式：
    input: scans/a.png      # 或 book: storage/a/a.omr
    step: BINARY
    sheets: [1, 2]
    save: true

测试要点：
- test_ensure_step_idempotent: 步骤推进幂等
- test_store_with_backup: 保存备份
- test_load_book_roundtrip: 保存后重新加载
- test_cancel_at: 取消注入
- test_run_script: 执行脚本
"""

from __future__ import annotations

import logging
import shutil
import xml.etree.ElementTree as ET
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from ..config import RuntimeConfig, load_aliases
from ..interfaces import (
    IBook,
    IEngine,
    ISheetStub,
    LoadError,
    ParameterError,
    ProcessingCancellationError,
)
from ..models import STEP_ORDER, Step
from ..naming import resolve_radix

logger = logging.getLogger(__name__)

BOOK_FORMAT = "omr-cli/dry-run"


class DryRunStub(ISheetStub):
    """演练页"""

    def __init__(
        self,
        book: DryRunBook,
        number: int,
        valid: bool = True,
        reached_step: Step | None = None,
    ):
        self._book = book
        self._number = number
        self._valid = valid
        self._reached_step = reached_step

    @property
    def number(self) -> int:
        return self._number

    @property
    def valid(self) -> bool:
        return self._valid

    @property
    def book(self) -> DryRunBook:
        return self._book

    @property
    def reached_step(self) -> Step | None:
        return self._reached_step

    def ensure_step(self, step: Step) -> None:
        """逐步推进到目标步骤（已到达则不处理）"""
        if self._reached_step is not None and not self._reached_step.is_before(step):
            return

        start = 0 if self._reached_step is None else self._reached_step.order + 1

        for current in STEP_ORDER[start:step.order + 1]:
            if current == self._book.cancel_at:
                raise ProcessingCancellationError(f"{self._book.radix}#{self._number} 在 {current} 取消")
            logger.debug(f"{self._book.radix}#{self._number} 完成步骤 {current}")
            self._reached_step = current

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self._number,
            "valid": self._valid,
            "reached_step": self._reached_step.value if self._reached_step else None,
        }


class DryRunBook(IBook):
    """演练乐谱"""

    def __init__(
        self,
        radix: str,
        source: Path,
        book_dir: Path,
        sheet_count: int = 1,
        invalid: Sequence[int] = (),
        cancel_at: Step | None = None,
    ):
        self._radix = radix
        self.source = source
        self.book_dir = book_dir
        self.sheet_count = sheet_count
        self.invalid = set(invalid)
        self.cancel_at = cancel_at
        self._stubs: list[DryRunStub] = []
        self.closed = False
        self.tabs_created = False

    @property
    def radix(self) -> str:
        return self._radix

    @property
    def stubs(self) -> list[DryRunStub]:
        return list(self._stubs)

    @property
    def default_book_path(self) -> Path:
        return self.book_dir / f"{self._radix}.omr"

    def create_stubs(self, sheet_ids: Sequence[int] | None = None) -> None:
        numbers = range(1, self.sheet_count + 1)
        self._stubs = [
            DryRunStub(self, n, valid=n not in self.invalid)
            for n in numbers
            if sheet_ids is None or n in sheet_ids
        ]
        logger.debug(f"{self._radix} 创建 {len(self._stubs)} 页")

    def create_stubs_tabs(self) -> None:
        self.tabs_created = True

    def store(self, path: Path, backup: bool = False) -> Path:
        """保存乐谱状态（YAML）"""
        path.parent.mkdir(parents=True, exist_ok=True)

        if backup and path.exists():
            backup_path = path.with_name(path.name + ".bak")
            shutil.move(str(path), str(backup_path))
            logger.info(f"已备份 {path} -> {backup_path}")

        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, allow_unicode=True, sort_keys=False)

        logger.info(f"已保存 {self._radix} -> {path}")
        return path

    def print_to(self, path: Path) -> Path:
        """打印占位：文本摘要"""
        lines = [f"book: {self._radix}", f"source: {self.source}"]
        for stub in self._stubs:
            step = stub.reached_step.value if stub.reached_step else "-"
            lines.append(f"sheet {stub.number}: valid={stub.valid} step={step}")
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    def export_to(self, path: Path) -> Path:
        """导出占位：MusicXML骨架（每个有效页一个小节）"""
        score = ET.Element("score-partwise", version="3.1")
        work = ET.SubElement(score, "work")
        ET.SubElement(work, "work-title").text = self._radix

        part_list = ET.SubElement(score, "part-list")
        score_part = ET.SubElement(part_list, "score-part", id="P1")
        ET.SubElement(score_part, "part-name").text = "Music"

        part = ET.SubElement(score, "part", id="P1")
        for index in range(1, len(self.valid_stubs) + 1):
            ET.SubElement(part, "measure", number=str(index), implicit="yes")

        ET.ElementTree(score).write(path, encoding="utf-8", xml_declaration=True)
        return path

    def close(self) -> None:
        self.closed = True
        logger.debug(f"已关闭 {self._radix}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": BOOK_FORMAT,
            "radix": self._radix,
            "source": str(self.source),
            "sheet_count": self.sheet_count,
            "sheets": [stub.to_dict() for stub in self._stubs],
        }

    def load_stubs(self, sheets: Sequence[Mapping[str, Any]]) -> None:
        self._stubs = [
            DryRunStub(
                self,
                int(s["number"]),
                valid=bool(s.get("valid", True)),
                reached_step=Step(s["reached_step"]) if s.get("reached_step") else None,
            )
            for s in sorted(sheets, key=lambda s: int(s["number"]))
        ]


class DryRunEngine(IEngine):
    """演练引擎实现"""

    def __init__(self, config: RuntimeConfig | None = None):
        self.config = config or RuntimeConfig()
        self.aliases = load_aliases(self.config.alias_table_path)
        self.sheet_count = 1
        self.invalid: list[int] = []
        self.cancel_at: Step | None = None

    def apply_options(self, options: Mapping[str, str]) -> None:
        """读取 dryrun.* 常量，其余忽略

        Raises:
            ParameterError: 常量取值非法
        """
        try:
            if "dryrun.sheets" in options:
                self.sheet_count = int(options["dryrun.sheets"])
                if self.sheet_count < 1:
                    raise ValueError(f"页数必须为正整数: {self.sheet_count}")
            if "dryrun.invalid" in options:
                self.invalid = [int(n) for n in options["dryrun.invalid"].split(",") if n.strip()]
            if "dryrun.cancel_at" in options:
                value = options["dryrun.cancel_at"]
                self.cancel_at = Step.parse(value) if value else None
        except ValueError as e:
            raise ParameterError(f"-option 取值错误: {e}") from e

    def _new_book(self, radix: str, source: Path, sheet_count: int | None = None) -> DryRunBook:
        return DryRunBook(
            radix=radix,
            source=source,
            book_dir=self.config.get_book_dir(radix),
            sheet_count=sheet_count or self.sheet_count,
            invalid=self.invalid,
            cancel_at=self.cancel_at,
        )

    def load_input(self, path: Path) -> DryRunBook:
        if not path.is_file():
            raise LoadError(f"图像文件不可读: {path}")
        return self._new_book(resolve_radix(path, self.aliases), path)

    def load_book(self, path: Path) -> DryRunBook:
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise LoadError(f"乐谱文件读取失败 {path}: {e}") from e

        if not isinstance(data, dict) or data.get("format") != BOOK_FORMAT:
            raise LoadError(f"不是演练乐谱文件: {path}")

        book = self._new_book(
            data.get("radix") or resolve_radix(path, self.aliases),
            Path(data.get("source", path)),
            sheet_count=int(data.get("sheet_count", 0)) or None,
        )
        book.load_stubs(data.get("sheets") or [])
        return book

    def load_script(self, path: Path) -> DryRunBook:
        """执行脚本：加载 → 创建页 → 推进步骤 → 可选保存"""
        try:
            with open(path, encoding="utf-8") as f:
                script = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise LoadError(f"脚本读取失败 {path}: {e}") from e

        if not isinstance(script, dict):
            raise LoadError(f"脚本格式错误: {path}")

        base = path.parent
        if script.get("book"):
            book = self.load_book(base / script["book"])
        elif script.get("input"):
            book = self.load_input(base / script["input"])
        else:
            raise LoadError(f"脚本缺少 book/input: {path}")

        try:
            if not book.stubs:
                book.create_stubs(script.get("sheets"))

            if script.get("step"):
                step = Step.parse(script["step"])
                for stub in book.valid_stubs:
                    stub.ensure_step(step)

            if script.get("save"):
                book.store(book.default_book_path, backup=True)
        finally:
            book.close()

        logger.info(f"脚本执行完成: {path}")
        return book


def create_engine(config: RuntimeConfig) -> DryRunEngine:
    """引擎工厂（engine.factory 默认值）"""
    return DryRunEngine(config)
