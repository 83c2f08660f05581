"""
输出动作 - 打印/导出/保存乐谱

职责：
1. 解析目标路径：指定文件 > 指定目录/<radix><ext> > 默认目录/<radix><ext>
2. 按需创建目标目录
3. 针对某一页所属乐谱执行输出

测试要点：
- test_file_overrides_folder: 文件优先于目录
- test_folder_target: 目录输出
- test_default_target: 默认目录输出
- test_save_without_backup: 保存不备份
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..interfaces import IBook, ISheetStub
    from ..models import OutputSpec

logger = logging.getLogger(__name__)


class OutputAction(ABC):
    """输出动作基类"""

    name: str = "output"
    extension: str = ""

    def __init__(self, file: Path | None = None, folder: Path | None = None):
        self.file = Path(file) if file else None
        self.folder = Path(folder) if folder else None

    @classmethod
    def from_spec(cls, spec: OutputSpec) -> OutputAction:
        return cls(spec.file, spec.folder)

    def resolve_target(self, book: IBook) -> Path:
        """确定输出路径"""
        if self.file is not None:
            return self.file

        folder = self.folder if self.folder is not None else book.default_book_path.parent
        return folder / f"{book.radix}{self.extension}"

    def run(self, stub: ISheetStub) -> Path:
        """对某页所属乐谱执行输出"""
        book = stub.book
        target = self.resolve_target(book)
        target.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"{self.name} {book.radix} -> {target}")
        return self._write(book, target)

    @abstractmethod
    def _write(self, book: IBook, target: Path) -> Path:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(file={self.file}, folder={self.folder})"


class PrintAction(OutputAction):
    """打印乐谱（PDF）"""

    name = "打印"
    extension = ".pdf"

    def _write(self, book: IBook, target: Path) -> Path:
        return book.print_to(target)


class ExportAction(OutputAction):
    """导出MusicXML"""

    name = "导出"
    extension = ".mxl"

    def _write(self, book: IBook, target: Path) -> Path:
        return book.export_to(target)


class SaveAction(OutputAction):
    """保存乐谱"""

    name = "保存"
    extension = ".omr"

    def _write(self, book: IBook, target: Path) -> Path:
        return book.store(target, backup=False)
