"""
命令行任务 - 脚本/输入图像/乐谱文件三类任务

职责：
1. 构造时推导radix（之后不变）
2. 执行：检查源文件 → 按类型加载乐谱 → 按类型处理
3. 输入图像与乐谱文件共用处理流水线；脚本加载即完成

任务类型为封闭集合（TaskKind），类型差异只体现在加载方式与是否走流水线。

测试要点：
- test_missing_source: 源文件不存在
- test_load_error_propagates: 加载失败直接抛出
- test_script_task_no_processing: 脚本任务不走流水线
- test_book_task_tabs: 有交互界面时展示各页
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ..config import AliasTable
from ..interfaces import IBook, IEngine, ISurface, LoadError, OmrCliError, SourceNotFoundError
from ..log_context import LogContext, get_log_context
from ..models import Parameters
from ..naming import resolve_radix
from .executor import ProcessingPipeline

logger = logging.getLogger(__name__)


class TaskKind(str, Enum):
    """任务类型"""
    SCRIPT = "Script"
    INPUT = "Input"
    BOOK = "Book"


@dataclass
class TaskContext:
    """任务执行上下文（一次命令行调用共享）"""
    engine: IEngine
    params: Parameters
    surface: ISurface | None = None
    log_context: LogContext = field(default_factory=get_log_context)


def _load_script(ctx: TaskContext, path: Path) -> IBook:
    return ctx.engine.load_script(path)


def _load_input(ctx: TaskContext, path: Path) -> IBook:
    return ctx.engine.load_input(path)


def _load_book(ctx: TaskContext, path: Path) -> IBook:
    book = ctx.engine.load_book(path)

    if ctx.surface is not None:
        book.create_stubs_tabs()  # 交互界面中可见

    return book


_LOADERS: dict[TaskKind, Callable[[TaskContext, Path], IBook]] = {
    TaskKind.SCRIPT: _load_script,
    TaskKind.INPUT: _load_input,
    TaskKind.BOOK: _load_book,
}

# 需要经过处理流水线的任务类型
PROCESSED_KINDS = frozenset({TaskKind.INPUT, TaskKind.BOOK})


@dataclass(frozen=True)
class CliTask:
    """命令行任务（作用于一份乐谱）"""
    kind: TaskKind
    path: Path
    radix: str

    @classmethod
    def create(cls, kind: TaskKind, path: str | Path, aliases: AliasTable | None = None) -> CliTask:
        path = Path(path)
        return cls(kind=kind, path=path, radix=resolve_radix(path, aliases))

    def __str__(self) -> str:
        return f"{self.kind.value} {self.path}"

    def execute(self, ctx: TaskContext) -> None:
        """执行任务"""
        # 检查源文件
        if not self.path.exists():
            msg = f"找不到文件: {self.path}"
            logger.warning(msg)
            raise SourceNotFoundError(msg)

        book = self.load(ctx)
        self.process(book, ctx)

    def load(self, ctx: TaskContext) -> IBook:
        """按任务类型获取乐谱"""
        try:
            return _LOADERS[self.kind](ctx, self.path)
        except OmrCliError:
            raise
        except Exception as e:
            raise LoadError(f"加载失败 {self}: {e}") from e

    def process(self, book: IBook, ctx: TaskContext) -> None:
        """处理乐谱（脚本任务加载时已生效，无需处理）"""
        if self.kind not in PROCESSED_KINDS:
            return

        pipeline = ProcessingPipeline(ctx.params, surface=ctx.surface, log_context=ctx.log_context)
        pipeline.process(book)
