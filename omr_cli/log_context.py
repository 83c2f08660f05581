"""
日志上下文 - 按乐谱/页划分诊断日志

职责：
1. 全局日志配置（控制台输出，格式含上下文字段）
2. 维护进程级上下文栈：乐谱 → 页
3. 乐谱上下文可附加独立日志文件（<folder>/<radix>.log）
4. 保证每条退出路径（含取消/异常）都出栈

使用方式：
    log_ctx = get_log_context()
    with log_ctx.book(book.radix, folder):
        with log_ctx.stub(stub):
            stub.ensure_step(step)

测试要点：
- test_book_context_push_pop: 入栈出栈平衡
- test_stub_context_label: 上下文标签
- test_context_popped_on_error: 异常时出栈
- test_book_log_file: 乐谱日志文件
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import LoggingConfig
    from .interfaces import ISheetStub

logger = logging.getLogger(__name__)

_LOGGING_INITIALIZED = False


class ContextFilter(logging.Filter):
    """为日志记录注入 omr_context 字段"""

    def __init__(self, log_context: LogContext):
        super().__init__()
        self.log_context = log_context

    def filter(self, record: logging.LogRecord) -> bool:
        record.omr_context = self.log_context.label
        return True


class LogContext:
    """进程级日志上下文栈（单线程顺序使用）"""

    def __init__(self, log_to_file: bool = False, log_format: str | None = None):
        self.log_to_file = log_to_file
        self.log_format = log_format or "%(asctime)s %(levelname)s [%(omr_context)s] %(name)s: %(message)s"
        self._stack: list[str] = []
        self.pushes = 0
        self.pops = 0

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def label(self) -> str:
        """当前上下文标签：'' / 'radix' / 'radix#N'"""
        return "".join(self._stack)

    def _push(self, entry: str) -> None:
        self._stack.append(entry)
        self.pushes += 1

    def _pop(self) -> None:
        self._stack.pop()
        self.pops += 1

    @contextmanager
    def book(self, radix: str, folder: Path | None = None) -> Iterator[None]:
        """乐谱级上下文"""
        handler = self._open_book_file(radix, folder) if self.log_to_file and folder else None
        self._push(radix)
        try:
            yield
        finally:
            self._pop()
            if handler is not None:
                logging.getLogger().removeHandler(handler)
                handler.close()

    @contextmanager
    def stub(self, stub: ISheetStub) -> Iterator[None]:
        """页级上下文"""
        self._push(f"#{stub.number}")
        try:
            yield
        finally:
            self._pop()

    def _open_book_file(self, radix: str, folder: Path) -> logging.Handler:
        log_file = folder / f"{radix}.log"
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.addFilter(ContextFilter(self))
        handler.setFormatter(logging.Formatter(self.log_format))
        logging.getLogger().addHandler(handler)
        logger.debug(f"乐谱日志文件: {log_file}")
        return handler


# 全局上下文实例
_log_context: LogContext | None = None


def get_log_context() -> LogContext:
    """获取全局日志上下文"""
    global _log_context
    if _log_context is None:
        _log_context = LogContext()
    return _log_context


def configure_logging(config: LoggingConfig) -> LogContext:
    """配置全局日志（控制台），返回全局日志上下文"""
    global _LOGGING_INITIALIZED

    log_context = get_log_context()
    log_context.log_to_file = config.log_to_file
    log_context.log_format = config.log_format

    root = logging.getLogger()
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    if not _LOGGING_INITIALIZED:
        root.setLevel(logging.DEBUG)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.addFilter(ContextFilter(log_context))
        console_handler.setFormatter(logging.Formatter(config.log_format))
        root.addHandler(console_handler)

        _LOGGING_INITIALIZED = True
    else:
        for handler in root.handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                handler.setLevel(level)

    return log_context
