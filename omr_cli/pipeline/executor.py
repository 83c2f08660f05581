"""
处理流水线 - 输入图像与乐谱文件共用的处理流程

职责：
1. 确保默认存储目录存在
2. 打开乐谱级日志上下文（任何退出路径都关闭）
3. 按需创建页（限定指定页）
4. 推进各有效页到目标步骤
5. 按参数执行打印/导出/保存
6. 失败处理：取消时强制保存（带备份）后关闭；其他异常包装后抛出

测试要点：
- test_scenario_input_binary: 输入图像推进到BINARY
- test_scenario_book_sheet_subset: 指定页+打印目录
- test_cancellation_stores_with_backup: 取消时保存备份
- test_failure_closes_without_store: 失败时只关闭
- test_log_context_balanced: 日志上下文入栈出栈平衡
- test_surface_keeps_book_open: 有交互界面时不关闭
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from contextlib import ExitStack
from pathlib import Path

from ..interfaces import IBook, ISheetStub, ISurface, PipelineError, ProcessingCancellationError
from ..log_context import LogContext, get_log_context
from ..models import Parameters, Step
from .actions import ExportAction, OutputAction, PrintAction, SaveAction

logger = logging.getLogger(__name__)


class ProcessingPipeline:
    """乐谱处理流水线"""

    def __init__(
        self,
        params: Parameters,
        surface: ISurface | None = None,
        log_context: LogContext | None = None,
    ):
        self.params = params
        self.surface = surface
        self.log_context = log_context or get_log_context()
        self.cancelled = False
        self.outputs: list[Path] = []

    def process(self, book: IBook) -> None:
        """执行流水线"""
        self.cancelled = False
        folder = book.default_book_path.parent

        with ExitStack() as scopes:
            try:
                self._ensure_folder(folder)
                scopes.enter_context(self.log_context.book(book.radix, folder))
                self._run(book)

            except ProcessingCancellationError:
                logger.warning(f"已取消 {book.radix}")
                self.cancelled = True
                raise

            except Exception as e:
                logger.exception(f"处理异常 {book.radix}: {e}")
                raise PipelineError(f"处理失败 {book.radix}: {e}") from e

            finally:
                self._cleanup(book)

    def _run(self, book: IBook) -> None:
        sheet_ids = self.params.sheet_ids

        # 确保页已创建
        if not book.stubs:
            book.create_stubs(sheet_ids)

        if self.surface is not None:
            book.create_stubs_tabs()
            self.surface.show(book)

        # 目标步骤
        if self.params.step is not None:
            self._reach_step(book, self.params.step, sheet_ids)

        if self.params.has_outputs():
            self._run_outputs(book)

    def _run_outputs(self, book: IBook) -> None:
        """输出动作（打印 → 导出 → 保存）"""
        outputs: list[tuple[bool, OutputAction]] = [
            (self.params.print_spec.requested, PrintAction.from_spec(self.params.print_spec)),
            (self.params.export_spec.requested, ExportAction.from_spec(self.params.export_spec)),
            (self.params.save_spec.requested, SaveAction.from_spec(self.params.save_spec)),
        ]
        for requested, action in outputs:
            if requested:
                self._run_output(book, action)

    def _reach_step(self, book: IBook, step: Step, sheet_ids: Sequence[int] | None) -> None:
        """推进有效页到目标步骤"""
        scope = f"页 {list(sheet_ids)}" if sheet_ids is not None else "全部页"
        logger.info(f"启动 {step} 于乐谱 {book.radix} ({scope})")

        for stub in self.select_stubs(book, sheet_ids):
            with self.log_context.stub(stub):
                stub.ensure_step(step)

    def _run_output(self, book: IBook, action: OutputAction) -> None:
        logger.debug(f"输出动作: {action!r}")
        stub = book.first_valid_stub
        if stub is None:
            raise ValueError(f"乐谱 {book.radix} 没有有效页，无法{action.name}")
        self.outputs.append(action.run(stub))

    def _cleanup(self, book: IBook) -> None:
        """无交互界面时关闭乐谱；取消时先保存当前状态（带备份）

        保存失败只记录日志，不替换原有异常；关闭总会执行。
        """
        if self.surface is not None:
            return

        try:
            if self.cancelled:
                book.store(book.default_book_path, backup=True)
        except Exception as e:
            logger.exception(f"取消后保存失败 {book.radix}: {e}")
        finally:
            book.close()

    @staticmethod
    def select_stubs(book: IBook, sheet_ids: Sequence[int] | None) -> list[ISheetStub]:
        """有效页与指定页的交集（按页号升序）；不存在的页号忽略"""
        stubs = [
            stub for stub in book.valid_stubs
            if sheet_ids is None or stub.number in sheet_ids
        ]
        return sorted(stubs, key=lambda s: s.number)

    @staticmethod
    def _ensure_folder(folder: Path) -> None:
        if not folder.exists():
            folder.mkdir(parents=True, exist_ok=True)
