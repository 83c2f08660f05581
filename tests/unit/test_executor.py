"""
处理流水线单元测试

每个模块完成后必须运行：pytest tests/unit/test_executor.py -v
"""

from contextlib import nullcontext
from pathlib import Path

import pytest

from omr_cli.interfaces import PipelineError, ProcessingCancellationError
from omr_cli.models import OutputSpec, Step
from omr_cli.pipeline import (
    CliTask,
    ProcessingPipeline,
    TaskContext,
    TaskKind,
    build_task_set,
)


def _advanced(book) -> list[int]:
    return [e[1] for e in book.events if e[0] == "ensure_step"]


class TestScenarios:
    """端到端场景测试"""

    def test_scenario_input_binary(self, fake_engine, make_params, log_context, sample_image: Path):
        """输入图像推进到BINARY，无输出，结束时关闭"""
        params = make_params(input_files=[sample_image], step=Step.BINARY)
        ctx = TaskContext(engine=fake_engine, params=params, log_context=log_context)

        tasks = build_task_set(params)
        assert [t.kind for t in tasks] == [TaskKind.INPUT]

        tasks[0].execute(ctx)

        book = fake_engine.books[0]
        assert book.events[0] == ("create_stubs", None)
        assert _advanced(book) == [1, 2, 3]
        assert all(stub.reached_step == Step.BINARY for stub in book.stubs)
        assert not {"print", "export", "store"} & set(book.event_names())
        assert book.events[-1] == ("close",)

    def test_scenario_book_sheet_subset(
        self, fake_engine, make_params, log_context, sample_book_file: Path, temp_dir: Path
    ):
        """指定页2 + 打印到目录：只推进第2页，打印使用目录"""
        out = temp_dir / "out"
        params = make_params(
            book_files=[sample_book_file],
            sheets=[2],
            step=Step.BINARY,
            print_spec=OutputSpec(folder=out),
        )
        ctx = TaskContext(engine=fake_engine, params=params, log_context=log_context)

        CliTask.create(TaskKind.BOOK, sample_book_file).execute(ctx)

        book = fake_engine.books[0]
        assert book.events[0] == ("create_stubs", (2,))
        assert _advanced(book) == [2]
        assert ("print", out / "b.pdf") in book.events
        assert book.closed


class TestProcessingPipeline:
    """流水线测试"""

    def test_creates_default_folder(self, make_book, make_params, log_context):
        book = make_book("score")
        ProcessingPipeline(make_params(), log_context=log_context).process(book)
        assert book.default_book_path.parent.is_dir()

    def test_existing_stubs_not_recreated(self, make_book, make_params, log_context):
        book = make_book("score")
        book.create_stubs()
        book.events.clear()

        ProcessingPipeline(make_params(), log_context=log_context).process(book)

        assert "create_stubs" not in book.event_names()

    def test_subset_filtering(self, make_book, make_params, log_context):
        """有效页与指定页的交集，升序，忽略不存在的页号"""
        book = make_book("score", sheet_count=4, invalid=[3])
        book.create_stubs()
        params = make_params(step=Step.SCALE, sheets=[5, 3, 4, 1])

        ProcessingPipeline(params, log_context=log_context).process(book)

        assert _advanced(book) == [1, 4]

    def test_all_valid_stubs_without_subset(self, make_book, make_params, log_context):
        book = make_book("score", sheet_count=3, invalid=[2])
        ProcessingPipeline(make_params(step=Step.GRID), log_context=log_context).process(book)
        assert _advanced(book) == [1, 3]

    def test_ensure_step_idempotent(self, make_book, make_params, log_context):
        """重复执行与执行一次状态一致"""
        book = make_book("score")
        params = make_params(step=Step.BINARY)

        ProcessingPipeline(params, log_context=log_context).process(book)
        first = [s.reached_step for s in book.stubs]
        ProcessingPipeline(params, log_context=log_context).process(book)

        assert [s.reached_step for s in book.stubs] == first

    def test_no_step_no_advance(self, make_book, make_params, log_context):
        book = make_book("score")
        ProcessingPipeline(make_params(), log_context=log_context).process(book)
        assert _advanced(book) == []

    def test_outputs_in_order(self, make_book, make_params, log_context, temp_dir: Path):
        """打印 → 导出 → 保存，均针对第一个有效页"""
        book = make_book("score", invalid=[1])
        params = make_params(
            print_spec=OutputSpec(enabled=True),
            export_spec=OutputSpec(file=temp_dir / "x.mxl", folder=temp_dir / "ignored"),
            save_spec=OutputSpec(folder=temp_dir / "saved"),
        )
        pipeline = ProcessingPipeline(params, log_context=log_context)

        pipeline.process(book)

        outputs = [e for e in book.events if e[0] in ("print", "export", "store")]
        assert outputs == [
            ("print", book.default_book_path.parent / "score.pdf"),
            ("export", temp_dir / "x.mxl"),
            ("store", temp_dir / "saved" / "score.omr", False),
        ]
        assert pipeline.outputs == [e[1] for e in outputs]
        assert not (temp_dir / "ignored").exists()

    def test_output_without_valid_stub(self, make_book, make_params, log_context):
        book = make_book("score", sheet_count=1, invalid=[1])
        params = make_params(save_spec=OutputSpec(enabled=True))

        with pytest.raises(PipelineError, match="没有有效页"):
            ProcessingPipeline(params, log_context=log_context).process(book)

        assert book.closed


class TestFailureHandling:
    """失败与取消处理测试"""

    def test_cancellation_stores_with_backup(self, make_book, make_params, log_context, caplog):
        """取消：强制保存（带备份）→ 关闭 → 重新抛出"""
        book = make_book("score", cancel_on=2)
        params = make_params(step=Step.BINARY, save_spec=OutputSpec(enabled=True))
        pipeline = ProcessingPipeline(params, log_context=log_context)

        with pytest.raises(ProcessingCancellationError):
            pipeline.process(book)

        assert pipeline.cancelled
        assert _advanced(book) == [1, 2]
        assert book.events[-2:] == [("store", book.default_book_path, True), ("close",)]
        assert sum(1 for e in book.events if e[0] == "store") == 1
        assert "已取消 score" in caplog.text

    def test_failure_closes_without_store(self, make_book, make_params, log_context):
        """其他异常：包装为 PipelineError，只关闭不保存"""
        book = make_book("score", fail_on=1)
        pipeline = ProcessingPipeline(make_params(step=Step.BINARY), log_context=log_context)

        with pytest.raises(PipelineError) as exc_info:
            pipeline.process(book)

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert not pipeline.cancelled
        assert _advanced(book) == [1]
        assert "store" not in book.event_names()
        assert book.events[-1] == ("close",)

    def test_cancel_store_failure_still_closes(self, make_book, make_params, log_context, caplog):
        """取消后保存失败：仍关闭乐谱，抛出的仍是取消"""
        book = make_book("score", cancel_on=2)
        book.store_error = OSError("disk full")
        pipeline = ProcessingPipeline(make_params(step=Step.BINARY), log_context=log_context)

        with pytest.raises(ProcessingCancellationError):
            pipeline.process(book)

        assert book.events[-2:] == [("store", book.default_book_path, True), ("close",)]
        assert book.closed
        assert "取消后保存失败 score" in caplog.text
        assert log_context.depth == 0

    @pytest.mark.parametrize("kwargs", [{}, {"cancel_on": 2}, {"fail_on": 3}])
    def test_log_context_balanced(self, make_book, make_params, log_context, kwargs):
        """日志上下文入栈出栈平衡（含取消/失败）"""
        book = make_book("score", **kwargs)

        with pytest.raises(Exception) if kwargs else nullcontext():
            ProcessingPipeline(make_params(step=Step.BINARY), log_context=log_context).process(book)

        assert log_context.depth == 0
        assert log_context.pushes == log_context.pops
        assert log_context.pushes == 1 + len(_advanced(book))

    def test_surface_keeps_book_open(self, make_book, make_params, log_context, fake_surface):
        """有交互界面：展示各页，取消时不保存也不关闭"""
        book = make_book("score", cancel_on=1)
        pipeline = ProcessingPipeline(
            make_params(step=Step.BINARY), surface=fake_surface, log_context=log_context
        )

        with pytest.raises(ProcessingCancellationError):
            pipeline.process(book)

        assert fake_surface.shown == [book]
        assert "create_stubs_tabs" in book.event_names()
        assert "store" not in book.event_names()
        assert not book.closed
        assert log_context.depth == 0

