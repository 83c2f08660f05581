"""
命令行任务单元测试

每个模块完成后必须运行：pytest tests/unit/test_tasks.py -v
"""

import dataclasses
from pathlib import Path

import pytest

from omr_cli.config import AliasTable
from omr_cli.interfaces import LoadError, SourceNotFoundError
from omr_cli.models import Step
from omr_cli.pipeline import CliTask, TaskContext, TaskKind


@pytest.fixture
def ctx(fake_engine, make_params, log_context) -> TaskContext:
    return TaskContext(
        engine=fake_engine,
        params=make_params(step=Step.BINARY),
        log_context=log_context,
    )


class TestCliTask:
    """任务骨架测试"""

    def test_radix_fixed_at_creation(self):
        task = CliTask.create(TaskKind.INPUT, "dir/a.png", AliasTable(names={"a": "alpha"}))
        assert task.radix == "alpha"
        assert task.path == Path("dir/a.png")
        with pytest.raises(dataclasses.FrozenInstanceError):
            task.radix = "other"

    def test_str(self):
        assert str(CliTask.create(TaskKind.BOOK, "b.omr")) == "Book b.omr"
        assert str(CliTask.create(TaskKind.SCRIPT, "s.xml")) == "Script s.xml"

    def test_missing_source(self, ctx: TaskContext, fake_engine, temp_dir: Path, caplog):
        """测试源文件不存在"""
        task = CliTask.create(TaskKind.INPUT, temp_dir / "missing.png")

        with pytest.raises(SourceNotFoundError):
            task.execute(ctx)

        assert fake_engine.loaded == []
        assert "找不到文件" in caplog.text

    def test_load_error_propagates(self, ctx: TaskContext, fake_engine, sample_image: Path):
        """测试加载失败直接抛出（无需清理）"""
        fake_engine.fail_load = True
        task = CliTask.create(TaskKind.INPUT, sample_image)

        with pytest.raises(LoadError) as exc_info:
            task.execute(ctx)

        assert isinstance(exc_info.value.__cause__, OSError)
        assert fake_engine.books == []
        assert ctx.log_context.pushes == 0

    def test_input_task_runs_pipeline(self, ctx: TaskContext, fake_engine, sample_image: Path):
        task = CliTask.create(TaskKind.INPUT, sample_image)
        task.execute(ctx)

        book = fake_engine.books[0]
        assert fake_engine.loaded == [("input", sample_image)]
        assert book.event_names()[0] == "create_stubs"
        assert book.closed

    def test_script_task_no_processing(self, ctx: TaskContext, fake_engine, temp_dir: Path):
        """测试脚本任务不走流水线"""
        script = temp_dir / "demo.script.xml"
        script.write_text("<script/>", encoding="utf-8")

        CliTask.create(TaskKind.SCRIPT, script).execute(ctx)

        assert fake_engine.loaded == [("script", script)]
        assert fake_engine.books[0].events == []
        assert ctx.log_context.pushes == 0

    def test_book_task_tabs(
        self, fake_engine, make_params, log_context, fake_surface, sample_book_file: Path
    ):
        """测试有交互界面时展示各页且不关闭乐谱"""
        ctx = TaskContext(
            engine=fake_engine,
            params=make_params(),
            surface=fake_surface,
            log_context=log_context,
        )

        CliTask.create(TaskKind.BOOK, sample_book_file).execute(ctx)

        book = fake_engine.books[0]
        assert fake_engine.loaded == [("book", sample_book_file)]
        assert book.event_names()[0] == "create_stubs_tabs"
        assert not book.closed

    def test_book_task_batch_no_tabs(self, ctx: TaskContext, fake_engine, sample_book_file: Path):
        CliTask.create(TaskKind.BOOK, sample_book_file).execute(ctx)
        assert "create_stubs_tabs" not in fake_engine.books[0].event_names()
