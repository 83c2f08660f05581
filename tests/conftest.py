"""
pytest 配置与公共 fixtures

使用方式：
    def test_something(fake_engine, make_params):
        params = make_params(input_files=["a.png"])
"""

from __future__ import annotations

import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Generator

import pytest

from omr_cli.config import LoggingConfig, RuntimeConfig
from omr_cli.interfaces import (
    IBook,
    IEngine,
    ISheetStub,
    ISurface,
    ProcessingCancellationError,
)
from omr_cli.log_context import LogContext
from omr_cli.models import STEP_ORDER, Parameters, Step


# ============================================================================
# 伪造引擎（记录调用顺序）
# ============================================================================

class FakeStub(ISheetStub):
    """记录步骤推进的伪造页"""

    def __init__(self, book: FakeBook, number: int, valid: bool = True):
        self._book = book
        self._number = number
        self._valid = valid
        self._reached: Step | None = None
        self.ensure_calls: list[Step] = []

    @property
    def number(self) -> int:
        return self._number

    @property
    def valid(self) -> bool:
        return self._valid

    @property
    def book(self) -> FakeBook:
        return self._book

    @property
    def reached_step(self) -> Step | None:
        return self._reached

    def ensure_step(self, step: Step) -> None:
        self.ensure_calls.append(step)
        self._book.events.append(("ensure_step", self._number, step))

        if self._number == self._book.cancel_on:
            raise ProcessingCancellationError(f"cancelled at sheet {self._number}")
        if self._number == self._book.fail_on:
            raise RuntimeError(f"boom at sheet {self._number}")

        if self._reached is None or self._reached.order < step.order:
            self._reached = step


class FakeBook(IBook):
    """记录生命周期事件的伪造乐谱"""

    def __init__(
        self,
        radix: str,
        storage_dir: Path,
        sheet_count: int = 3,
        invalid: Sequence[int] = (),
        cancel_on: int | None = None,
        fail_on: int | None = None,
    ):
        self._radix = radix
        self.storage_dir = storage_dir
        self.sheet_count = sheet_count
        self.invalid = set(invalid)
        self.cancel_on = cancel_on
        self.fail_on = fail_on
        self._stubs: list[FakeStub] = []
        self.events: list[tuple[Any, ...]] = []
        self.closed = False
        self.store_error: Exception | None = None

    @property
    def radix(self) -> str:
        return self._radix

    @property
    def stubs(self) -> list[FakeStub]:
        return list(self._stubs)

    @property
    def default_book_path(self) -> Path:
        return self.storage_dir / self._radix / f"{self._radix}.omr"

    def create_stubs(self, sheet_ids: Sequence[int] | None = None) -> None:
        self.events.append(("create_stubs", None if sheet_ids is None else tuple(sheet_ids)))
        self._stubs = [
            FakeStub(self, n, valid=n not in self.invalid)
            for n in range(1, self.sheet_count + 1)
            if sheet_ids is None or n in sheet_ids
        ]

    def create_stubs_tabs(self) -> None:
        self.events.append(("create_stubs_tabs",))

    def store(self, path: Path, backup: bool = False) -> Path:
        self.events.append(("store", path, backup))
        if self.store_error is not None:
            raise self.store_error
        return path

    def print_to(self, path: Path) -> Path:
        self.events.append(("print", path))
        return path

    def export_to(self, path: Path) -> Path:
        self.events.append(("export", path))
        return path

    def close(self) -> None:
        self.events.append(("close",))
        self.closed = True

    def event_names(self) -> list[str]:
        return [e[0] for e in self.events]


class FakeSurface(ISurface):
    def __init__(self):
        self.shown: list[IBook] = []

    def show(self, book: IBook) -> None:
        self.shown.append(book)


class FakeEngine(IEngine):
    """按路径创建 FakeBook 的伪造引擎"""

    def __init__(self, storage_dir: Path, **book_kwargs: Any):
        self.storage_dir = storage_dir
        self.book_kwargs = book_kwargs
        self.loaded: list[tuple[str, Path]] = []
        self.books: list[FakeBook] = []
        self.options: dict[str, str] = {}
        self.fail_load = False

    def _load(self, kind: str, path: Path) -> FakeBook:
        self.loaded.append((kind, path))
        if self.fail_load:
            raise OSError(f"cannot read {path}")
        book = FakeBook(path.stem, self.storage_dir, **self.book_kwargs)
        self.books.append(book)
        return book

    def load_script(self, path: Path) -> FakeBook:
        return self._load("script", path)

    def load_input(self, path: Path) -> FakeBook:
        return self._load("input", path)

    def load_book(self, path: Path) -> FakeBook:
        return self._load("book", path)

    def apply_options(self, options) -> None:
        self.options.update(options)


# ============================================================================
# 配置 Fixtures
# ============================================================================

@pytest.fixture
def runtime_config(temp_dir: Path) -> RuntimeConfig:
    """运行期配置（存储目录指向临时目录，不写日志文件）"""
    return RuntimeConfig(
        storage_dir=temp_dir / "storage",
        logging=LoggingConfig(log_to_file=False),
    )


@pytest.fixture
def make_params() -> Callable[..., Parameters]:
    """参数快照工厂"""
    def _make(**kwargs: Any) -> Parameters:
        return Parameters(batch_mode=True, **kwargs)
    return _make


@pytest.fixture
def log_context() -> LogContext:
    """独立的日志上下文（不写文件）"""
    return LogContext()


# ============================================================================
# 引擎 Fixtures
# ============================================================================

@pytest.fixture
def fake_engine(temp_dir: Path) -> FakeEngine:
    return FakeEngine(temp_dir / "storage")


@pytest.fixture
def make_book(temp_dir: Path) -> Callable[..., FakeBook]:
    """伪造乐谱工厂"""
    def _make(radix: str = "score", **kwargs: Any) -> FakeBook:
        return FakeBook(radix, temp_dir / "storage", **kwargs)
    return _make


@pytest.fixture
def fake_surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def all_steps() -> list[Step]:
    return list(STEP_ORDER)


# ============================================================================
# 文件 Fixtures
# ============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_image(temp_dir: Path) -> Path:
    """示例图像文件（内容不重要）"""
    image = temp_dir / "a.png"
    image.write_bytes(b"\x89PNG\r\n\x1a\n")
    return image


@pytest.fixture
def sample_book_file(temp_dir: Path) -> Path:
    """示例乐谱文件（伪造引擎不读取内容）"""
    book = temp_dir / "b.omr"
    book.write_text("format: fake\n", encoding="utf-8")
    return book

