"""
模块接口契约 - 定义识别引擎及其产物的抽象接口

设计原则：
1. 命令行编排层只通过接口与识别引擎通信，不依赖具体实现
2. 每个接口定义清晰的输入输出类型
3. 便于单元测试和mock替换

使用方式：
    from omr_cli.interfaces import IEngine

    class MyEngine(IEngine):
        def load_input(self, path: Path) -> IBook:
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Step


# ============================================================================
# 乐谱产物接口
# ============================================================================

class ISheetStub(ABC):
    """单页接口 - 乐谱中的一页，可独立推进识别步骤"""

    @property
    @abstractmethod
    def number(self) -> int:
        """页号（从1开始）"""
        ...

    @property
    @abstractmethod
    def valid(self) -> bool:
        """是否为有效页（无效页不参与处理）"""
        ...

    @property
    @abstractmethod
    def book(self) -> IBook:
        """所属乐谱"""
        ...

    @property
    @abstractmethod
    def reached_step(self) -> Step | None:
        """已完成的最后一个步骤"""
        ...

    @abstractmethod
    def ensure_step(self, step: Step) -> None:
        """
        确保本页已到达指定步骤

        依次执行尚未完成的中间步骤；已到达时不做任何事（幂等）。

        Raises:
            ProcessingCancellationError: 处理被取消
        """
        ...


class IBook(ABC):
    """乐谱接口 - 一份扫描乐谱（包含若干页）"""

    @property
    @abstractmethod
    def radix(self) -> str:
        """乐谱简名（用于日志与默认输出命名）"""
        ...

    @property
    @abstractmethod
    def stubs(self) -> Sequence[ISheetStub]:
        """全部页（按页号升序）"""
        ...

    @property
    def valid_stubs(self) -> list[ISheetStub]:
        """有效页（按页号升序）"""
        return [stub for stub in self.stubs if stub.valid]

    @property
    def first_valid_stub(self) -> ISheetStub | None:
        """第一个有效页"""
        valid = self.valid_stubs
        return valid[0] if valid else None

    @property
    @abstractmethod
    def default_book_path(self) -> Path:
        """默认存储路径（.omr）"""
        ...

    @abstractmethod
    def create_stubs(self, sheet_ids: Sequence[int] | None = None) -> None:
        """
        创建页

        Args:
            sheet_ids: 只创建这些页（从1开始）；None表示全部页
        """
        ...

    @abstractmethod
    def create_stubs_tabs(self) -> None:
        """在交互界面中展示各页（批处理模式下不调用）"""
        ...

    @abstractmethod
    def store(self, path: Path, backup: bool = False) -> Path:
        """
        保存乐谱

        Args:
            path: 目标文件
            backup: 目标已存在时是否先做备份

        Returns:
            实际写入的路径
        """
        ...

    @abstractmethod
    def print_to(self, path: Path) -> Path:
        """打印乐谱（输出PDF）"""
        ...

    @abstractmethod
    def export_to(self, path: Path) -> Path:
        """导出MusicXML"""
        ...

    @abstractmethod
    def close(self) -> None:
        """关闭乐谱，释放资源"""
        ...


# ============================================================================
# 识别引擎与交互界面接口
# ============================================================================

class ISurface(ABC):
    """交互界面接口（批处理模式下不存在）"""

    @abstractmethod
    def show(self, book: IBook) -> None:
        """展示乐谱"""
        ...


class IEngine(ABC):
    """识别引擎接口"""

    @abstractmethod
    def load_script(self, path: Path) -> IBook:
        """执行脚本文件，返回脚本作用后的乐谱"""
        ...

    @abstractmethod
    def load_input(self, path: Path) -> IBook:
        """从图像文件创建乐谱"""
        ...

    @abstractmethod
    def load_book(self, path: Path) -> IBook:
        """打开已保存的乐谱文件"""
        ...

    def apply_options(self, options: Mapping[str, str]) -> None:
        """
        应用命令行 -option 定义的常量（默认忽略）

        Raises:
            ParameterError: 常量取值非法
        """

    def create_surface(self) -> ISurface | None:
        """创建交互界面（默认无界面）"""
        return None


# ============================================================================
# 异常定义
# ============================================================================

class OmrCliError(Exception):
    """基础异常"""
    pass


class ParameterError(OmrCliError):
    """命令行参数错误"""
    pass


class EngineConfigError(OmrCliError):
    """识别引擎配置错误"""
    pass


class SourceNotFoundError(OmrCliError):
    """任务源文件不存在"""
    pass


class LoadError(OmrCliError):
    """乐谱加载失败"""
    pass


class ProcessingCancellationError(OmrCliError):
    """处理被取消"""
    pass


class PipelineError(OmrCliError):
    """流水线处理失败（包装原始异常）"""
    pass
