"""
任务集构建 - 由命令行参数生成有序任务列表

顺序固定：-input 输入 → 尾随参数（按输入处理）→ -book 乐谱 → -script 脚本
组内保持命令行顺序；空列表不产生任务；无副作用。
"""

from __future__ import annotations

from ..config import AliasTable
from ..models import Parameters
from .tasks import CliTask, TaskKind


def build_task_set(params: Parameters, aliases: AliasTable | None = None) -> list[CliTask]:
    """准备命令行任务（输入、乐谱、脚本）"""
    tasks: list[CliTask] = []

    # 输入图像
    for path in params.input_files:
        tasks.append(CliTask.create(TaskKind.INPUT, path, aliases))

    # 尾随参数一律视为输入图像（不按扩展名分派）
    for path in params.arguments:
        tasks.append(CliTask.create(TaskKind.INPUT, path, aliases))

    # 乐谱文件
    for path in params.book_files:
        tasks.append(CliTask.create(TaskKind.BOOK, path, aliases))

    # 脚本
    for path in params.script_files:
        tasks.append(CliTask.create(TaskKind.SCRIPT, path, aliases))

    return tasks
