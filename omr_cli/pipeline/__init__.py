"""
流水线模块 - 任务编排与执行

子模块：
- tasks: 命令行任务（脚本/输入/乐谱）
- task_set: 由参数构建有序任务列表
- executor: 输入/乐谱共用的处理流水线
- actions: 打印/导出/保存输出动作
- runner: 任务序列调度与运行报告
"""

from .actions import ExportAction, OutputAction, PrintAction, SaveAction
from .executor import ProcessingPipeline
from .runner import TaskRunner
from .task_set import build_task_set
from .tasks import CliTask, TaskContext, TaskKind

__all__ = [
    "CliTask",
    "TaskContext",
    "TaskKind",
    "build_task_set",
    "ProcessingPipeline",
    "OutputAction",
    "PrintAction",
    "ExportAction",
    "SaveAction",
    "TaskRunner",
]
