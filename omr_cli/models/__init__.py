"""
数据模型层 - 定义命令行核心数据结构

- Parameters: 命令行参数快照（只读）
- OutputSpec: print/export/save 输出参数
- Step: 识别步骤目录
- TaskRecord: 任务执行状态与生命周期
"""

from .parameters import OutputSpec, Parameters
from .step import STEP_ORDER, Step
from .task_record import TaskRecord, TaskStatus

__all__ = [
    "Parameters",
    "OutputSpec",
    "Step",
    "STEP_ORDER",
    "TaskRecord",
    "TaskStatus",
]
