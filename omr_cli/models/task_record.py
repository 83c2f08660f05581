"""
任务记录模型 - 单个命令行任务的执行状态与生命周期

由 TaskRunner 维护，可序列化为运行报告
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    """任务状态枚举"""
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class TaskRecord(BaseModel):
    """任务执行记录"""
    task: str = Field(..., description="任务描述，如 'Input a.png'")
    kind: str
    path: Path
    radix: str

    status: TaskStatus = TaskStatus.QUEUED
    errors: list[str] = Field(default_factory=list, description="错误信息")

    # 时间戳
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def finished(self) -> bool:
        return self.status in (TaskStatus.SUCCEEDED, TaskStatus.FAILED, TaskStatus.CANCELLED)

    def mark_running(self) -> None:
        """标记为运行中"""
        self.status = TaskStatus.RUNNING
        self.started_at = datetime.now()

    def mark_succeeded(self) -> None:
        """标记为成功"""
        self.status = TaskStatus.SUCCEEDED
        self.finished_at = datetime.now()

    def mark_failed(self, error: str) -> None:
        """标记为失败"""
        self.status = TaskStatus.FAILED
        self.finished_at = datetime.now()
        self.errors.append(error)

    def mark_cancelled(self, reason: str | None = None) -> None:
        """标记为已取消"""
        self.status = TaskStatus.CANCELLED
        self.finished_at = datetime.now()
        if reason:
            self.errors.append(reason)
