"""
任务序列调度 - 顺序执行命令行任务并记录状态

职责：
1. 严格顺序执行（单线程；日志上下文为进程级共享资源）
2. 每个任务维护 TaskRecord（queued → running → succeeded/failed/cancelled）
3. 按策略决定取消/失败后是否继续后续任务
4. 生成运行报告（JSON）

测试要点：
- test_run_all_succeeded: 全部成功
- test_failure_continues: 失败后继续
- test_cancel_stops: 取消后停止
- test_write_report: 运行报告
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path

from ..interfaces import ProcessingCancellationError
from ..models import TaskRecord, TaskStatus
from .tasks import CliTask, TaskContext

logger = logging.getLogger(__name__)


class TaskRunner:
    """命令行任务调度器"""

    def __init__(
        self,
        ctx: TaskContext,
        stop_on_error: bool = False,
        stop_on_cancel: bool = True,
    ):
        self.ctx = ctx
        self.stop_on_error = stop_on_error
        self.stop_on_cancel = stop_on_cancel

    def run(self, tasks: Sequence[CliTask]) -> list[TaskRecord]:
        """顺序执行全部任务"""
        records = [self._new_record(task) for task in tasks]

        for task, record in zip(tasks, records):
            self.run_task(task, record)

            if record.status == TaskStatus.CANCELLED and self.stop_on_cancel:
                logger.warning(f"任务已取消，停止后续任务: {task}")
                break
            if record.status == TaskStatus.FAILED and self.stop_on_error:
                logger.warning(f"任务失败，停止后续任务: {task}")
                break

        done = sum(1 for r in records if r.status == TaskStatus.SUCCEEDED)
        logger.info(f"任务完成: {done}/{len(records)}")
        skipped = sum(1 for r in records if not r.finished)
        if skipped:
            logger.warning(f"未执行任务: {skipped}")
        return records

    def run_task(self, task: CliTask, record: TaskRecord | None = None) -> TaskRecord:
        """执行单个任务（不向外抛出任务错误）"""
        record = record or self._new_record(task)
        record.mark_running()
        logger.info(f"开始任务: {task}")

        try:
            task.execute(self.ctx)
            record.mark_succeeded()
        except ProcessingCancellationError as e:
            record.mark_cancelled(str(e) or None)
        except Exception as e:
            logger.error(f"任务失败 {task}: {e}")
            record.mark_failed(str(e))

        logger.info(f"结束任务: {task} [{record.status.value}]")
        return record

    @staticmethod
    def _new_record(task: CliTask) -> TaskRecord:
        return TaskRecord(task=str(task), kind=task.kind.value, path=task.path, radix=task.radix)

    @staticmethod
    def write_report(records: Sequence[TaskRecord], path: Path) -> Path:
        """写出运行报告"""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(
                [r.model_dump(mode="json") for r in records],
                f,
                ensure_ascii=False,
                indent=2,
                default=str,
            )
        return path
