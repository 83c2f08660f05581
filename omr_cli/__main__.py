"""
命令行入口

Usage:
    python -m omr_cli -batch -step BINARY -input scans/a.png -save
    python -m omr_cli @args.txt

退出码：0 全部成功；1 存在失败任务；2 参数/引擎配置错误；130 任务被取消
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence

from .cli import build_parser, format_command_line, format_usage, parse_parameters
from .config import get_config, load_aliases
from .engine import load_engine
from .interfaces import EngineConfigError, ParameterError
from .log_context import configure_logging
from .models import TaskRecord, TaskStatus
from .pipeline import TaskContext, TaskRunner, build_task_set

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 130


def exit_status(records: Sequence[TaskRecord]) -> int:
    """由任务记录计算退出码"""
    statuses = {r.status for r in records}
    if TaskStatus.FAILED in statuses:
        return EXIT_FAILED
    if TaskStatus.CANCELLED in statuses:
        return EXIT_CANCELLED
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)

    config = get_config()
    log_context = configure_logging(config.logging)

    parser = build_parser()
    try:
        params = parse_parameters(args, parser)
    except ParameterError as e:
        logger.error(f"参数错误: {e}")
        logger.info(format_usage(parser))
        return EXIT_USAGE

    if params.help_mode:
        logger.info(format_usage(parser))
        return EXIT_OK

    logger.info(format_command_line(args))

    try:
        engine = load_engine(config)
    except EngineConfigError as e:
        logger.error(str(e))
        return EXIT_USAGE

    try:
        engine.apply_options(params.option_map)
    except ParameterError as e:
        logger.error(f"参数错误: {e}")
        return EXIT_USAGE

    surface = None if params.batch_mode else engine.create_surface()

    tasks = build_task_set(params, load_aliases(config.alias_table_path))
    if not tasks:
        logger.warning("没有需要处理的任务")
        return EXIT_OK

    ctx = TaskContext(engine=engine, params=params, surface=surface, log_context=log_context)
    runner = TaskRunner(
        ctx,
        stop_on_error=config.runner.stop_on_error,
        stop_on_cancel=config.runner.stop_on_cancel,
    )
    records = runner.run(tasks)

    if config.runner.report_file:
        report = runner.write_report(records, config.runner.report_file)
        logger.info(f"运行报告: {report}")

    return exit_status(records)


if __name__ == "__main__":
    raise SystemExit(main())
