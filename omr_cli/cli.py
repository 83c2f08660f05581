"""
命令行解析 - 把命令行参数转换为 Parameters

命令行参数（顺序无关）：
    -help                显示帮助后停止
    -batch               无交互界面运行
    -step STEP           指定目标步骤（作用于每个输入）
    -option KEY=VALUE    定义应用常量（可重复）
    -script FILE         执行脚本文件（可重复）
    -input FILE          加载图像文件（可重复）
    -book FILE           加载乐谱文件（可重复）
    -sheets N...         指定页（从1开始）
    -print / -printAs FILE / -printDir DIR
    -export / -exportAs FILE / -exportDir DIR
    -save / -saveAs FILE / -saveDir DIR
    --                   选项结束，其后均为参数
    [FILES]              尾随参数，按图像文件处理

任意位置的 @file 会把该文件的每一行展开为一个参数（空行即空字符串参数）。

测试要点：
- test_parse_full_command_line: 完整参数
- test_option_pairs: -option 解析
- test_sheets_tokens: -sheets 多值
- test_at_file_expansion: @file 展开
- test_unknown_step: 非法步骤
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence
from pathlib import Path

from . import __version__
from .interfaces import ParameterError
from .models import STEP_ORDER, OutputSpec, Parameters, Step

logger = logging.getLogger(__name__)

TOOL_NAME = "omr-cli"


class _ArgumentParser(argparse.ArgumentParser):
    """解析失败时抛出 ParameterError 而不是退出进程"""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise ParameterError(message)


def _step_type(value: str) -> Step:
    try:
        return Step.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def parse_option_pair(pair: str) -> tuple[str, str]:
    """解析 KEY=VALUE（也接受 KEY:VALUE）"""
    cut = min((i for i in (pair.find("="), pair.find(":")) if i >= 0), default=-1)
    if cut < 0:
        raise ParameterError(f"-option 参数错误: {pair} (应为 key=value)")

    key = pair[:cut].strip()
    if not key:
        raise ParameterError(f"-option 参数错误: {pair} (缺少 key)")

    return key, pair[cut + 1:].strip()


def parse_sheet_tokens(tokens: Sequence[str]) -> list[int]:
    """解析 -sheets 的值，每个参数内可包含多个空格分隔的整数"""
    ids: list[int] = []
    for token in tokens:
        for part in token.split(" "):
            if not part:
                continue
            try:
                ids.append(int(part))
            except ValueError:
                raise ParameterError(f"-sheets 参数错误: {part} 不是整数") from None
    return ids


def build_parser() -> argparse.ArgumentParser:
    """构建命令行解析器"""
    parser = _ArgumentParser(
        prog=TOOL_NAME,
        add_help=False,
        allow_abbrev=False,
        fromfile_prefix_chars="@",
        description="乐谱识别批处理/交互入口",
    )

    parser.add_argument("-help", dest="help_mode", action="store_true", help="显示帮助后停止")
    parser.add_argument("-batch", dest="batch_mode", action="store_true", help="无交互界面运行")
    parser.add_argument("-step", type=_step_type, metavar="STEP", help="指定目标识别步骤")
    parser.add_argument(
        "-option",
        dest="options",
        action="append",
        default=[],
        metavar="key=value",
        help="定义应用常量（可重复）",
    )

    parser.add_argument(
        "-script", dest="script_files", action="append", type=Path, default=[],
        metavar="<script-file>", help="执行脚本文件",
    )
    parser.add_argument(
        "-input", dest="input_files", action="append", type=Path, default=[],
        metavar="<input-file>", help="加载图像文件",
    )
    parser.add_argument(
        "-book", dest="book_files", action="append", type=Path, default=[],
        metavar="<book-file>", help="加载乐谱文件",
    )
    parser.add_argument(
        "-sheets", action="append", nargs="+", metavar="N", help="指定页（从1开始）",
    )

    for name, what, file_meta, folder_meta in (
        ("export", "导出MusicXML", "<export-file>", "<export-folder>"),
        ("print", "打印乐谱", "<print-file>", "<print-folder>"),
        ("save", "保存乐谱", "<book-file>", "<book-folder>"),
    ):
        parser.add_argument(f"-{name}", dest=f"{name}_enabled", action="store_true", help=what)
        parser.add_argument(
            f"-{name}As", dest=f"{name}_file", type=Path, metavar=file_meta,
            help=f"{what}到指定文件",
        )
        parser.add_argument(
            f"-{name}Dir", dest=f"{name}_folder", type=Path, metavar=folder_meta,
            help=f"{what}到指定目录（指定 -{name}As 时忽略）",
        )

    parser.add_argument("arguments", nargs="*", type=Path, metavar="FILES", help="图像文件")
    return parser


def parse_parameters(
    args: Sequence[str],
    parser: argparse.ArgumentParser | None = None,
) -> Parameters:
    """解析命令行参数，返回参数快照"""
    logger.debug(f"命令行参数: {list(args)}")
    parser = parser or build_parser()

    args = list(args)
    trailing: list[str] = []
    if "--" in args:
        cut = args.index("--")
        args, trailing = args[:cut], args[cut + 1:]

    ns, extras = parser.parse_known_args(args)

    # 与选项交错出现的尾随参数；@file 展开出的 -- 之后均为参数
    arguments = list(ns.arguments)
    options_ended = False
    for extra in extras:
        if extra == "--" and not options_ended:
            options_ended = True
            continue
        if not options_ended and extra.startswith("-") and extra != "-":
            raise ParameterError(f"未知选项: {extra}")
        arguments.append(Path(extra))

    arguments.extend(Path(a) for a in trailing)

    options: dict[str, str] = {}
    for pair in ns.options:
        key, value = parse_option_pair(pair)
        options[key] = value

    sheets = None
    if ns.sheets is not None:
        sheets = parse_sheet_tokens([t for group in ns.sheets for t in group])

    params = Parameters(
        help_mode=ns.help_mode,
        batch_mode=ns.batch_mode,
        step=ns.step,
        options=tuple(options.items()),
        script_files=ns.script_files,
        input_files=ns.input_files,
        book_files=ns.book_files,
        arguments=arguments,
        sheets=sheets,
        print_spec=OutputSpec(enabled=ns.print_enabled, file=ns.print_file, folder=ns.print_folder),
        export_spec=OutputSpec(enabled=ns.export_enabled, file=ns.export_file, folder=ns.export_folder),
        save_spec=OutputSpec(enabled=ns.save_enabled, file=ns.save_file, folder=ns.save_folder),
    )

    logger.debug(f"参数快照: {params.model_dump(mode='json')}")
    return params


def format_usage(parser: argparse.ArgumentParser | None = None) -> str:
    """命令行用法说明（含版本、输入扩展名约定与步骤列表）"""
    parser = parser or build_parser()

    lines = [
        "",
        f"{TOOL_NAME} Version:",
        f"   {__version__}",
        "",
        "Syntax:",
        f"   {TOOL_NAME} [OPTIONS] [INPUT_FILES]",
        "",
        "Options:",
        parser.format_help(),
        "Input file extensions:",
        "   .omr        : book file",
        "   .script.xml : script file",
        "   [any other] : image file",
        "",
        "Sheet steps are in order:",
    ]
    for step in STEP_ORDER:
        lines.append(f"   {step.value:<10} : {step.description}")
    lines.append("")

    return "\n".join(lines)


def format_command_line(args: Sequence[str]) -> str:
    return f"Command line parameters: {TOOL_NAME} {' '.join(args)}"
