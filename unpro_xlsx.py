#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
=============================================================================
Excel工作簿解锁工具 - 移除工作簿/工作表保护并取消隐藏工作表
=============================================================================

对每个输入的 name.xlsx 生成 name_unpro.xlsx，原文件保持不变。

用法:
    python unpro_xlsx.py                         # 处理当前目录下所有xlsx(需确认)
    python unpro_xlsx.py a.xlsx b.xlsx           # 处理指定文件
    python unpro_xlsx.py a.xlsx -o out           # 指定输出目录
    python unpro_xlsx.py --keep-hidden a.xlsx    # 不取消隐藏工作表

无需第三方依赖
"""

import argparse
import sys
from pathlib import Path
from typing import List

from unpro import (
    UnproConfig, ProcessResult, discover_archives, resolve_inputs, process_batch,
    find_output_collisions,
)

# ============================================================================
#                           控制台输出
# ============================================================================

def print_progress(current: int, total: int, message: str):
    print(f"  [{current}/{total}] {message}")


def print_result(path: Path, result: ProcessResult):
    if result.success:
        print(f"  ✅ {path.name}: {result.message}")
        print(f"     输出: {result.output_path}")
    else:
        print(f"  ❌ {path.name}: {result.message}")


def print_summary(results: List[ProcessResult]):
    total = len(results)
    success_count = sum(1 for r in results if r.success)
    total_removed = sum(r.removed_count for r in results if r.success)

    print(f"\n{'='*60}")
    print("处理完成!")
    print(f"{'='*60}")
    print(f"  处理文件: {total}")
    print(f"  成功: {success_count}")
    print(f"  失败: {total - success_count}")
    print(f"  总计移除: {total_removed}")
    print(f"{'='*60}\n")


def read_line(prompt: str) -> str:
    """读取一行输入，stdin 已关闭时当作空行"""
    try:
        return input(prompt)
    except EOFError:
        return ""


def ask_confirm(files: List[Path]) -> bool:
    for f in files:
        print(f"  {f.name}")
    answer = read_line(f"找到 {len(files)} 个xlsx文件，是否继续? (回车继续, n 取消) ")
    if answer.strip().lower() == 'n':
        print("已取消")
        return False
    return True

# ============================================================================
#                           运行模式
# ============================================================================

def print_start(index: int, total: int, path: Path):
    print(f"\n[{index}/{total}] 处理: {path.name}")
    print("-" * 40)


def warn_collisions(files: List[Path], config: UnproConfig):
    for output, inputs in find_output_collisions(files, config).items():
        names = ", ".join(str(p) for p in inputs)
        print(f"警告: {names} 会写入同一个输出文件 {output}，后处理的会覆盖先处理的")


def run(files: List[Path], config: UnproConfig, confirm=None) -> int:
    print(f"\n{'='*60}")
    print(f"Excel工作簿解锁 - 共 {len(files)} 个文件")
    print(f"{'='*60}")
    warn_collisions(files, config)

    results = process_batch(files, config, confirm=confirm,
                            progress_callback=print_progress,
                            on_result=print_result, on_start=print_start)
    if not results:
        return 0

    print_summary(results)
    return 0 if all(r.success for r in results) else 1


def run_auto(config: UnproConfig, assume_yes: bool) -> int:
    """无参数模式: 处理当前目录下的xlsx文件"""
    files = discover_archives(config.work_root, config)
    if not files:
        print("当前目录没有找到xlsx文件")
        return 0
    return run(files, config, confirm=None if assume_yes else ask_confirm)


def run_files(paths: List[str], config: UnproConfig) -> int:
    """文件列表模式: 跳过不存在的文件"""
    files, missing = resolve_inputs(paths)
    for m in missing:
        print(f"警告: 文件不存在 - {m}")
    if not files:
        print("错误: 没有有效的输入文件")
        return 1
    code = run(files, config)
    return 1 if missing else code

# ============================================================================
#                           命令行接口
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Excel工作簿解锁 - 移除保护并取消隐藏工作表',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  %(prog)s                                 # 处理当前目录下所有xlsx
  %(prog)s report.xlsx                     # 处理单个文件
  %(prog)s a.xlsx b.xlsx -o unlocked       # 输出到指定目录
  %(prog)s a.xlsx --keep-hidden            # 保留隐藏的工作表
        """
    )

    parser.add_argument('input', nargs='*', help='输入文件路径 (支持多个)')
    parser.add_argument('-o', '--output-dir', help='输出目录 (默认当前目录)')
    parser.add_argument('--suffix', default='_unpro', help='输出文件名后缀 (默认 _unpro)')
    parser.add_argument('--keep-workbook', action='store_true', help='不移除工作簿保护')
    parser.add_argument('--keep-sheets', action='store_true', help='不移除工作表保护')
    parser.add_argument('--keep-hidden', action='store_true', help='不取消隐藏工作表')
    parser.add_argument('--no-follow-links', action='store_true', help='遍历目录时不进入符号链接')
    parser.add_argument('-y', '--yes', action='store_true', help='无参数模式下跳过确认')
    parser.add_argument('--no-pause', action='store_true', help='结束时不等待回车')
    return parser


def config_from_args(args: argparse.Namespace) -> UnproConfig:
    return UnproConfig(
        output_dir=args.output_dir,
        output_suffix=args.suffix,
        remove_workbook_protection=not args.keep_workbook,
        unhide_sheets=not args.keep_hidden,
        remove_sheet_protection=not args.keep_sheets,
        follow_links=not args.no_follow_links,
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    if config.output_dir:
        Path(config.output_dir).mkdir(parents=True, exist_ok=True)

    if args.input:
        code = run_files(args.input, config)
    else:
        code = run_auto(config, args.yes)

    # 双击运行时窗口不立即关闭
    if not args.no_pause:
        read_line("按回车键退出...")
    return code


if __name__ == '__main__':
    sys.exit(main())
