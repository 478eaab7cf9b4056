#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
批量处理 - 发现待处理文件、确认、逐个处理
单个文件失败不影响后续文件
"""

from collections import defaultdict
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .base import UnproConfig, ProcessResult, ProgressCallback
from .excel_processor import ExcelProcessor

ConfirmCallback = Callable[[List[Path]], bool]


def discover_archives(directory=".", config: UnproConfig = None) -> List[Path]:
    """列出directory（不递归）中可处理的文件，排除已带输出后缀的文件"""
    config = config or UnproConfig()
    extensions = {ext.lower() for ext in config.extensions}
    found = []
    for p in sorted(Path(directory).iterdir()):
        if not p.is_file() or p.suffix.lower() not in extensions:
            continue
        if config.output_suffix and p.stem.endswith(config.output_suffix):
            continue
        found.append(p)
    return found


def resolve_inputs(paths) -> Tuple[List[Path], List[Path]]:
    """把命令行给出的路径分成 (存在的文件, 不存在的路径)"""
    existing, missing = [], []
    for p in map(Path, paths):
        (existing if p.is_file() else missing).append(p)
    return existing, missing


def find_output_collisions(files, config: UnproConfig = None) -> Dict[Path, List[Path]]:
    """找出会写到同一个输出文件的输入（不同目录下的同名文件）"""
    processor = ExcelProcessor(config)
    targets = defaultdict(list)
    for fp in map(Path, files):
        targets[processor.get_default_output(fp).resolve()].append(fp)
    return {out: inputs for out, inputs in targets.items() if len(inputs) > 1}


def process_batch(files, config: UnproConfig = None,
                  confirm: Optional[ConfirmCallback] = None,
                  progress_callback: ProgressCallback = None,
                  on_result: Callable[[Path, ProcessResult], None] = None,
                  on_start: Callable[[int, int, Path], None] = None) -> List[ProcessResult]:
    """
    逐个处理文件

    Args:
        files: 待处理文件
        config: 运行配置
        confirm: 确认回调，返回False时不处理任何文件
        progress_callback: 单文件内的进度回调
        on_result: 每个文件处理完成后的回调 on_result(path, result)
        on_start: 每个文件开始前的回调 on_start(index, total, path)，index从1开始

    Returns:
        与files一一对应的处理结果
    """
    files = [Path(f) for f in files]
    if confirm is not None and not confirm(files):
        return []

    processor = ExcelProcessor(config)
    results = []
    for i, fp in enumerate(files, 1):
        if on_start:
            on_start(i, len(files), fp)
        result = processor.process(fp, progress_callback=progress_callback)
        results.append(result)
        if on_result:
            on_result(fp, result)
    return results
