#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Excel处理器 - 移除工作簿/工作表保护并取消隐藏工作表
第一性原理：.xlsx = ZIP压缩包，保护信息 = XML标签

流程: 解压 -> 工作簿解锁 -> 工作表解锁 -> 重新打包 -> 清理工作目录
任一步失败即中止该文件，工作目录保留在磁盘上便于排查。
"""

from pathlib import Path
from typing import Set

from .archive import extract_archive, build_archive, cleanup
from .base import DocumentProcessor, ProcessResult, ProgressCallback
from .errors import UnproError, BuildError
from .patcher import PatchReport, unlock_workbook, unlock_worksheets


class ExcelProcessor(DocumentProcessor):
    """Excel文档处理器"""

    SUPPORTED_EXTENSIONS: Set[str] = {'.xlsx'}
    TOTAL_STEPS = 5

    def get_description(self) -> str:
        return "Excel工作簿解锁 (保护移除 + 取消隐藏)"

    def process(self, input_path, output_path=None,
                progress_callback: ProgressCallback = None) -> ProcessResult:
        """处理单个xlsx文件"""
        input_path = Path(input_path)
        output_path = Path(output_path) if output_path else self.get_default_output(input_path)
        report = PatchReport()

        def step(current, message):
            if progress_callback:
                progress_callback(current, self.TOTAL_STEPS, message)

        try:
            if output_path.resolve() == input_path.resolve():
                raise BuildError(output_path, message="输出文件不能覆盖输入文件")

            work_dir = extract_archive(input_path, self.config.work_root,
                                       log=lambda msg: step(1, msg))
            step(1, f"解压完成 {input_path.name}")

            self._unlock_workbook(work_dir, report, step)
            self._unlock_worksheets(work_dir, report, step)

            build_archive(work_dir, output_path,
                          self.config.follow_links, self.config.max_depth)
            step(4, f"压缩完成 {output_path}")

            cleanup(work_dir)
            step(5, f"已删除工作目录 {work_dir}")
        except UnproError as e:
            return ProcessResult(False, message=f"{e.stage} 阶段失败: {e.message}", error=e)

        self.stats['files'] += 1
        self.stats['workbook'] += report.workbook_protection
        self.stats['hidden'] += report.hidden_sheets
        self.stats['sheets'] += report.sheet_protection

        if report.total:
            msg = (f"解锁成功 (工作簿保护 {report.workbook_protection}, "
                   f"隐藏工作表 {report.hidden_sheets}, 工作表保护 {report.sheet_protection})")
        else:
            msg = "文件没有被保护，已原样重新打包"
        return ProcessResult(True, str(output_path), msg, report.total)

    def _unlock_workbook(self, work_dir, report: PatchReport, step):
        if not (self.config.remove_workbook_protection or self.config.unhide_sheets):
            return
        protection, hidden = unlock_workbook(work_dir,
                                             self.config.remove_workbook_protection,
                                             self.config.unhide_sheets)
        report.workbook_protection = protection
        report.hidden_sheets = hidden
        if protection:
            step(2, "已移除工作簿保护")
        if hidden:
            step(2, f"已取消隐藏 {hidden} 个工作表")

    def _unlock_worksheets(self, work_dir, report: PatchReport, step):
        if not self.config.remove_sheet_protection:
            return
        modified = unlock_worksheets(work_dir, self.config.follow_links, self.config.max_depth)
        report.sheet_protection = len(modified)
        for sheet in modified:
            step(3, f"已移除工作表保护 {sheet.relative_to(work_dir).as_posix()}")
