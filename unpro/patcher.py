#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
XML修改 - 移除工作簿/工作表保护标签、取消隐藏工作表
直接对原始文本做正则替换，不解析XML树
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from .archive import walk_files, DEFAULT_MAX_DEPTH
from .errors import PatchError

WORKBOOK_XML = Path("xl") / "workbook.xml"
WORKSHEETS_DIR = Path("xl") / "worksheets"

# 非贪婪，且 . 不跨行：每次匹配只吃掉一个自闭合标签
WORKBOOK_PROTECTION_RE = re.compile(r'<workbookProtection.*?/>')
SHEET_PROTECTION_RE = re.compile(r'<sheetProtection.*?/>')
HIDDEN_STATE_RE = re.compile(r'\bstate="hidden"\s*')


@dataclass
class PatchReport:
    """单个文件的修改统计"""
    workbook_protection: int = 0
    hidden_sheets: int = 0
    sheet_protection: int = 0

    @property
    def total(self) -> int:
        return self.workbook_protection + self.hidden_sheets + self.sheet_protection


def read_xml(path: Path) -> str:
    try:
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise PatchError(path, e) from e


def write_xml(path: Path, content: str) -> None:
    try:
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
    except OSError as e:
        raise PatchError(path, e) from e


def remove_workbook_protection(content: str) -> Tuple[str, int]:
    if 'workbookProtection' not in content:
        return content, 0
    return WORKBOOK_PROTECTION_RE.subn('', content)


def unhide_sheets(content: str) -> Tuple[str, int]:
    if 'state="hidden"' not in content:
        return content, 0
    return HIDDEN_STATE_RE.subn('', content)


def remove_sheet_protection(content: str) -> Tuple[str, int]:
    if 'sheetProtection' not in content:
        return content, 0
    return SHEET_PROTECTION_RE.subn('', content)

# ============================================================================
#                           工作簿
# ============================================================================

def unlock_workbook(work_dir, remove_protection: bool = True,
                    unhide: bool = True) -> Tuple[int, int]:
    """
    处理 xl/workbook.xml

    两项检查互相独立；无论是否修改都写回原路径。

    Returns:
        (移除的保护标签数, 取消隐藏的工作表数)
    """
    workbook_path = Path(work_dir) / WORKBOOK_XML
    if not workbook_path.is_file():
        raise PatchError(workbook_path, message="找不到 workbook.xml，不是有效的xlsx")

    content = read_xml(workbook_path)
    protection_count = hidden_count = 0

    if remove_protection:
        content, protection_count = remove_workbook_protection(content)
    if unhide:
        content, hidden_count = unhide_sheets(content)

    write_xml(workbook_path, content)
    return protection_count, hidden_count

# ============================================================================
#                           工作表
# ============================================================================

def unlock_worksheets(work_dir, follow_links: bool = True,
                      max_depth: int = DEFAULT_MAX_DEPTH) -> List[Path]:
    """
    移除 xl/worksheets 下所有 .xml 的 sheetProtection

    只重写含保护标签的文件，返回被修改的文件列表。
    """
    worksheets_path = Path(work_dir) / WORKSHEETS_DIR
    if not worksheets_path.is_dir():
        return []

    modified = []
    for sheet in walk_files(worksheets_path, follow_links, max_depth):
        if not sheet.name.endswith('.xml'):
            continue
        content, count = remove_sheet_protection(read_xml(sheet))
        if count:
            write_xml(sheet, content)
            modified.append(sheet)

    return modified
