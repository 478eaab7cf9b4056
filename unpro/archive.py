#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
压缩包处理 - 解压到工作目录、重新打包、清理工作目录
第一性原理：.xlsx = ZIP压缩包
"""

import os
import shutil
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional

from .errors import ExtractError, BuildError, CleanupError

DEFAULT_MAX_DEPTH = 32


def is_encrypted(file_path) -> bool:
    """
    检测文档是否被密码加密
    OOXML格式本质是ZIP，如果不是ZIP格式说明被OLE加密（或根本不是xlsx）
    """
    return not zipfile.is_zipfile(file_path)


def safe_entry_path(name: str) -> Optional[PurePosixPath]:
    """
    把ZIP条目名转换为相对路径，无法安全落在工作目录内时返回None
    （绝对路径、盘符、越界的 ..、NUL 字符）
    """
    if '\0' in name:
        return None
    name = name.replace('\\', '/')
    if name.startswith('/'):
        return None

    parts = []
    for part in name.split('/'):
        if part in ('', '.'):
            continue
        if part == '..':
            if not parts:
                return None
            parts.pop()
            continue
        if not parts and ':' in part:
            return None
        parts.append(part)

    if not parts:
        return None
    return PurePosixPath(*parts)


def work_dir_for(archive_path, work_root=".") -> Path:
    """工作目录 = work_root/<文件名去掉扩展名>"""
    return Path(work_root) / Path(archive_path).stem

# ============================================================================
#                           解压
# ============================================================================

def extract_archive(archive_path, work_root=".",
                    log: Callable[[str], None] = None) -> Path:
    """
    解压archive_path到工作目录，返回工作目录路径

    目录条目只创建目录；文件条目按需创建父目录后写入全部内容。
    不安全的条目跳过并通过log报告，不视为错误。
    """
    archive_path = Path(archive_path)
    work_dir = work_dir_for(archive_path, work_root)

    if not archive_path.is_file():
        raise ExtractError(archive_path, message="文件不存在")
    if is_encrypted(archive_path):
        raise ExtractError(archive_path, message="不是有效的ZIP格式（可能被密码加密）")
    if work_dir.exists():
        raise ExtractError(work_dir, message="工作目录已存在，请先删除残留目录")

    try:
        work_dir.mkdir(parents=True)
        with zipfile.ZipFile(archive_path, 'r') as zf:
            for info in zf.infolist():
                rel = safe_entry_path(info.filename)
                if rel is None:
                    if log:
                        log(f"跳过不安全的条目: {info.filename}")
                    continue

                target = work_dir.joinpath(*rel.parts)
                if info.filename.endswith('/'):
                    target.mkdir(parents=True, exist_ok=True)
                    continue

                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(target, 'wb') as dst:
                    shutil.copyfileobj(src, dst)
    except (OSError, EOFError, zlib.error, RuntimeError, NotImplementedError,
            zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        # zlib.error/EOFError: 压缩数据损坏或被截断; RuntimeError: 条目加密;
        # NotImplementedError: 不支持的压缩方式
        raise ExtractError(archive_path, e) from e

    return work_dir

# ============================================================================
#                           遍历
# ============================================================================

def walk_files(root, follow_links: bool = True,
               max_depth: int = DEFAULT_MAX_DEPTH) -> List[Path]:
    """
    递归列出root下的所有文件，每层按名称排序

    follow_links=True 时进入目录链接；符号链接成环时由 max_depth 截断。
    """
    root = Path(root)
    files = []

    for dirpath, dirnames, filenames in os.walk(root, followlinks=follow_links):
        dirnames.sort()
        depth = len(Path(dirpath).relative_to(root).parts)
        if depth >= max_depth:
            dirnames[:] = []

        for name in sorted(filenames):
            fp = Path(dirpath) / name
            if not follow_links and fp.is_symlink():
                continue
            if fp.is_file():
                files.append(fp)

    return files

# ============================================================================
#                           打包
# ============================================================================

def build_archive(work_dir, output_path, follow_links: bool = True,
                  max_depth: int = DEFAULT_MAX_DEPTH) -> Path:
    """把工作目录下的所有文件打包为output_path，条目名为相对路径（/分隔）"""
    work_dir = Path(work_dir)
    output_path = Path(output_path)

    try:
        files = walk_files(work_dir, follow_links, max_depth)
        # 1980年以前的修改时间按ZIP格式下限记录
        with zipfile.ZipFile(output_path, 'w', zipfile.ZIP_DEFLATED,
                             strict_timestamps=False) as zf:
            for fp in files:
                zf.write(fp, fp.relative_to(work_dir).as_posix())
    except (OSError, ValueError, zipfile.LargeZipFile) as e:
        if output_path.is_file():
            output_path.unlink()
        raise BuildError(output_path, e) from e

    return output_path

# ============================================================================
#                           清理
# ============================================================================

def cleanup(work_dir) -> None:
    """删除工作目录，失败时抛出CleanupError（残留目录会与下次运行冲突）"""
    work_dir = Path(work_dir)
    try:
        shutil.rmtree(work_dir)
    except OSError as e:
        raise CleanupError(work_dir, e) from e
