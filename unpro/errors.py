#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
错误类型 - 每个处理阶段一个异常类，均携带出错路径和底层原因
"""

from pathlib import Path
from typing import Optional


class UnproError(Exception):
    """解锁流程错误基类"""

    stage = "unknown"

    def __init__(self, path, cause: Optional[BaseException] = None, message: str = None):
        self.path = Path(path)
        self.cause = cause
        self.message = message or (str(cause) if cause is not None else "")
        super().__init__(f"[{self.stage}] {self.path}: {self.message}")


class ExtractError(UnproError):
    """解压失败: 文件不存在、非ZIP、损坏、写入失败、工作目录冲突"""
    stage = "extract"


class PatchError(UnproError):
    """修改XML失败"""
    stage = "patch"


class BuildError(UnproError):
    """重新打包失败"""
    stage = "build"


class CleanupError(UnproError):
    """删除工作目录失败"""
    stage = "cleanup"
