#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
处理器基类 - 定义统一接口、运行配置和处理结果
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Set, Callable

from .errors import UnproError

# 进度回调 callback(current, total, message)
ProgressCallback = Callable[[int, int, str], None]

# ============================================================================
#                           运行配置
# ============================================================================

@dataclass
class UnproConfig:
    """解锁配置"""
    # 工作目录的父目录 (解压目标 = work_root/<文件名>)
    work_root: str = "."
    # 输出目录, None 表示与 work_root 相同
    output_dir: Optional[str] = None
    output_suffix: str = "_unpro"
    extensions: Set[str] = field(default_factory=lambda: {'.xlsx'})

    # 各步骤开关
    remove_workbook_protection: bool = True
    unhide_sheets: bool = True
    remove_sheet_protection: bool = True

    # 目录遍历
    follow_links: bool = True
    max_depth: int = 32

    def resolved_output_dir(self) -> Path:
        return Path(self.output_dir if self.output_dir is not None else self.work_root)

# ============================================================================
#                           处理结果
# ============================================================================

@dataclass
class ProcessResult:
    """处理结果"""
    success: bool
    output_path: Optional[str] = None
    message: str = ""
    removed_count: int = 0
    error: Optional[UnproError] = None

    def __repr__(self):
        return f"ProcessResult(success={self.success}, removed={self.removed_count}, msg='{self.message}')"

# ============================================================================
#                           处理器基类
# ============================================================================

class DocumentProcessor(ABC):
    """文档处理器抽象基类"""

    # 子类需定义支持的扩展名
    SUPPORTED_EXTENSIONS: Set[str] = set()

    def __init__(self, config: UnproConfig = None):
        """
        初始化处理器

        Args:
            config: 运行配置，缺省使用 UnproConfig()
        """
        self.config = config or UnproConfig()
        self.stats = {'files': 0, 'workbook': 0, 'hidden': 0, 'sheets': 0}

    @classmethod
    def supports(cls, file_path) -> bool:
        """检查是否支持该文件类型"""
        ext = Path(file_path).suffix.lower()
        return ext in cls.SUPPORTED_EXTENSIONS

    def get_default_output(self, input_path) -> Path:
        """生成默认输出路径: <输出目录>/<文件名><后缀><扩展名>"""
        p = Path(input_path)
        return self.config.resolved_output_dir() / f"{p.stem}{self.config.output_suffix}{p.suffix}"

    @abstractmethod
    def process(self, input_path, output_path=None,
                progress_callback: ProgressCallback = None) -> ProcessResult:
        """
        处理文件

        Args:
            input_path: 输入文件路径
            output_path: 输出文件路径（可选）
            progress_callback: 进度回调函数 callback(current, total, message)

        Returns:
            ProcessResult: 处理结果
        """
        pass

    @abstractmethod
    def get_description(self) -> str:
        """获取处理器描述"""
        pass
