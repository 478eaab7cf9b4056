# Excel unprotect package
from .base import DocumentProcessor, ProcessResult, UnproConfig
from .errors import UnproError, ExtractError, PatchError, BuildError, CleanupError
from .excel_processor import ExcelProcessor
from .batch import discover_archives, resolve_inputs, process_batch, find_output_collisions

__all__ = [
    'DocumentProcessor',
    'ProcessResult',
    'UnproConfig',
    'UnproError',
    'ExtractError',
    'PatchError',
    'BuildError',
    'CleanupError',
    'ExcelProcessor',
    'discover_archives',
    'resolve_inputs',
    'process_batch',
    'find_output_collisions',
]
