"""
文件处理工具模块
"""

import os
import glob
from typing import List

TRACE_SUFFIXES = ('.json', '.json.gz')


def _is_trace_file(path: str) -> bool:
    return path.lower().endswith(TRACE_SUFFIXES)


def parse_file_paths(file_pattern: str) -> List[str]:
    """
    解析文件路径，支持 glob 模式和目录

    Args:
        file_pattern: 文件路径、目录或 glob 通配符

    Returns:
        List[str]: 匹配的 trace 文件路径列表（已排序）

    Raises:
        ValueError: 没有匹配到任何 trace 文件
    """
    if os.path.isdir(file_pattern):
        matched_files = glob.glob(os.path.join(file_pattern, '*'))
        trace_files = [f for f in matched_files if _is_trace_file(f)]
        if not trace_files:
            raise ValueError(f"目录 {file_pattern} 中没有找到任何 trace 文件")
        return sorted(trace_files)

    if '*' in file_pattern or '?' in file_pattern or '[' in file_pattern:
        matched_files = glob.glob(file_pattern)
        if not matched_files:
            raise ValueError(f"glob 模式 {file_pattern} 没有匹配到任何文件")

        trace_files = [f for f in matched_files if _is_trace_file(f)]
        if not trace_files:
            raise ValueError(f"glob 模式 {file_pattern} 没有匹配到任何 JSON 文件")

        return sorted(trace_files)

    if not os.path.exists(file_pattern):
        raise ValueError(f"文件不存在: {file_pattern}")

    if not _is_trace_file(file_pattern):
        raise ValueError(f"文件不是 JSON 格式: {file_pattern}")

    return [file_pattern]
