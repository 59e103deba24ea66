"""
已解码 VM trace 事件 JSON 解析器
"""

import json
import gzip
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any, Optional, Union
import logging

from .models import TraceAction, TraceEvent

logger = logging.getLogger(__name__)


class TraceFileError(Exception):
    """trace 文件不存在、无法读取或结构不合法"""


@dataclass
class ParsedTrace:
    """解析结果"""
    events: List[TraceEvent]
    method_names: Dict[int, str] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)


def _parse_int(value: Union[int, str]) -> int:
    """解析整数，支持 "0x" 前缀的十六进制字符串"""
    if isinstance(value, bool):
        raise ValueError(f"不是整数: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text[:2].lower() == '0x':
            return int(text, 16)
        return int(text)
    raise ValueError(f"不是整数: {value!r}")


def _parse_event(event_data: Dict[str, Any]) -> Optional[TraceEvent]:
    """
    解析单个事件

    Args:
        event_data: 事件数据字典

    Returns:
        TraceEvent: 解析后的事件对象，如果解析失败返回 None
    """
    try:
        method_id = _parse_int(event_data['method_id'])
        if method_id < 0:
            raise ValueError(f"方法 id 不能为负数: {method_id}")

        return TraceEvent(
            thread_id=_parse_int(event_data.get('tid', 0)),
            method_id=method_id,
            action=TraceAction.parse(event_data['action']),
            thread_time=_parse_int(event_data['thread_time']),
            global_time=_parse_int(event_data['global_time']),
        )

    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"解析事件失败: {e}")
        return None


def _parse_method_names(raw_methods: Any) -> Dict[int, str]:
    """解析方法 id 到显示名称的映射表"""
    method_names = {}
    if not raw_methods:
        return method_names
    if not isinstance(raw_methods, dict):
        logger.warning("methods 字段不是对象，忽略方法名称表")
        return method_names

    for raw_id, name in raw_methods.items():
        try:
            method_names[_parse_int(raw_id)] = str(name)
        except ValueError as e:
            logger.warning(f"跳过无法解析的方法 id {raw_id!r}: {e}")
    return method_names


def parse_trace_events(file_path: Union[str, Path]) -> ParsedTrace:
    """
    解析已解码的 trace 事件 JSON 文件

    Args:
        file_path: JSON 文件路径，支持 .gz 压缩

    Returns:
        ParsedTrace: 事件列表、方法名称表和元数据

    Raises:
        TraceFileError: 文件不存在、无法读取或结构不合法
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise TraceFileError(f"文件不存在: {file_path}")

    print(f"正在解析文件: {file_path}")

    open_func = gzip.open if file_path.suffix == '.gz' else open
    # ValueError 覆盖 JSON 解析错误和编码错误，EOFError 对应截断的 gzip 文件
    try:
        with open_func(file_path, 'rt', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, EOFError, ValueError) as e:
        raise TraceFileError(f"无法读取 trace 文件 {file_path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get('traceEvents'), list):
        raise TraceFileError(f"trace 文件缺少 traceEvents 列表: {file_path}")

    raw_events = data['traceEvents']
    print(f"读取到 {len(raw_events)} 个原始事件")

    events = []
    for raw_event in raw_events:
        if not isinstance(raw_event, dict):
            logger.warning(f"跳过非对象事件: {raw_event!r}")
            continue
        event = _parse_event(raw_event)
        if event is not None:
            events.append(event)

    skipped = len(raw_events) - len(events)
    if skipped:
        logger.warning(f"共跳过 {skipped} 个无法解析的事件")

    metadata = {
        'traceName': data.get('traceName'),
        'clockSource': data.get('clockSource'),
        'timeUnit': data.get('timeUnit', 'us'),
    }

    return ParsedTrace(
        events=events,
        method_names=_parse_method_names(data.get('methods')),
        metadata=metadata,
    )
