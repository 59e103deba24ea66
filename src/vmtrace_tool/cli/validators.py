# -*- coding: utf-8 -*-
"""
CLI验证器模块
"""

from typing import List

from ..models import ClockType
from ..analyzer.aggregator import VALID_AGGREGATION_FIELDS

VALID_OUTPUT_FORMATS = ('json', 'csv', 'xlsx')


def validate_aggregation_fields(aggregation_spec: str) -> List[str]:
    """
    验证聚合字段组合是否合规

    Args:
        aggregation_spec: 聚合字段组合字符串

    Returns:
        List[str]: 验证后的字段列表

    Raises:
        ValueError: 如果字段组合不合法
    """
    if not aggregation_spec or not aggregation_spec.strip():
        raise ValueError("聚合字段不能为空")

    fields = [field.strip() for field in aggregation_spec.split(',')]

    for field in fields:
        if not field:
            raise ValueError("聚合字段不能为空字符串")
        if field not in VALID_AGGREGATION_FIELDS:
            raise ValueError(f"不支持的聚合字段: {field}。支持的字段: {', '.join(sorted(VALID_AGGREGATION_FIELDS))}")

    if len(fields) != len(set(fields)):
        raise ValueError("聚合字段不能重复")

    return fields


def validate_clock(clock_spec: str) -> ClockType:
    """
    验证时间域选项

    Raises:
        ValueError: 如果时间域不是 thread 或 global
    """
    normalized = (clock_spec or '').strip().lower()
    for clock in ClockType:
        if clock.value == normalized:
            return clock
    raise ValueError(f"不支持的时间域: {clock_spec}。支持的时间域: {', '.join(c.value for c in ClockType)}")


def parse_output_formats(format_spec: str) -> List[str]:
    """
    解析输出格式

    Args:
        format_spec: 逗号分隔的输出格式字符串

    Returns:
        List[str]: 去重后的输出格式列表
    """
    if not format_spec or not format_spec.strip():
        raise ValueError("输出格式不能为空")

    formats = []
    for fmt in format_spec.split(','):
        fmt = fmt.strip().lower()
        if not fmt:
            continue
        if fmt not in VALID_OUTPUT_FORMATS:
            raise ValueError(f"不支持的输出格式: {fmt}。支持的格式: {', '.join(VALID_OUTPUT_FORMATS)}")
        if fmt not in formats:
            formats.append(fmt)

    if not formats:
        raise ValueError("输出格式不能为空")
    return formats
