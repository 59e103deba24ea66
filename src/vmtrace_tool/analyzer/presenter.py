"""
数据展示阶段 (纯函数实现)
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
import logging

from ..models import ClockType
from ..utils.tree_utils import method_display_name
from .aggregator import AggregatedCalls
from .statistics import CallStatistics, calculate_call_statistics, merge_call_statistics

logger = logging.getLogger(__name__)


@dataclass
class CallSummary:
    """一个聚合键的展示用汇总信息"""
    columns: Dict[str, Any]
    statistics: Dict[ClockType, CallStatistics]
    thread_count: int = 0
    file_count: int = 1


def _render_key_columns(key: Any, aggregation_spec: List[str],
                        method_names: Optional[Mapping[int, str]] = None) -> Dict[str, Any]:
    """将聚合键渲染为表格列"""
    parts = key if len(aggregation_spec) > 1 else (key,)
    columns = {}
    for spec_field, part in zip(aggregation_spec, parts):
        if spec_field == 'method':
            columns['method'] = method_display_name(part, method_names)
        elif spec_field == 'call_stack':
            columns['call_stack'] = ' -> '.join(method_display_name(m, method_names) for m in part)
        else:
            columns[spec_field] = part
    return columns


def summarize_aggregated_calls(aggregated_data: Dict[Any, AggregatedCalls],
                               aggregation_spec: List[str],
                               method_names: Optional[Mapping[int, str]] = None) -> Dict[Any, CallSummary]:
    """
    计算每个聚合键在两个时间域上的统计信息

    Args:
        aggregated_data: 聚合数据
        aggregation_spec: 聚合字段列表
        method_names: 方法 id 到显示名称的映射

    Returns:
        Dict[Any, CallSummary]: 以原始聚合键（方法 id 或 id 路径）为键的汇总信息，可跨文件合并。
            不同方法即使显示名称相同也分别统计
    """
    summaries = {}
    for key, agg_data in aggregated_data.items():
        columns = _render_key_columns(key, aggregation_spec, method_names)
        summaries[key] = CallSummary(
            columns=columns,
            statistics={clock: calculate_call_statistics(agg_data.calls, clock) for clock in ClockType},
            thread_count=len(agg_data.thread_ids),
        )
    return summaries


def merge_summaries(summaries_list: List[Dict[Any, CallSummary]]) -> Dict[Any, CallSummary]:
    """合并多个文件的汇总信息"""
    grouped: Dict[Any, List[CallSummary]] = {}
    for summaries in summaries_list:
        for key, summary in summaries.items():
            grouped.setdefault(key, []).append(summary)

    merged = {}
    for key, items in grouped.items():
        if len(items) == 1:
            merged[key] = items[0]
            continue
        merged[key] = CallSummary(
            columns=items[0].columns,
            statistics={
                clock: merge_call_statistics([item.statistics[clock] for item in items])
                for clock in ClockType
            },
            thread_count=sum(item.thread_count for item in items),
            file_count=sum(item.file_count for item in items),
        )
    return merged


def build_rows(summaries: Dict[Any, CallSummary],
               sort_clock: ClockType = ClockType.THREAD) -> List[Dict[str, Any]]:
    """
    生成表格行，按指定时间域的总耗时降序排序

    Args:
        summaries: 汇总信息
        sort_clock: 排序使用的时间域

    Returns:
        List[Dict[str, Any]]: 表格行
    """
    clock_totals = {clock: sum(s.statistics[clock].exclusive_total for s in summaries.values())
                    for clock in ClockType}

    ordered = sorted(summaries.values(),
                     key=lambda s: s.statistics[sort_clock].inclusive_total, reverse=True)

    rows = []
    for summary in ordered:
        row = dict(summary.columns)
        thread_stats = summary.statistics[ClockType.THREAD]
        row['count'] = thread_stats.count
        row['incomplete_count'] = thread_stats.incomplete_count
        row['thread_count'] = summary.thread_count
        if summary.file_count > 1:
            row['file_count'] = summary.file_count

        for clock in ClockType:
            stats = summary.statistics[clock]
            prefix = clock.value
            row[f'{prefix}_inclusive_total'] = stats.inclusive_total
            row[f'{prefix}_inclusive_mean'] = round(stats.inclusive_mean, 3)
            row[f'{prefix}_inclusive_min'] = stats.inclusive_min
            row[f'{prefix}_inclusive_max'] = stats.inclusive_max
            row[f'{prefix}_inclusive_std'] = round(stats.inclusive_variance ** 0.5, 3)
            row[f'{prefix}_exclusive_total'] = stats.exclusive_total
            total = clock_totals[clock]
            row[f'{prefix}_exclusive_ratio'] = round(stats.exclusive_total / total * 100, 2) if total > 0 else 0.0

        rows.append(row)

    return rows


def generate_base_name(aggregation_spec: List[str], label: Optional[str] = None) -> str:
    """生成基础文件名"""
    parts = []
    if label:
        parts.append(label)
    parts.append('calls')
    parts.append(f"by_{'_'.join(aggregation_spec)}")
    return '_'.join(parts)


def print_markdown_table(rows: List[Dict[str, Any]], title: str) -> None:
    """打印markdown格式的表格"""
    if not rows:
        print(f"# {title}\n\n没有数据可显示")
        return

    print(f"# {title}\n")

    columns = list(rows[0].keys())
    print("| " + " | ".join(columns) + " |")
    print("| " + " | ".join(["---"] * len(columns)) + " |")

    for row in rows:
        values = []
        for col in columns:
            value = row.get(col, "")
            if isinstance(value, str) and "\n" in value:
                value = value.replace("\n", "<br>")
            values.append(str(value))
        print("| " + " | ".join(values) + " |")

    print()


def generate_output_files(rows: List[Dict[str, Any]], output_dir: str, base_name: str,
                          output_formats: List[str]) -> List[Path]:
    """
    生成输出文件 (JSON、CSV和Excel)

    Args:
        rows: 数据行列表
        output_dir: 输出目录
        base_name: 基础文件名
        output_formats: 输出格式列表，可包含 json, csv, xlsx

    Returns:
        List[Path]: 生成的文件路径列表
    """
    import pandas as pd

    if not rows:
        logger.warning("没有数据可供展示")
        return []

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    files = []

    if 'json' in output_formats:
        json_file = output_path / f"{base_name}.json"
        with open(json_file, 'w', encoding='utf-8') as f:
            json.dump(rows, f, ensure_ascii=False, indent=2)
        files.append(json_file)
        print(f"生成 JSON 文件: {json_file}")

    df = pd.DataFrame(rows)

    if 'csv' in output_formats:
        csv_file = output_path / f"{base_name}.csv"
        df.to_csv(csv_file, index=False)
        files.append(csv_file)
        print(f"生成 CSV 文件: {csv_file}")

    if 'xlsx' in output_formats:
        excel_file = output_path / f"{base_name}.xlsx"
        with pd.ExcelWriter(excel_file, engine='openpyxl') as writer:
            df.to_excel(writer, sheet_name='调用统计', index=False)
        files.append(excel_file)
        print(f"生成 Excel 文件: {excel_file}")

    return files
