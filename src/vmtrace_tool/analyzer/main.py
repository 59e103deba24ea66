"""
主分析器模块
"""

from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import logging

from ..call_stack_reconstructor import reconstruct_call_stacks, ThreadCallTree
from ..models import ClockType
from ..parser import parse_trace_events, ParsedTrace
from ..utils.tree_utils import get_tree_statistics
from .aggregator import data_aggregation
from .presenter import (
    CallSummary,
    summarize_aggregated_calls,
    merge_summaries,
    build_rows,
    generate_base_name,
    generate_output_files,
    print_markdown_table,
)

logger = logging.getLogger(__name__)


def load_call_trees(file_path: str, strict: bool = False) -> Tuple[ParsedTrace, Dict[int, ThreadCallTree]]:
    """
    解析 trace 文件并重建所有线程的调用栈

    Args:
        file_path: trace 文件路径
        strict: 任一线程调用栈不匹配时是否直接抛出异常

    Returns:
        Tuple[ParsedTrace, Dict[int, ThreadCallTree]]: 解析结果与按线程索引的调用树
    """
    trace = parse_trace_events(file_path)
    call_trees = reconstruct_call_stacks(trace.events, strict=strict)

    stats = get_tree_statistics(call_trees)
    print(f"重建了 {stats['total_trees']} 个线程的调用树，共 {stats['total_calls']} 个调用，"
          f"最大深度 {stats['max_depth']}，未完成调用 {stats['incomplete_calls']} 个")
    if stats['failed_trees']:
        logger.warning(f"{stats['failed_trees']} 个线程调用栈重建失败，已从分析中排除")

    return trace, call_trees


def _process_single_file_internal(args) -> Tuple[str, Optional[Dict[Tuple, CallSummary]]]:
    """处理单个文件的内部函数，用于并行处理"""
    file_path, aggregation_spec, strict = args

    try:
        print(f"开始处理文件: {file_path}")
        trace, call_trees = load_call_trees(file_path, strict=strict)

        aggregated = data_aggregation(call_trees, aggregation_spec)
        if not aggregated:
            logger.warning(f"文件 {file_path} 聚合后结果为空")

        summaries = summarize_aggregated_calls(aggregated, aggregation_spec, trace.method_names)
        print(f"完成文件处理: {file_path}")
        return file_path, summaries
    except Exception as e:
        logger.error(f"处理文件 {file_path} 时出错: {e}", exc_info=True)
        return file_path, None


def _process_files_parallel(file_paths: List[str], aggregation_spec: List[str], strict: bool,
                            num_workers: int) -> Dict[str, Dict[Tuple, CallSummary]]:
    """并行处理多个文件"""
    tasks = [(file_path, aggregation_spec, strict) for file_path in file_paths]
    results = {}

    with ProcessPoolExecutor(max_workers=num_workers) as executor:
        futures = [executor.submit(_process_single_file_internal, task) for task in tasks]

        for future in as_completed(futures):
            file_path, summaries = future.result()
            if summaries is not None:
                results[str(file_path)] = summaries

    return results


def analyze_files(file_paths: List[str],
                  aggregation_spec: List[str] = ['method'],
                  output_dir: str = '.',
                  label: Optional[str] = None,
                  output_formats: List[str] = ['json', 'xlsx'],
                  sort_clock: ClockType = ClockType.THREAD,
                  print_markdown: bool = False,
                  strict: bool = False,
                  max_workers: Optional[int] = None) -> List[Path]:
    """
    分析一个或多个 trace 文件，按聚合字段汇总调用耗时并输出

    Args:
        file_paths: trace 文件路径列表
        aggregation_spec: 聚合字段列表
        output_dir: 输出目录
        label: 文件标签，作为输出文件名前缀
        output_formats: 输出格式列表
        sort_clock: 排序使用的时间域
        print_markdown: 是否在 stdout 打印 markdown 表格
        strict: 任一线程调用栈不匹配时是否使整个文件失败
        max_workers: 并行处理的最大进程数，None 或 1 时串行处理

    Returns:
        List[Path]: 生成的文件路径列表
    """
    if max_workers is not None and max_workers > 1 and len(file_paths) > 1:
        print(f"使用 {max_workers} 个进程并行处理 {len(file_paths)} 个文件")
        results = _process_files_parallel(file_paths, aggregation_spec, strict, max_workers)
    else:
        results = {}
        for file_path in file_paths:
            _, summaries = _process_single_file_internal((file_path, aggregation_spec, strict))
            if summaries is not None:
                results[str(file_path)] = summaries

    if not results:
        logger.error("没有成功处理的文件")
        return []

    # 按输入顺序合并，保证结果与并行完成顺序无关
    ordered = [results[str(p)] for p in file_paths if str(p) in results]
    merged = merge_summaries(ordered)
    rows = build_rows(merged, sort_clock=sort_clock)

    if print_markdown:
        print_markdown_table(rows, f"调用统计 ({label or 'trace'}, 按 {','.join(aggregation_spec)} 聚合)")

    base_name = generate_base_name(aggregation_spec, label)
    return generate_output_files(rows, output_dir, base_name, output_formats)
