"""
调用树遍历与统计工具模块
"""

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple
import logging

from ..call import Call, format_method_id
from ..models import ClockType

logger = logging.getLogger(__name__)


def method_display_name(method_id: int, method_names: Optional[Mapping[int, str]] = None) -> str:
    """获取方法的显示名称，没有名称时使用十六进制 id"""
    if method_names and method_id in method_names:
        return method_names[method_id]
    return format_method_id(method_id)


def iter_calls(calls: Iterable[Call]) -> Iterator[Call]:
    """
    深度优先遍历调用森林

    Args:
        calls: 顶层调用列表

    Yields:
        Call: 按前序遍历顺序产出的调用
    """
    stack = list(reversed(list(calls)))
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def iter_call_paths(calls: Iterable[Call]) -> Iterator[Tuple[Tuple[int, ...], Call]]:
    """
    深度优先遍历调用森林，同时给出从顶层到当前调用的方法 id 路径

    Yields:
        Tuple[Tuple[int, ...], Call]: (调用栈路径, 调用)
    """
    stack = [((call.method_id,), call) for call in reversed(list(calls))]
    while stack:
        path, current = stack.pop()
        yield path, current
        for child in reversed(current.children):
            stack.append((path + (child.method_id,), child))


def count_calls(calls: Iterable[Call]) -> int:
    """计算森林中的调用数"""
    return sum(1 for _ in iter_calls(calls))


def max_stack_depth(calls: Iterable[Call]) -> int:
    """获取森林中最大的栈深度，空森林返回 -1"""
    return max((call.stack_depth for call in iter_calls(calls)), default=-1)


def get_tree_statistics(call_trees: Mapping[int, Any]) -> Dict[str, Any]:
    """
    获取调用树的统计信息

    Args:
        call_trees: 按线程 id 索引的 ThreadCallTree

    Returns:
        Dict[str, Any]: 统计信息
    """
    stats = {
        'total_trees': len(call_trees),
        'failed_trees': 0,
        'total_calls': 0,
        'incomplete_calls': 0,
        'max_depth': 0,
        'tree_sizes': []
    }

    for thread_id, tree in call_trees.items():
        if not tree.is_valid:
            stats['failed_trees'] += 1
            continue

        size = 0
        incomplete = 0
        depth = 0
        for call in iter_calls(tree.top_level_calls):
            size += 1
            if not call.is_complete:
                incomplete += 1
            depth = max(depth, call.stack_depth)

        stats['total_calls'] += size
        stats['incomplete_calls'] += incomplete
        stats['max_depth'] = max(stats['max_depth'], depth)
        stats['tree_sizes'].append({
            'tid': thread_id,
            'size': size,
            'depth': depth,
            'top_level_calls': len(tree.top_level_calls)
        })

    return stats


def _format_time(value: Optional[int]) -> str:
    return '?' if value is None else str(value)


def format_call_tree(calls: Iterable[Call], method_names: Optional[Mapping[int, str]] = None,
                     clock: ClockType = ClockType.THREAD, max_depth: Optional[int] = None) -> List[str]:
    """
    将调用森林渲染为文本树

    Args:
        calls: 顶层调用列表
        method_names: 方法 id 到显示名称的映射
        clock: 显示时间所用的时间域
        max_depth: 最大显示深度，None 表示不限制

    Returns:
        List[str]: 文本行
    """
    lines = []
    # (调用, 子节点前缀, 本行前缀)
    stack = [(call, '', '') for call in reversed(list(calls))]
    while stack:
        call, prefix, line_prefix = stack.pop()
        if max_depth is not None and call.stack_depth > max_depth:
            continue

        inclusive = call.get_inclusive_time(clock)
        marker = '' if call.is_complete else ' [incomplete]'
        lines.append(
            f"{line_prefix}{method_display_name(call.method_id, method_names)} "
            f"(entry={_format_time(call.get_entry_time(clock))}, "
            f"inclusive={_format_time(inclusive)}){marker}"
        )

        last_index = len(call.children) - 1
        for i in range(last_index, -1, -1):
            is_last = i == last_index
            child_line_prefix = prefix + ("└── " if is_last else "├── ")
            child_prefix = prefix + ("    " if is_last else "│   ")
            stack.append((call.children[i], child_prefix, child_line_prefix))

    return lines
