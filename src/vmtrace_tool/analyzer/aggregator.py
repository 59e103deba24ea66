"""
调用聚合阶段 (纯函数实现)

将多个线程重建出的调用森林按方法、调用栈或线程分组，供展示阶段计算耗时统计。
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple, Union
import logging

from ..call import Call
from ..call_stack_reconstructor import ThreadCallTree
from ..utils.tree_utils import iter_call_paths

logger = logging.getLogger(__name__)

VALID_AGGREGATION_FIELDS = ('method', 'call_stack', 'thread')

AggregationKey = Union[int, Tuple]


@dataclass
class AggregatedCalls:
    """聚合后的数据结构"""
    key: AggregationKey
    calls: List[Call] = field(default_factory=list)
    thread_ids: List[int] = field(default_factory=list)


def _validate_aggregation_fields(aggregation_spec: List[str]):
    if not aggregation_spec:
        raise ValueError("聚合字段不能为空")
    for spec_field in aggregation_spec:
        if spec_field not in VALID_AGGREGATION_FIELDS:
            raise ValueError(f"不支持的聚合字段: {spec_field}。支持的字段: {', '.join(VALID_AGGREGATION_FIELDS)}")
    if len(aggregation_spec) != len(set(aggregation_spec)):
        raise ValueError("聚合字段不能重复")


def _generate_aggregation_key(thread_id: int, path: Tuple[int, ...], call: Call,
                              aggregation_spec: List[str]) -> AggregationKey:
    """
    根据指定字段为单个调用生成聚合键（纯函数）。

    只有一个字段时直接使用该字段的值，否则返回由多字段组成的元组。
    """
    key_parts = []
    for spec_field in aggregation_spec:
        if spec_field == 'method':
            key_parts.append(call.method_id)
        elif spec_field == 'call_stack':
            key_parts.append(path)
        elif spec_field == 'thread':
            key_parts.append(thread_id)

    if len(key_parts) == 1:
        return key_parts[0]
    return tuple(key_parts)


def data_aggregation(call_trees: Mapping[int, ThreadCallTree],
                     aggregation_spec: List[str] = ['method']) -> Dict[AggregationKey, AggregatedCalls]:
    """
    数据聚合的入口函数（纯函数）。

    参数：
    - `call_trees`: 线程 id -> ThreadCallTree 映射
    - `aggregation_spec`: 聚合字段列表（支持：method, call_stack, thread）

    返回：
    - 聚合键 -> AggregatedCalls。调用栈重建失败的线程会被跳过。
    """
    print(f"=== 调用聚合 ({aggregation_spec}) ===")
    _validate_aggregation_fields(aggregation_spec)

    aggregated_data: Dict[AggregationKey, AggregatedCalls] = {}
    aggregated_threads = defaultdict(set)

    for thread_id, tree in call_trees.items():
        if not tree.is_valid:
            logger.warning(f"跳过调用栈重建失败的线程 {thread_id}")
            continue

        for path, call in iter_call_paths(tree.top_level_calls):
            key = _generate_aggregation_key(thread_id, path, call, aggregation_spec)
            entry = aggregated_data.get(key)
            if entry is None:
                entry = aggregated_data[key] = AggregatedCalls(key=key)
            entry.calls.append(call)
            if thread_id not in aggregated_threads[key]:
                aggregated_threads[key].add(thread_id)
                entry.thread_ids.append(thread_id)

    print(f"聚合后得到 {len(aggregated_data)} 个不同的键")
    return aggregated_data
