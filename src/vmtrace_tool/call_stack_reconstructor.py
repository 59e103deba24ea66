# -*- coding: utf-8 -*-
"""
基于方法进入/退出事件序列的逐线程调用栈重建
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union
import logging

from .call import Call, CallBuilder, format_method_id
from .models import TraceAction, TraceEvent

logger = logging.getLogger(__name__)


class StackMismatchError(RuntimeError):
    """退出事件与当前最内层调用的方法不一致，trace 结构损坏"""

    def __init__(self, popped_method_id: int, requested_method_id: int):
        self.popped_method_id = popped_method_id
        self.requested_method_id = requested_method_id
        super().__init__(
            f"调用栈重建出错: 尝试在方法 {format_method_id(popped_method_id)} 中"
            f"退出方法 {format_method_id(requested_method_id)}"
        )


class CallStackReconstructor:
    """根据单个线程的 trace 事件序列重建调用栈"""

    def __init__(self):
        # 当前认为位于栈深度 0 的调用
        self._top_level_calls: List[CallBuilder] = []
        # 根据已接收事件推断出的当前调用栈，栈顶为最内层调用
        self._call_stack: List[CallBuilder] = []
        self._top_level_callees: Optional[Tuple[Call, ...]] = None
        self._error: Optional[StackMismatchError] = None
        self._stale_warned = False

    @property
    def stack_depth(self) -> int:
        """当前未退出的调用层数"""
        return len(self._call_stack)

    @property
    def is_failed(self) -> bool:
        return self._error is not None

    def add_trace_action(self, method_id: int, action: Union[TraceAction, str],
                         thread_time: int, global_time: int):
        """
        处理一条 trace 事件

        Args:
            method_id: 方法 id
            action: 进入或退出
            thread_time: 线程 CPU 时间
            global_time: 全局墙钟时间

        Raises:
            StackMismatchError: 退出事件与最内层调用不匹配；之后本实例不可再用
            ValueError: 无法识别的动作
        """
        if self._error is not None:
            raise self._error

        if self._top_level_callees is not None and not self._stale_warned:
            logger.warning("调用栈已经完成构建，后续事件不会反映在已缓存的结果中")
            self._stale_warned = True

        action = TraceAction.parse(action)
        if action is TraceAction.METHOD_ENTER:
            self._enter_method(method_id, thread_time, global_time)
        else:
            self._exit_method(method_id, thread_time, global_time)

    def add_trace_event(self, event: TraceEvent):
        self.add_trace_action(event.method_id, event.action, event.thread_time, event.global_time)

    def _enter_method(self, method_id: int, thread_time: int, global_time: int):
        builder = CallBuilder(method_id)
        builder.set_method_entry_time(thread_time, global_time)

        if not self._call_stack:
            self._top_level_calls.append(builder)
        else:
            caller = self._call_stack[-1]
            caller.add_callee(builder)

        self._call_stack.append(builder)

    def _exit_method(self, method_id: int, thread_time: int, global_time: int):
        if self._call_stack:
            builder = self._call_stack.pop()
            if builder.method_id != method_id:
                self._error = StackMismatchError(builder.method_id, method_id)
                raise self._error

            builder.set_method_exit_time(thread_time, global_time)
            return

        # 退出的方法在开始记录前就已进入，此时创建该方法的调用
        builder = CallBuilder(method_id)
        builder.set_method_exit_time(thread_time, global_time)

        # 此前所有顶层调用都由该方法发起：移交给它，顶层只保留它自己
        builder.adopt_callees(self._top_level_calls)
        self._top_level_calls = [builder]
        logger.debug(f"方法 {format_method_id(method_id)} 在记录开始前已进入，作为新的顶层调用")

    def get_top_level_callees(self) -> Tuple[Call, ...]:
        """
        获取顶层调用列表

        首次调用时将所有构建器转换为不可变的 Call 并缓存，之后直接返回同一结果。

        Returns:
            Tuple[Call, ...]: 按出现顺序排列的顶层调用
        """
        if self._top_level_callees is not None:
            return self._top_level_callees

        # TODO: 利用线程时间与全局时间的差异推断上下文切换
        self._top_level_callees = tuple(builder.build(0) for builder in self._top_level_calls)
        return self._top_level_callees

    def get_all_calls(self) -> Iterator[Call]:
        """深度优先遍历所有调用"""
        for call in self.get_top_level_callees():
            yield from call.iter_calls()


@dataclass
class ThreadCallTree:
    """单个线程的调用栈重建结果"""
    thread_id: int
    top_level_calls: Tuple[Call, ...]
    event_count: int
    error: Optional[StackMismatchError] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None


def _group_events_by_thread(events: Iterable[TraceEvent]) -> Dict[int, List[TraceEvent]]:
    """
    按线程分组事件，保持每个线程内的原始顺序

    Args:
        events: 事件序列

    Returns:
        Dict[int, List[TraceEvent]]: 按线程 id 分组的事件
    """
    events_by_thread = defaultdict(list)
    for event in events:
        events_by_thread[event.thread_id].append(event)

    logger.info(f"按线程分组完成，共 {len(events_by_thread)} 个线程")
    return dict(events_by_thread)


def reconstruct_thread(thread_id: int, events: List[TraceEvent], strict: bool = False) -> ThreadCallTree:
    """
    重建单个线程的调用栈

    Args:
        thread_id: 线程 id
        events: 该线程按时间顺序排列的事件
        strict: 为 True 时遇到 StackMismatchError 直接抛出

    Returns:
        ThreadCallTree: 重建结果；调用栈不匹配时 error 非空且 top_level_calls 为空
    """
    reconstructor = CallStackReconstructor()
    try:
        for event in events:
            reconstructor.add_trace_event(event)
    except StackMismatchError as e:
        if strict:
            raise
        logger.error(f"线程 {thread_id} 调用栈重建失败，丢弃该线程: {e}")
        return ThreadCallTree(thread_id=thread_id, top_level_calls=(), event_count=len(events), error=e)

    if reconstructor.stack_depth:
        logger.warning(f"线程 {thread_id} 的 trace 结束时仍有 {reconstructor.stack_depth} 个未退出的调用")

    return ThreadCallTree(
        thread_id=thread_id,
        top_level_calls=reconstructor.get_top_level_callees(),
        event_count=len(events),
    )


def reconstruct_call_stacks(events: Iterable[TraceEvent], strict: bool = False) -> Dict[int, ThreadCallTree]:
    """
    为所有线程重建调用栈

    Args:
        events: 所有线程交织在一起的事件序列
        strict: 为 True 时任一线程调用栈不匹配即抛出 StackMismatchError

    Returns:
        Dict[int, ThreadCallTree]: 按线程 id 索引的重建结果
    """
    trees = {}
    for thread_id, thread_events in _group_events_by_thread(events).items():
        logger.info(f"为线程 {thread_id} 重建调用栈，事件数: {len(thread_events)}")
        trees[thread_id] = reconstruct_thread(thread_id, thread_events, strict=strict)

    failed = sum(1 for tree in trees.values() if not tree.is_valid)
    logger.info(f"成功重建 {len(trees) - failed} 个线程的调用栈，失败 {failed} 个")
    return trees
