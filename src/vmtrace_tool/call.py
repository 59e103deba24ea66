# -*- coding: utf-8 -*-
"""
调用记录 (Call) 与其构建器 (CallBuilder)

CallBuilder 在重建过程中可变，调用 build() 后转换为不可变的 Call。
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .models import ClockType


def format_method_id(method_id: int) -> str:
    """将方法 id 格式化为十六进制字符串"""
    return f"0x{method_id:x}"


@dataclass(frozen=True)
class Call:
    """一次已完成重建的方法调用"""
    method_id: int
    entry_thread_time: Optional[int]
    entry_global_time: Optional[int]
    exit_thread_time: Optional[int]
    exit_global_time: Optional[int]
    children: Tuple['Call', ...]
    stack_depth: int

    @property
    def is_entry_known(self) -> bool:
        """进入事件是否被记录（合成的祖先调用没有进入时间）"""
        return self.entry_thread_time is not None and self.entry_global_time is not None

    @property
    def is_exit_known(self) -> bool:
        """退出事件是否被记录（trace 截断时调用没有退出时间）"""
        return self.exit_thread_time is not None and self.exit_global_time is not None

    @property
    def is_complete(self) -> bool:
        return self.is_entry_known and self.is_exit_known

    def get_entry_time(self, clock: ClockType = ClockType.THREAD) -> Optional[int]:
        if clock is ClockType.THREAD:
            return self.entry_thread_time
        return self.entry_global_time

    def get_exit_time(self, clock: ClockType = ClockType.THREAD) -> Optional[int]:
        if clock is ClockType.THREAD:
            return self.exit_thread_time
        return self.exit_global_time

    def get_inclusive_time(self, clock: ClockType = ClockType.THREAD) -> Optional[int]:
        """
        获取包含子调用在内的耗时

        Args:
            clock: 时间域

        Returns:
            Optional[int]: 退出时间 - 进入时间，任一未知时返回 None
        """
        entry = self.get_entry_time(clock)
        exit_ = self.get_exit_time(clock)
        if entry is None or exit_ is None:
            return None
        return exit_ - entry

    def get_exclusive_time(self, clock: ClockType = ClockType.THREAD) -> Optional[int]:
        """
        获取不含子调用的自身耗时

        Args:
            clock: 时间域

        Returns:
            Optional[int]: 自身耗时，本调用或任一子调用耗时未知时返回 None
        """
        inclusive = self.get_inclusive_time(clock)
        if inclusive is None:
            return None

        children_time = 0
        for child in self.children:
            child_time = child.get_inclusive_time(clock)
            if child_time is None:
                return None
            children_time += child_time
        return inclusive - children_time

    def iter_calls(self) -> Iterator['Call']:
        """深度优先（前序）遍历本调用及其所有子孙调用"""
        stack = [self]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def __str__(self) -> str:
        return (f"Call({format_method_id(self.method_id)}, depth={self.stack_depth}, "
                f"children={len(self.children)})")


class CallBuilder:
    """Call 的可变构建器，在调用栈重建过程中累积进入/退出时间和子调用"""

    def __init__(self, method_id: int):
        self.method_id = method_id
        self.entry_thread_time: Optional[int] = None
        self.entry_global_time: Optional[int] = None
        self.exit_thread_time: Optional[int] = None
        self.exit_global_time: Optional[int] = None
        self.callees: List['CallBuilder'] = []
        self._call: Optional[Call] = None

    def set_method_entry_time(self, thread_time: int, global_time: int):
        self.entry_thread_time = thread_time
        self.entry_global_time = global_time

    def set_method_exit_time(self, thread_time: int, global_time: int):
        self.exit_thread_time = thread_time
        self.exit_global_time = global_time

    def add_callee(self, callee: 'CallBuilder'):
        """添加子调用"""
        self.callees.append(callee)

    def adopt_callees(self, callees: List['CallBuilder']):
        """
        接管一组子调用的所有权（直接移交列表，不做拷贝）

        Args:
            callees: 子调用列表，调用方此后不得再使用该列表
        """
        if self.callees:
            self.callees.extend(callees)
        else:
            self.callees = callees

    @property
    def is_built(self) -> bool:
        return self._call is not None

    def build(self, stack_depth: int = 0) -> Call:
        """
        将构建器转换为不可变的 Call，并按深度优先为每个子调用分配栈深度

        该操作只执行一次，之后的调用直接返回同一个 Call 对象。
        应只在根调用上调用：子调用若已以其他深度单独构建，会抛出 ValueError。
        使用显式栈而非递归，避免深层调用链触发递归深度限制。

        Args:
            stack_depth: 本调用的栈深度

        Returns:
            Call: 构建出的调用记录
        """
        if self._call is not None:
            return self._call

        pending = [(self, stack_depth, False)]
        while pending:
            builder, depth, expanded = pending.pop()
            if builder._call is not None:
                # 已单独构建的子调用不能以其他深度复用
                if builder._call.stack_depth != depth:
                    raise ValueError(
                        f"调用 {format_method_id(builder.method_id)} 已以栈深度 "
                        f"{builder._call.stack_depth} 构建，无法作为深度 {depth} 的子调用")
                continue

            if not expanded:
                # 先处理子调用，再回到本节点
                pending.append((builder, depth, True))
                for callee in reversed(builder.callees):
                    pending.append((callee, depth + 1, False))
                continue

            builder._call = Call(
                method_id=builder.method_id,
                entry_thread_time=builder.entry_thread_time,
                entry_global_time=builder.entry_global_time,
                exit_thread_time=builder.exit_thread_time,
                exit_global_time=builder.exit_global_time,
                children=tuple(callee._call for callee in builder.callees),
                stack_depth=depth,
            )

        return self._call
