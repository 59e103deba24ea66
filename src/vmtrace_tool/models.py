# -*- coding: utf-8 -*-
"""
VM trace 事件数据模型定义
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class TraceAction(Enum):
    """方法进入/退出动作"""
    METHOD_ENTER = 'enter'
    METHOD_EXIT = 'exit'

    @classmethod
    def parse(cls, value: Union['TraceAction', str]) -> 'TraceAction':
        """
        将字符串或枚举值解析为 TraceAction

        Args:
            value: TraceAction 或 "enter"/"exit"/"method_enter"/"method_exit" (大小写不敏感)

        Returns:
            TraceAction: 解析后的动作

        Raises:
            ValueError: 如果无法识别该动作
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized.startswith('method_'):
                normalized = normalized[len('method_'):]
            for action in cls:
                if action.value == normalized:
                    return action
        raise ValueError(f"不支持的 trace 动作: {value!r}")


class ClockType(Enum):
    """时间域：线程 CPU 时间或全局墙钟时间"""
    THREAD = 'thread'
    GLOBAL = 'global'


@dataclass
class TraceEvent:
    """已解码的单条 trace 事件"""
    thread_id: int
    method_id: int
    action: TraceAction
    thread_time: int
    global_time: int

    @property
    def is_enter(self) -> bool:
        return self.action is TraceAction.METHOD_ENTER
