"""
VM Trace Tool Package
"""

from .models import TraceAction, TraceEvent, ClockType
from .call import Call, CallBuilder
from .call_stack_reconstructor import (
    CallStackReconstructor,
    StackMismatchError,
    ThreadCallTree,
    reconstruct_call_stacks,
)
from .parser import parse_trace_events, TraceFileError

__all__ = [
    'TraceAction',
    'TraceEvent',
    'ClockType',
    'Call',
    'CallBuilder',
    'CallStackReconstructor',
    'StackMismatchError',
    'ThreadCallTree',
    'reconstruct_call_stacks',
    'parse_trace_events',
    'TraceFileError',
]
