"""
调用树打印命令模块
"""

from ..validators import validate_clock
from ...analyzer import load_call_trees
from ...call_stack_reconstructor import StackMismatchError
from ...parser import TraceFileError
from ...utils.tree_utils import format_call_tree


class TreeCommand:
    """打印重建出的调用树"""

    def run(self, args) -> int:
        try:
            clock = validate_clock(args.clock)
        except ValueError as e:
            print(f"错误: 参数验证失败 - {e}")
            return 1

        try:
            trace, call_trees = load_call_trees(args.file, strict=args.strict)
        except (TraceFileError, StackMismatchError) as e:
            print(f"错误: {e}")
            return 1

        thread_ids = sorted(call_trees)
        if args.thread is not None:
            if args.thread not in call_trees:
                print(f"错误: trace 中没有线程 {args.thread}，可用线程: {thread_ids}")
                return 1
            thread_ids = [args.thread]

        for thread_id in thread_ids:
            tree = call_trees[thread_id]
            print(f"\n=== 线程 {thread_id} ({tree.event_count} 个事件) ===")
            if not tree.is_valid:
                print(f"调用栈重建失败: {tree.error}")
                continue
            for line in format_call_tree(tree.top_level_calls, trace.method_names, clock, args.max_depth):
                print(line)

        return 0
