"""
调用火焰图命令模块
"""

from ..validators import validate_clock
from ...analyzer import load_call_trees
from ...parser import TraceFileError


class PlotCommand:
    """为单个线程绘制调用火焰图"""

    def run(self, args) -> int:
        try:
            clock = validate_clock(args.clock)
        except ValueError as e:
            print(f"错误: 参数验证失败 - {e}")
            return 1

        try:
            trace, call_trees = load_call_trees(args.file)
        except TraceFileError as e:
            print(f"错误: {e}")
            return 1

        tree = call_trees.get(args.thread)
        if tree is None:
            print(f"错误: trace 中没有线程 {args.thread}，可用线程: {sorted(call_trees)}")
            return 1
        if not tree.is_valid:
            print(f"错误: 线程 {args.thread} 调用栈重建失败 - {tree.error}")
            return 1

        from ...analyzer.visualization import plot_call_tree

        image_file = plot_call_tree(tree.top_level_calls, args.output_dir, args.thread,
                                    clock=clock, method_names=trace.method_names)
        if image_file is None:
            print(f"错误: 线程 {args.thread} 没有可绘制的调用")
            return 1
        return 0
