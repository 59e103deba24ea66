"""
CLI主模块
"""

import argparse
import logging
import sys
from typing import List, Optional

from .commands import AnalysisCommand, TreeCommand, PlotCommand


def parse_arguments(argv: Optional[List[str]] = None):
    """解析命令行参数"""
    parser = argparse.ArgumentParser(
        description="VM Trace Tool - 从方法进入/退出事件重建逐线程调用树并分析耗时",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例用法:
  # 按方法聚合，输出 json 和 xlsx
  vmtrace-tool analysis trace.json --label baseline --aggregation method --output-format json,xlsx

  # 按调用栈聚合，按全局时间排序并打印 markdown 表格
  vmtrace-tool analysis trace.json --aggregation call_stack --clock global --print-markdown

  # 分析目录下所有 trace 文件，4 个进程并行
  vmtrace-tool analysis "traces/*.json" --aggregation method,thread --max-workers 4

  # 打印线程 1 的调用树，最多显示 5 层
  vmtrace-tool tree trace.json --thread 1 --max-depth 5

  # 绘制线程 1 的调用火焰图
  vmtrace-tool plot trace.json --thread 1 --clock global --output-dir out
        """
    )
    parser.add_argument('--verbose', action='store_true', help='输出调试日志')

    subparsers = parser.add_subparsers(dest='command', help='可用命令')

    # analysis 命令 - 按聚合字段汇总调用耗时
    analysis_parser = subparsers.add_parser('analysis', help='分析单个或多个 trace 文件的调用耗时')
    analysis_parser.add_argument('file', help='trace 文件路径，支持目录和 glob 模式 (如: "dir/*.json")')
    analysis_parser.add_argument('--label', default='trace', help='文件标签 (默认: trace)')
    analysis_parser.add_argument('--aggregation', default='method',
                                 help='聚合字段组合，使用逗号分隔\n'
                                      '支持的字段: method, call_stack, thread\n'
                                      '示例: "method" 或 "call_stack" 或 "method,thread"\n'
                                      '(默认: method)')
    analysis_parser.add_argument('--clock', default='thread', choices=['thread', 'global'],
                                 help='排序使用的时间域 (默认: thread)')
    analysis_parser.add_argument('--print-markdown', action='store_true',
                                 help='是否在stdout中以markdown格式打印表格 (默认: False)')
    analysis_parser.add_argument('--strict', action='store_true',
                                 help='任一线程调用栈不匹配时整个文件失败，而不是只丢弃该线程')
    analysis_parser.add_argument('--output-format', default='json,xlsx',
                                 help='输出格式，逗号分隔，支持 json, csv, xlsx (默认: json,xlsx)')
    analysis_parser.add_argument('--output-dir', default='.', help='输出目录 (默认: 当前目录)')
    analysis_parser.add_argument('--max-workers', type=int, default=None,
                                 help='并行处理的最大工作进程数，默认串行处理')

    # tree 命令 - 打印调用树
    tree_parser = subparsers.add_parser('tree', help='打印重建出的调用树')
    tree_parser.add_argument('file', help='trace 文件路径')
    tree_parser.add_argument('--thread', type=int, default=None, help='只打印指定线程 (默认: 所有线程)')
    tree_parser.add_argument('--max-depth', type=int, default=None, help='最大打印深度 (默认: 不限制)')
    tree_parser.add_argument('--clock', default='thread', choices=['thread', 'global'],
                             help='显示的时间域 (默认: thread)')
    tree_parser.add_argument('--strict', action='store_true',
                             help='任一线程调用栈不匹配时直接报错')

    # plot 命令 - 绘制调用火焰图
    plot_parser = subparsers.add_parser('plot', help='绘制单个线程的调用火焰图')
    plot_parser.add_argument('file', help='trace 文件路径')
    plot_parser.add_argument('--thread', type=int, required=True, help='要绘制的线程 id')
    plot_parser.add_argument('--clock', default='global', choices=['thread', 'global'],
                             help='横轴使用的时间域 (默认: global)')
    plot_parser.add_argument('--output-dir', default='.', help='输出目录 (默认: 当前目录)')

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """主函数"""
    args = parse_arguments(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if not args.command:
        print("错误: 请指定命令 (analysis, tree, plot)")
        print("使用 --help 查看帮助信息")
        return 1

    if args.command == 'analysis':
        command = AnalysisCommand()
    elif args.command == 'tree':
        command = TreeCommand()
    elif args.command == 'plot':
        command = PlotCommand()
    else:
        print(f"错误: 未知命令: {args.command}")
        return 1

    return command.run(args)


if __name__ == "__main__":
    sys.exit(main())
