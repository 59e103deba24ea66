"""
工具模块
"""

from .tree_utils import iter_calls, iter_call_paths, count_calls, max_stack_depth, get_tree_statistics, format_call_tree

__all__ = ['iter_calls', 'iter_call_paths', 'count_calls', 'max_stack_depth', 'get_tree_statistics', 'format_call_tree']
