"""
分析器模块
"""

from .aggregator import data_aggregation, AggregatedCalls
from .statistics import CallStatistics, calculate_call_statistics, merge_call_statistics
from .main import analyze_files, load_call_trees

__all__ = [
    'data_aggregation',
    'AggregatedCalls',
    'CallStatistics',
    'calculate_call_statistics',
    'merge_call_statistics',
    'analyze_files',
    'load_call_trees',
]
