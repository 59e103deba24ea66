"""
CLI命令模块
"""

from .analysis import AnalysisCommand
from .tree import TreeCommand
from .plot import PlotCommand

__all__ = ['AnalysisCommand', 'TreeCommand', 'PlotCommand']
