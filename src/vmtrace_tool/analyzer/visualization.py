"""
可视化模块
"""

from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple
import logging

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import matplotlib.colors as mcolors

from ..call import Call
from ..models import ClockType
from ..utils.tree_utils import iter_calls, method_display_name

logger = logging.getLogger(__name__)

INCOMPLETE_COLOR = mcolors.to_rgba('lightgray')


def _resolve_spans(calls: Tuple[Call, ...], clock: ClockType) -> Dict[int, Tuple[int, int]]:
    """
    计算每个调用在图中的起止时间

    进入或退出时间未知的调用用其子孙调用的已知时间范围截取，仍无法确定的调用不绘制。

    Returns:
        Dict[int, Tuple[int, int]]: id(call) -> (start, end)
    """
    spans = {}
    # 后序处理：先确定子调用的范围
    ordered = list(iter_calls(calls))
    for call in reversed(ordered):
        start = call.get_entry_time(clock)
        end = call.get_exit_time(clock)
        child_spans = [spans[id(child)] for child in call.children if id(child) in spans]
        if start is None and child_spans:
            start = min(span[0] for span in child_spans)
        if end is None and child_spans:
            end = max(span[1] for span in child_spans)
        if start is None and end is not None:
            start = end
        if end is None and start is not None:
            end = start
        if start is not None:
            spans[id(call)] = (start, end)
    return spans


def plot_call_tree(calls: Tuple[Call, ...], output_dir: str, thread_id: int,
                   clock: ClockType = ClockType.GLOBAL,
                   method_names: Optional[Mapping[int, str]] = None,
                   label_min_ratio: float = 0.02) -> Optional[Path]:
    """
    绘制单个线程的调用火焰图（横轴为时间，纵轴为栈深度）

    Args:
        calls: 该线程的顶层调用
        output_dir: 输出目录
        thread_id: 线程 id，用于标题和文件名
        clock: 横轴使用的时间域
        method_names: 方法 id 到显示名称的映射
        label_min_ratio: 宽度占总时间比例不低于该值的调用才显示方法名

    Returns:
        Optional[Path]: 生成的图片路径，没有可绘制的调用时返回 None
    """
    print("=== 生成调用火焰图 ===")

    spans = _resolve_spans(calls, clock)
    if not spans:
        logger.warning(f"线程 {thread_id} 没有可绘制的调用")
        return None

    plt.rcParams['font.sans-serif'] = ['DejaVu Sans', 'Arial', 'sans-serif']
    plt.rcParams['axes.unicode_minus'] = False

    min_time = min(span[0] for span in spans.values())
    max_time = max(span[1] for span in spans.values())
    time_range = max(max_time - min_time, 1)

    bars_by_depth: Dict[int, List[Tuple[int, int]]] = {}
    colors_by_depth: Dict[int, List[Tuple[float, float, float, float]]] = {}
    max_depth = 0
    cmap = plt.get_cmap('tab20')

    fig, ax = plt.subplots(figsize=(16, 8))

    for call in iter_calls(calls):
        span = spans.get(id(call))
        if span is None:
            continue
        start, end = span
        width = max(end - start, time_range * 0.001)
        depth = call.stack_depth
        max_depth = max(max_depth, depth)
        bars_by_depth.setdefault(depth, []).append((start - min_time, width))
        color = cmap(call.method_id % 20) if call.is_complete else INCOMPLETE_COLOR
        colors_by_depth.setdefault(depth, []).append(color)

        if width / time_range >= label_min_ratio:
            ax.text(start - min_time + width / 2, depth + 0.4,
                    method_display_name(call.method_id, method_names),
                    ha='center', va='center', fontsize=7, clip_on=True)

    for depth, bars in bars_by_depth.items():
        ax.broken_barh(bars, (depth, 0.8), facecolors=colors_by_depth[depth], edgecolor='white', linewidth=0.5)

    ax.set_ylim(0, max_depth + 1)
    ax.set_xlim(0, time_range)
    ax.invert_yaxis()
    ax.set_xlabel(f'{clock.value} time (relative)')
    ax.set_ylabel('stack depth')
    ax.set_title(f'Call tree of thread {thread_id} ({clock.value} clock)')
    ax.grid(True, axis='x', alpha=0.3)

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    image_file = output_path / f"call_tree_thread_{thread_id}_{clock.value}.png"

    plt.tight_layout()
    plt.savefig(image_file, dpi=150)
    plt.close(fig)

    print(f"调用火焰图已生成: {image_file}")
    return image_file
