"""
调用耗时统计
"""

from dataclasses import dataclass
from typing import List
import statistics

from ..call import Call
from ..models import ClockType


@dataclass
class CallStatistics:
    """一组调用在某个时间域上的耗时统计"""
    clock: ClockType
    count: int
    incomplete_count: int
    inclusive_total: int
    inclusive_mean: float
    inclusive_min: int
    inclusive_max: int
    inclusive_variance: float
    exclusive_total: int

    def __str__(self):
        return (f"CallStatistics({self.clock.value}, count={self.count}, "
                f"mean={self.inclusive_mean:.3f}, std={self.inclusive_variance ** 0.5:.3f})")


def calculate_call_statistics(calls: List[Call], clock: ClockType = ClockType.THREAD) -> CallStatistics:
    # 耗时未知（截断或合成）的调用只计数，不参与耗时统计
    inclusive_times = []
    exclusive_total = 0
    incomplete = 0
    for call in calls:
        inclusive = call.get_inclusive_time(clock)
        if inclusive is None:
            incomplete += 1
            continue
        inclusive_times.append(inclusive)

        exclusive = call.get_exclusive_time(clock)
        if exclusive is not None:
            exclusive_total += exclusive

    if not inclusive_times:
        return CallStatistics(
            clock=clock,
            count=len(calls),
            incomplete_count=incomplete,
            inclusive_total=0,
            inclusive_mean=0.0,
            inclusive_min=0,
            inclusive_max=0,
            inclusive_variance=0.0,
            exclusive_total=0,
        )

    variance = statistics.variance(inclusive_times) if len(inclusive_times) > 1 else 0.0

    return CallStatistics(
        clock=clock,
        count=len(calls),
        incomplete_count=incomplete,
        inclusive_total=sum(inclusive_times),
        inclusive_mean=statistics.mean(inclusive_times),
        inclusive_min=min(inclusive_times),
        inclusive_max=max(inclusive_times),
        inclusive_variance=variance,
        exclusive_total=exclusive_total,
    )


def merge_call_statistics(stats_list: List[CallStatistics]) -> CallStatistics:
    """
    合并多份同一时间域的统计（例如来自多个 trace 文件）

    方差按分组合并公式计算，与直接对全部样本计算的结果一致。
    """
    if not stats_list:
        raise ValueError("没有可合并的统计信息")
    if len(stats_list) == 1:
        return stats_list[0]

    clock = stats_list[0].clock
    timed = [s for s in stats_list if s.count - s.incomplete_count > 0]
    count = sum(s.count for s in stats_list)
    incomplete = sum(s.incomplete_count for s in stats_list)

    if not timed:
        return CallStatistics(clock, count, incomplete, 0, 0.0, 0, 0, 0.0, 0)

    samples = sum(s.count - s.incomplete_count for s in timed)
    inclusive_total = sum(s.inclusive_total for s in timed)
    mean = inclusive_total / samples

    variance = 0.0
    if samples > 1:
        sum_squares = 0.0
        for s in timed:
            n = s.count - s.incomplete_count
            sum_squares += (n - 1) * s.inclusive_variance + n * (s.inclusive_mean - mean) ** 2
        variance = sum_squares / (samples - 1)

    return CallStatistics(
        clock=clock,
        count=count,
        incomplete_count=incomplete,
        inclusive_total=inclusive_total,
        inclusive_mean=mean,
        inclusive_min=min(s.inclusive_min for s in timed),
        inclusive_max=max(s.inclusive_max for s in timed),
        inclusive_variance=variance,
        exclusive_total=sum(s.exclusive_total for s in timed),
    )
