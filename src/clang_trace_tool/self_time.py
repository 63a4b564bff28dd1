"""
头文件自身耗时 (self time) 计算
"""

import logging
from collections import defaultdict
from typing import Dict, List

from .models import SourceInterval, TraceDiagnostic
from .hierarchy_builder import contains, find_containers
from .errors import MalformedTraceError

logger = logging.getLogger(__name__)


def compute_self_durations(intervals: List[SourceInterval], strict: bool = False) -> List[TraceDiagnostic]:
    """
    计算每个区间的自身耗时 = 总时长 - 直接子区间时长之和

    直接子区间：被当前区间包含，且不存在另一个同样被当前区间包含的区间再包含它。
    这里从完整区间集合重新计算包含关系，与使用哪种层级模式无关。

    Args:
        intervals: 编译单元的区间列表，结果写入 interval.self_duration
        strict: 为 True 时出现负的自身耗时直接抛出 MalformedTraceError

    Returns:
        List[TraceDiagnostic]: 负自身耗时的诊断信息 (结果不做截断)
    """
    children_time: Dict[SourceInterval, float] = defaultdict(float)

    all_containers = find_containers(intervals)
    for child, containers in zip(intervals, all_containers):
        for parent in containers:
            has_middle = any(
                middle is not parent and contains(parent, middle)
                for middle in containers
            )
            if not has_middle:
                children_time[parent] += child.duration

    diagnostics = []
    for interval in intervals:
        interval.self_duration = interval.duration - children_time[interval]
        if interval.self_duration < 0:
            message = (f"头文件 {interval.file} [{interval.start}, {interval.end}] "
                       f"自身耗时为负: {interval.self_duration}")
            if strict:
                raise MalformedTraceError(message)
            logger.warning(message)
            diagnostics.append(TraceDiagnostic('negative_self_time', message, interval.file))

    return diagnostics
