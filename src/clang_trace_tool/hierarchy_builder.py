"""
基于时间区间包含关系的 include 层级推断

trace 中没有显式的父子指针，层级完全由 "区间包含区间" 推断：
outer.start <= inner.start 且 outer.end >= inner.end。
所有计算都只在同一个编译单元的区间之间进行。
"""

import bisect
import logging
from typing import List, Optional, Tuple

from .models import SourceInterval, CompilationUnit

logger = logging.getLogger(__name__)

FULL_ANCESTOR = 'full_ancestor'
NEAREST_PARENT = 'nearest_parent'


def contains(outer: SourceInterval, inner: SourceInterval) -> bool:
    """
    检查 outer 是否包含 inner (端点相等也算包含)
    """
    return outer.start <= inner.start and outer.end >= inner.end


def find_containers(intervals: List[SourceInterval]) -> List[List[SourceInterval]]:
    """
    为每个区间找出同一编译单元中所有包含它的其它区间

    只有开始时间不晚于目标区间的候选才可能包含它，所以先按开始时间排序，
    再用二分查找确定候选前缀，结果与逐对比较完全一致。

    Args:
        intervals: 编译单元的区间列表

    Returns:
        List[List[SourceInterval]]: 与 intervals 一一对应的包含者列表，
            每个列表按 (start, index) 排序
    """
    ordered = sorted(intervals, key=lambda x: (x.start, x.index))
    starts = [interval.start for interval in ordered]

    result = []
    for interval in intervals:
        limit = bisect.bisect_right(starts, interval.start)
        containers = [
            other for other in ordered[:limit]
            if other is not interval and other.end >= interval.end
        ]
        result.append(containers)
    return result


def build_ancestor_chains(intervals: List[SourceInterval]) -> List[SourceInterval]:
    """
    全祖先模式：为每个区间构建从最外层到自身的包含链

    包含者按开始时间升序排列，开始时间相同时结束时间更晚的在前 (更外层)，
    再相同时按原始顺序；区间自身作为叶子追加在末尾。结果写入 interval.ancestors。
    """
    all_containers = find_containers(intervals)
    for interval, containers in zip(intervals, all_containers):
        chain = sorted(containers, key=lambda x: (x.start, -x.end, x.index))
        chain.append(interval)
        interval.ancestors = chain
    return intervals


def _nearest(containers: List[SourceInterval]) -> Optional[SourceInterval]:
    """持续时间最短的包含者；时长相同时取原始顺序靠前的"""
    if not containers:
        return None
    return min(containers, key=lambda x: (x.duration, x.index))


def assign_nearest_parents(intervals: List[SourceInterval]) -> List[SourceInterval]:
    """
    最近父节点模式：为每个区间找出包含它且持续时间最短的区间

    没有包含者的区间 parent 为 None (根)。结果写入 interval.parent。
    """
    all_containers = find_containers(intervals)
    for interval, containers in zip(intervals, all_containers):
        interval.parent = _nearest(containers)
    return intervals


def ensure_hierarchy(unit: CompilationUnit, mode: str) -> CompilationUnit:
    """
    确保编译单元已经按指定模式计算了层级

    每个编译单元只计算一种层级表示，已按另一种模式计算过时抛出 ValueError。
    """
    if unit.hierarchy == mode:
        return unit
    if unit.hierarchy is not None:
        raise ValueError(f"编译单元 {unit.name} 已按 {unit.hierarchy} 模式计算层级，不能再按 {mode} 计算")

    if mode == FULL_ANCESTOR:
        build_ancestor_chains(unit.intervals)
    elif mode == NEAREST_PARENT:
        assign_nearest_parents(unit.intervals)
    else:
        raise ValueError(f"不支持的层级模式: {mode}")

    unit.hierarchy = mode
    return unit


def find_partial_overlaps(intervals: List[SourceInterval]) -> List[Tuple[SourceInterval, SourceInterval]]:
    """
    检查区间族是否满足层状 (laminar) 约束

    Returns:
        List[Tuple[SourceInterval, SourceInterval]]: 部分重叠 (既不相离也不嵌套) 的区间对，
            每对中第一个区间开始得更早
    """
    ordered = sorted(intervals, key=lambda x: (x.start, x.index))
    overlaps = []
    for i, later in enumerate(ordered):
        for earlier in ordered[:i]:
            if earlier.start < later.start < earlier.end < later.end:
                overlaps.append((earlier, later))
    return overlaps
