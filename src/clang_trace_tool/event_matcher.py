"""
Source begin/end 事件配对

Clang 的 Source 事件是异步事件 (ph='b'/'e')，同一个 (pid, tid, id) 会被重复使用，
所以这里采用贪心策略：每个 begin 取同键下时间戳严格大于它的最早一个 end，
被取走的 end 不能再次使用。
"""

import bisect
import logging
from collections import defaultdict
from typing import Dict, List, Tuple, Any

from .models import TraceEvent, SourceInterval

logger = logging.getLogger(__name__)

SOURCE_CATEGORY = 'Source'
SOURCE_NAME = 'Source'


def _is_source_event(event: TraceEvent) -> bool:
    return event.cat == SOURCE_CATEGORY and event.name == SOURCE_NAME


def _has_valid_timestamp(event: TraceEvent) -> bool:
    return isinstance(event.ts, (int, float)) and not isinstance(event.ts, bool)


class _EndPool:
    """同一个键下按时间排序的 end 事件池"""

    def __init__(self):
        self.timestamps: List[float] = []
        self.events: List[TraceEvent] = []

    def add(self, event: TraceEvent):
        # bisect_right 保证相同时间戳的 end 保持输入顺序
        pos = bisect.bisect_right(self.timestamps, event.ts)
        self.timestamps.insert(pos, event.ts)
        self.events.insert(pos, event)

    def take_first_after(self, ts: float):
        """取出并返回第一个时间戳严格大于 ts 的 end，没有则返回 None"""
        pos = bisect.bisect_right(self.timestamps, ts)
        if pos >= len(self.events):
            return None
        self.timestamps.pop(pos)
        return self.events.pop(pos)

    def __len__(self):
        return len(self.events)


def match_source_intervals(events: List[TraceEvent]) -> List[SourceInterval]:
    """
    将 Source begin/end 事件配对为头文件区间

    Args:
        events: 一个编译单元的原始事件列表 (保持 trace 中的顺序)

    Returns:
        List[SourceInterval]: 按 begin 事件顺序排列的区间列表
    """
    begin_events = []
    end_pools: Dict[Tuple[Any, Any, Any], _EndPool] = defaultdict(_EndPool)

    skipped = 0
    for event in events:
        if not _is_source_event(event):
            continue
        if not _has_valid_timestamp(event):
            skipped += 1
            continue
        if event.is_begin and event.detail:
            begin_events.append(event)
        elif event.is_end:
            end_pools[event.match_key].add(event)

    intervals = []
    unmatched_begins = 0
    for begin in begin_events:
        pool = end_pools.get(begin.match_key)
        end = pool.take_first_after(begin.ts) if pool is not None else None
        if end is None:
            unmatched_begins += 1
            continue

        intervals.append(SourceInterval(
            file=begin.detail,
            start=begin.ts,
            end=end.ts,
            index=len(intervals),
        ))

    if skipped:
        logger.debug(f"跳过 ts 无效的 Source 事件 {skipped} 个")
    unmatched_ends = sum(len(pool) for pool in end_pools.values())
    if unmatched_begins or unmatched_ends:
        logger.debug(f"丢弃未配对事件: begin {unmatched_begins} 个, end {unmatched_ends} 个")

    return intervals
