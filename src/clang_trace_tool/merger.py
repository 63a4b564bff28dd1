"""
多个编译单元的时间线合并 (仅 profile 模式)
"""

import logging
from typing import List

from .models import CompilationUnit, SourceInterval

logger = logging.getLogger(__name__)


def merge_units(units: List[CompilationUnit]) -> List[SourceInterval]:
    """
    将各编译单元的区间依次平移到同一条时间线上

    每个单元的区间整体加上当前偏移量，然后偏移量增加该单元平移前的最大结束时间
    (不是 max_end - min_start)，保证不同单元的样本不会在时间上重叠。
    没有区间的单元被跳过，不推进偏移量。区间时间戳原地修改。

    Args:
        units: 已完成重建的编译单元列表 (按输入顺序)

    Returns:
        List[SourceInterval]: 按单元顺序拼接后的区间列表
    """
    offset = 0
    merged = []
    for unit in units:
        if not unit.intervals:
            continue

        max_end = unit.max_end
        for interval in unit.intervals:
            interval.shift(offset)
        offset += max_end
        merged.extend(unit.intervals)

    logger.info(f"合并 {len(units)} 个编译单元，共 {len(merged)} 个区间")
    return merged
