"""
紧凑 dashboard 格式序列化

输出体积优先：全局文件字典按出现频率降序编号 (最常见的文件 id 最小)，
每个编译单元用并行数组保存 include 信息，startTimes 做差分编码，
层级只保留最近父节点。
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, List, Any, Tuple

from ..models import CompilationUnit, SourceInterval
from ..hierarchy_builder import ensure_hierarchy, NEAREST_PARENT
from ..errors import NoCompilationUnitsError
from ..utils.time import us_to_rounded_ms

logger = logging.getLogger(__name__)

NO_PARENT = -1
DEFAULT_DESCRIPTION = 'Clang compilation time analysis'


def _chronological(unit: CompilationUnit) -> List[SourceInterval]:
    return sorted(unit.intervals, key=lambda x: x.start)


def build_file_dictionary(units: List[CompilationUnit]) -> Tuple[List[str], Dict[str, int]]:
    """
    构建全局文件字典

    统计每个区间自身的文件以及其最近父节点的文件出现次数，按次数降序排序
    (次数相同保持首次出现顺序)，依次分配连续 id。

    Returns:
        Tuple[List[str], Dict[str, int]]: (文件列表, 文件 -> id)
    """
    usage = Counter()
    for unit in units:
        for interval in _chronological(unit):
            usage[interval.file] += 1
            if interval.parent is not None:
                usage[interval.parent.file] += 1

    # Counter 保持插入顺序，sorted 是稳定排序
    files = [file for file, _ in sorted(usage.items(), key=lambda item: -item[1])]
    file_to_id = {file: idx for idx, file in enumerate(files)}
    return files, file_to_id


def encode_unit_includes(intervals: List[SourceInterval], file_to_id: Dict[str, int]) -> Dict[str, List[int]]:
    """
    将一个编译单元的区间编码为四个并行数组

    startTimes 为相邻区间开始时间 (先换算为整数毫秒) 的差值，第一个相对于 0。
    """
    encoded = {'fileIds': [], 'startTimes': [], 'durations': [], 'parentFileIds': []}

    prev_start_ms = 0
    for interval in intervals:
        start_ms = us_to_rounded_ms(interval.start)
        encoded['fileIds'].append(file_to_id[interval.file])
        encoded['startTimes'].append(start_ms - prev_start_ms)
        encoded['durations'].append(us_to_rounded_ms(interval.duration))
        encoded['parentFileIds'].append(
            file_to_id[interval.parent.file] if interval.parent is not None else NO_PARENT
        )
        prev_start_ms = start_ms

    return encoded


def build_dashboard_document(units: List[CompilationUnit],
                             description: str = DEFAULT_DESCRIPTION) -> Dict[str, Any]:
    """
    构建 dashboard 文档

    Args:
        units: 已完成重建的编译单元 (没有区间的单元会被忽略)
        description: 写入 metadata.description

    Returns:
        Dict[str, Any]: dashboard 文档

    Raises:
        NoCompilationUnitsError: 没有任何编译单元包含区间
    """
    units = [unit for unit in units if unit.intervals]
    if not units:
        raise NoCompilationUnitsError("没有任何编译单元包含 Source 区间")

    for unit in units:
        ensure_hierarchy(unit, NEAREST_PARENT)

    files, file_to_id = build_file_dictionary(units)

    ordered_units = sorted(units, key=lambda unit: -unit.include_count)

    compilation_units = {'names': [], 'buildTimes': []}
    includes = {'fileIds': [], 'startTimes': [], 'durations': [], 'parentFileIds': []}
    total_includes = 0

    for unit in ordered_units:
        compilation_units['names'].append(unit.name)
        compilation_units['buildTimes'].append(us_to_rounded_ms(unit.build_time))

        encoded = encode_unit_includes(_chronological(unit), file_to_id)
        for key, values in encoded.items():
            includes[key].append(values)
        total_includes += unit.include_count

    logger.info(f"编译单元 {len(ordered_units)} 个, include {total_includes} 个, 头文件 {len(files)} 个")

    return {
        'metadata': {
            'generatedAt': datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
            'totalCompilationUnits': len(ordered_units),
            'totalIncludes': total_includes,
            'totalUniqueHeaders': len(files),
            'description': description,
        },
        'compilationUnits': compilation_units,
        'tables': {'files': files},
        'includes': includes,
    }
