"""
主分析流程：单个编译单元的重建与多文件并行处理
"""

import logging
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from ..models import CompilationUnit, TraceEvent, TraceDiagnostic
from ..parser import load_trace_file, parse_trace_events, extract_build_time
from ..event_matcher import match_source_intervals
from ..hierarchy_builder import ensure_hierarchy, find_partial_overlaps, FULL_ANCESTOR, NEAREST_PARENT
from ..self_time import compute_self_durations
from ..errors import ClangTraceError, MalformedTraceError

logger = logging.getLogger(__name__)

PROFILE_MODE = 'profile'
DASHBOARD_MODE = 'dashboard'

# 每种输出格式使用的层级表示
HIERARCHY_BY_MODE = {
    PROFILE_MODE: FULL_ANCESTOR,
    DASHBOARD_MODE: NEAREST_PARENT,
}

PROGRESS_INTERVAL = 100


def unit_name_for(file_path: Union[str, Path]) -> str:
    """编译单元名称：去掉 .json 后缀的文件名"""
    name = Path(file_path).name
    if name.endswith('.json'):
        name = name[:-len('.json')]
    return name


def reconstruct_unit(name: str, events: List[TraceEvent], mode: str = PROFILE_MODE,
                     strict: bool = False, source_path: Optional[str] = None) -> CompilationUnit:
    """
    重建一个编译单元：事件配对 -> 层级推断 -> 自身耗时 -> 层状检查

    Args:
        name: 编译单元名称
        events: 该单元的原始事件
        mode: 'profile' (全祖先链) 或 'dashboard' (最近父节点)
        strict: 为 True 时 trace 数据不满足嵌套约束直接抛出 MalformedTraceError
        source_path: 输入文件路径，仅用于记录

    Returns:
        CompilationUnit: 重建结果，数据质量问题记录在 diagnostics 中
    """
    if mode not in HIERARCHY_BY_MODE:
        raise ValueError(f"不支持的模式: {mode}。支持的模式: {', '.join(sorted(HIERARCHY_BY_MODE))}")

    unit = CompilationUnit(
        name=name,
        intervals=match_source_intervals(events),
        build_time=extract_build_time(events),
        source_path=source_path,
    )
    ensure_hierarchy(unit, HIERARCHY_BY_MODE[mode])
    unit.diagnostics.extend(compute_self_durations(unit.intervals, strict=strict))

    overlaps = find_partial_overlaps(unit.intervals)
    if overlaps:
        first, second = overlaps[0]
        message = f"编译单元 {name} 中有 {len(overlaps)} 对部分重叠的区间，例如 {first!r} 与 {second!r}"
        if strict:
            raise MalformedTraceError(message)
        logger.warning(message)
        for earlier, later in overlaps:
            unit.diagnostics.append(TraceDiagnostic(
                'partial_overlap', f"{earlier!r} 与 {later!r} 部分重叠", later.file
            ))

    logger.debug(f"重建完成: {unit}")
    return unit


def process_trace_file(file_path: Union[str, Path], mode: str = PROFILE_MODE,
                       strict: bool = False) -> Tuple[str, Optional[CompilationUnit]]:
    """
    处理单个 trace 文件，用于并行处理

    解析或校验失败时记录日志并返回 None，不影响其它文件。
    """
    try:
        data = load_trace_file(file_path)
        events = parse_trace_events(data)
        unit = reconstruct_unit(unit_name_for(file_path), events, mode=mode,
                                strict=strict, source_path=str(file_path))
        return str(file_path), unit
    except (ClangTraceError, OSError) as e:
        logger.warning(f"处理文件 {file_path} 失败: {e}")
        return str(file_path), None
    except (ValueError, TypeError) as e:
        logger.warning(f"处理文件 {file_path} 时遇到无法识别的数据: {e}", exc_info=True)
        return str(file_path), None


def process_trace_files(file_paths: List[Union[str, Path]], mode: str = PROFILE_MODE,
                        max_workers: Optional[int] = None, strict: bool = False) -> List[CompilationUnit]:
    """
    并行处理多个 trace 文件

    每个编译单元的重建互相独立，在进程池中并行执行；返回结果保持输入顺序，
    没有区间的编译单元不会出现在结果中。

    Args:
        file_paths: trace 文件路径列表
        mode: 'profile' 或 'dashboard'
        max_workers: 最大工作进程数，None 为 CPU 核心数，1 表示在当前进程串行处理
        strict: 严格模式

    Returns:
        List[CompilationUnit]: 成功重建且包含区间的编译单元
    """
    results: Dict[str, Optional[CompilationUnit]] = {}
    total = len(file_paths)

    def _record(path: str, unit: Optional[CompilationUnit]):
        results[path] = unit
        if len(results) % PROGRESS_INTERVAL == 0:
            logger.info(f"已处理 {len(results)}/{total} 个文件...")

    if max_workers == 1 or total <= 1:
        for file_path in file_paths:
            _record(*process_trace_file(file_path, mode, strict))
    else:
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(process_trace_file, file_path, mode, strict) for file_path in file_paths]
            for future in as_completed(futures):
                _record(*future.result())

    units = []
    for file_path in file_paths:
        unit = results.get(str(file_path))
        if unit is not None and unit.intervals:
            units.append(unit)

    logger.info(f"成功处理 {len(units)}/{total} 个文件")
    return units
