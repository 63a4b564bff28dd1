"""
Firefox Profiler 格式序列化

每个头文件区间生成一个样本：栈为它的完整 include 链，时间为区间结束时间，
权重为自身耗时。字符串/函数/帧/栈四张表都做去重，同一个键总是返回同一个索引。
"""

import logging
import os
import time
from typing import Dict, List, Any, Optional, Tuple

from ..models import SourceInterval, CompilationUnit
from ..hierarchy_builder import ensure_hierarchy, FULL_ANCESTOR
from ..merger import merge_units
from ..self_time import compute_self_durations
from ..utils.time import us_to_ms

logger = logging.getLogger(__name__)

COMPILATION_CATEGORY = 1
HEADER_SUBCATEGORY = 1
WEIGHT_TYPE = 'tracing-ms'

CATEGORIES = [
    {'name': 'Other', 'color': 'grey', 'subcategories': ['Other']},
    {'name': 'Compilation', 'color': 'blue', 'subcategories': ['Other', 'Header Processing']},
]

# (interval, 编译单元根帧名称或 None)
SampleEntry = Tuple[SourceInterval, Optional[str]]


class ProfileTables:
    """
    一次序列化运行的表上下文

    所有去重缓存都是实例字段，不同运行之间互不影响。
    """

    def __init__(self):
        self.string_array: List[str] = ['']
        self._string_map: Dict[str, int] = {'': 0}

        self.func_table: Dict[str, Any] = {
            'name': [], 'isJS': [], 'relevantForJS': [], 'resource': [],
            'fileName': [], 'lineNumber': [], 'columnNumber': [], 'length': 0,
        }
        self.frame_table: Dict[str, Any] = {
            'address': [], 'inlineDepth': [], 'category': [], 'subcategory': [],
            'func': [], 'nativeSymbol': [], 'innerWindowID': [], 'line': [],
            'column': [], 'length': 0,
        }
        self.stack_table: Dict[str, Any] = {'frame': [], 'prefix': [], 'length': 0}

        self._func_cache: Dict[str, int] = {}
        self._frame_cache: Dict[str, int] = {}
        self._stack_cache: Dict[Tuple[int, Optional[int]], int] = {}

    def intern_string(self, value: str) -> int:
        """返回字符串在字符串表中的索引，不存在时追加"""
        index = self._string_map.get(value)
        if index is None:
            index = len(self.string_array)
            self.string_array.append(value)
            self._string_map[value] = index
        return index

    def get_or_create_func(self, name: str) -> int:
        if name in self._func_cache:
            return self._func_cache[name]

        func_index = self.func_table['length']
        name_index = self.intern_string(name)
        table = self.func_table
        table['name'].append(name_index)
        table['isJS'].append(False)
        table['relevantForJS'].append(False)
        table['resource'].append(-1)
        # 文件名与函数名相同
        table['fileName'].append(name_index)
        table['lineNumber'].append(None)
        table['columnNumber'].append(None)
        table['length'] += 1

        self._func_cache[name] = func_index
        return func_index

    def get_or_create_frame(self, name: str) -> int:
        if name in self._frame_cache:
            return self._frame_cache[name]

        func_index = self.get_or_create_func(name)
        frame_index = self.frame_table['length']
        table = self.frame_table
        table['address'].append(-1)
        table['inlineDepth'].append(0)
        table['category'].append(COMPILATION_CATEGORY)
        table['subcategory'].append(HEADER_SUBCATEGORY)
        table['func'].append(func_index)
        table['nativeSymbol'].append(None)
        table['innerWindowID'].append(None)
        table['line'].append(None)
        table['column'].append(None)
        table['length'] += 1

        self._frame_cache[name] = frame_index
        return frame_index

    def get_or_create_stack(self, frame_index: int, prefix: Optional[int]) -> int:
        key = (frame_index, prefix)
        if key in self._stack_cache:
            return self._stack_cache[key]

        stack_index = self.stack_table['length']
        self.stack_table['frame'].append(frame_index)
        self.stack_table['prefix'].append(prefix)
        self.stack_table['length'] += 1

        self._stack_cache[key] = stack_index
        return stack_index

    def get_stack_for_path(self, path: List[str]) -> Optional[int]:
        """从根开始依次构建/复用栈节点，返回叶子栈索引"""
        current = None
        for name in path:
            current = self.get_or_create_stack(self.get_or_create_frame(name), current)
        return current


def build_samples(tables: ProfileTables, entries: List[SampleEntry]) -> Dict[str, Any]:
    """
    为每个区间生成一个样本

    样本按区间结束时间排序 (稳定排序)；时间和权重从微秒换算为毫秒。

    Args:
        tables: 本次运行的表上下文
        entries: (区间, 根帧名称) 列表，区间必须已经计算了祖先链和自身耗时

    Returns:
        Dict[str, Any]: samples 表
    """
    samples = {'stack': [], 'time': [], 'weight': [], 'weightType': WEIGHT_TYPE, 'length': 0}

    for interval, root_name in sorted(entries, key=lambda entry: entry[0].end):
        path = interval.get_include_stack()
        if root_name:
            path = [root_name] + path

        samples['stack'].append(tables.get_stack_for_path(path))
        samples['time'].append(us_to_ms(interval.end))
        samples['weight'].append(us_to_ms(interval.self_duration))
        samples['length'] += 1

    return samples


def build_profile_document(entries: List[SampleEntry], name: str) -> Dict[str, Any]:
    """
    构建完整的 Firefox Profiler 文档

    Args:
        entries: (区间, 根帧名称) 列表
        name: 输入文件名或合并后的名称，写入 meta.arguments 和线程名

    Returns:
        Dict[str, Any]: profile 文档
    """
    if not entries:
        logger.warning("trace 中没有找到 Source 标记")

    tables = ProfileTables()
    samples = build_samples(tables, entries)

    now = time.time() * 1000
    last_time = samples['time'][-1] if samples['length'] else 0

    return {
        'meta': {
            'interval': 1,
            'startTime': now,
            'endTime': now + last_time,
            'processType': 0,
            'product': 'clang-trace-converter',
            'stackwalk': 0,
            'debug': False,
            'version': 28,
            'preprocessedProfileVersion': 57,
            'categories': CATEGORIES,
            'markerSchema': [],
            'sampleUnits': {'time': 'ms', 'eventDelay': 'ms', 'threadCPUDelta': 'µs'},
            'symbolicationNotSupported': True,
            'sourceCodeIsNotOnSearchfox': True,
            'usesOnlyOneStackType': True,
            'importedFrom': 'clang-time-trace',
            'arguments': name,
        },
        'libs': [],
        'shared': {'stringArray': tables.string_array},
        'threads': [{
            'processType': 'default',
            'processStartupTime': 0,
            'processShutdownTime': None,
            'registerTime': 0,
            'unregisterTime': None,
            'pausedRanges': [],
            'name': f"Clang compilation: {os.path.basename(name)}",
            'isMainThread': True,
            'pid': '0',
            'tid': 0,
            'samples': samples,
            'markers': {
                'data': [], 'name': [], 'startTime': [], 'endTime': [],
                'phase': [], 'category': [], 'length': 0,
            },
            'stackTable': tables.stack_table,
            'frameTable': tables.frame_table,
            'funcTable': tables.func_table,
            'resourceTable': {'lib': [], 'name': [], 'host': [], 'type': [], 'length': 0},
            'nativeSymbols': {'libIndex': [], 'address': [], 'name': [], 'functionSize': [], 'length': 0},
        }],
    }


def _prepare_unit(unit: CompilationUnit) -> CompilationUnit:
    ensure_hierarchy(unit, FULL_ANCESTOR)
    if any(interval.self_duration is None for interval in unit.intervals):
        unit.diagnostics.extend(compute_self_durations(unit.intervals))
    return unit


def convert_single_trace(unit: CompilationUnit, name: str) -> Dict[str, Any]:
    """
    单文件模式：不加编译单元根帧，时间不做平移
    """
    _prepare_unit(unit)
    return build_profile_document([(interval, None) for interval in unit.intervals], name)


def merge_into_profile(units: List[CompilationUnit], name: str) -> Dict[str, Any]:
    """
    目录模式：合并多个编译单元到同一条时间线，每个样本以编译单元名称作为根帧
    """
    entries = []
    for unit in units:
        _prepare_unit(unit)
        entries.extend((interval, unit.name) for interval in unit.intervals)

    merge_units(units)
    logger.info(f"所有文件共 {len(entries)} 个 Source 标记")
    return build_profile_document(entries, name)
