"""
Clang -ftime-trace JSON 解析器
"""

import json
import gzip
import math
from pathlib import Path
from typing import Dict, List, Any, Optional, Union
import logging

from .models import TraceEvent
from .errors import TraceParseError

logger = logging.getLogger(__name__)

BUILD_MARKER_NAME = 'ExecuteCompiler'


def _coerce_number(value: Any) -> Optional[float]:
    """把 ts/dur 字段转换为有限数值，数字字符串会被解析，其它情况返回 None"""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _key_part(value: Any) -> Any:
    """pid/tid/id 需要作为字典键，不可哈希的值转换为 JSON 文本"""
    if value is None or isinstance(value, (str, int, float)):
        return value
    return json.dumps(value, sort_keys=True)


def _parse_event(event_data: Dict[str, Any]) -> Optional[TraceEvent]:
    """
    解析单个事件

    Args:
        event_data: 事件数据字典

    Returns:
        TraceEvent: 解析后的事件对象，如果不是字典或 ts 不是数值返回 None
    """
    if not isinstance(event_data, dict):
        logger.debug(f"跳过非字典事件: {event_data!r}")
        return None

    ts = _coerce_number(event_data.get('ts', 0))
    if ts is None:
        logger.debug(f"跳过 ts 无效的事件: {event_data!r}")
        return None

    args = event_data.get('args') or {}
    if not isinstance(args, dict):
        args = {}

    name = event_data.get('name', '')
    cat = event_data.get('cat', '')
    ph = event_data.get('ph', '')

    return TraceEvent(
        name=name if isinstance(name, str) else '',
        cat=cat if isinstance(cat, str) else '',
        ph=ph if isinstance(ph, str) else '',
        ts=ts,
        pid=_key_part(event_data.get('pid', 0)),
        tid=_key_part(event_data.get('tid', 0)),
        id=_key_part(event_data.get('id')),
        dur=_coerce_number(event_data.get('dur')),
        args=args,
    )


def load_trace_file(file_path: Union[str, Path]) -> Dict[str, Any]:
    """
    读取 trace JSON 文件 (支持 .gz)

    Args:
        file_path: JSON 文件路径

    Returns:
        Dict[str, Any]: 解码后的 trace 文档

    Raises:
        TraceParseError: 文件无法读取、不是合法 JSON 或缺少 traceEvents 列表
    """
    file_path = Path(file_path)
    open_func = gzip.open if file_path.suffix == '.gz' else open
    try:
        with open_func(file_path, 'rt', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, ValueError) as e:
        raise TraceParseError(f"无法解析 trace 文件 {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise TraceParseError(f"trace 文件顶层不是对象: {file_path}")

    events = data.get('traceEvents', [])
    if not isinstance(events, list):
        raise TraceParseError(f"traceEvents 不是列表: {file_path}")

    return data


def parse_trace_events(data: Dict[str, Any]) -> List[TraceEvent]:
    """
    将 trace 文档中的原始事件转换为 TraceEvent 列表，保持原始顺序
    """
    events = []
    for raw_event in data.get('traceEvents') or []:
        event = _parse_event(raw_event)
        if event is not None:
            events.append(event)
    return events


def extract_build_time(events: List[TraceEvent]) -> float:
    """
    从 ExecuteCompiler 标记中提取编译单元总耗时

    优先使用第一对 B/E 事件，其次使用 X (complete) 事件的 dur。

    Returns:
        float: 耗时 (trace 时钟单位，微秒)，找不到时返回 0
    """
    begin = next((e for e in events if e.name == BUILD_MARKER_NAME and e.ph == 'B'), None)
    end = next((e for e in events if e.name == BUILD_MARKER_NAME and e.ph == 'E'), None)
    if begin is not None and end is not None:
        return end.ts - begin.ts

    complete = next((e for e in events if e.name == BUILD_MARKER_NAME and e.ph == 'X'), None)
    if complete is not None and complete.dur:
        return complete.dur

    return 0
