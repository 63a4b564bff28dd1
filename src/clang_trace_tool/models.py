# -*- coding: utf-8 -*-
"""
Clang time-trace 数据模型定义
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Tuple


@dataclass(frozen=True)
class TraceEvent:
    """原始 trace 事件"""
    name: str
    cat: str
    ph: str
    ts: float
    pid: Any = 0
    tid: Any = 0
    id: Any = None
    dur: Optional[float] = None
    args: Dict[str, Any] = field(default_factory=dict)

    @property
    def detail(self) -> Optional[str]:
        """获取 args.detail (头文件路径)，不是字符串时视为缺失"""
        detail = self.args.get('detail') if self.args else None
        return detail if isinstance(detail, str) else None

    @property
    def is_begin(self) -> bool:
        return self.ph == 'b'

    @property
    def is_end(self) -> bool:
        return self.ph == 'e'

    @property
    def match_key(self) -> Tuple[Any, Any, Any]:
        """begin/end 配对使用的复合键 (pid, tid, id)"""
        return (self.pid, self.tid, self.id)


@dataclass(eq=False)
class SourceInterval:
    """
    头文件处理区间

    由一对 Source begin/end 事件还原得到。eq=False 使区间按对象身份比较，
    两个时间完全相同的区间仍然是不同的区间。
    """
    file: str
    start: float
    end: float
    index: int  # 对应 begin 事件的顺序，用于稳定的 tie-break
    self_duration: Optional[float] = None
    ancestors: Optional[List['SourceInterval']] = None
    parent: Optional['SourceInterval'] = None

    @property
    def duration(self) -> float:
        return self.end - self.start

    def shift(self, offset: float):
        """将区间整体平移 offset"""
        self.start += offset
        self.end += offset

    def get_include_stack(self) -> List[str]:
        """获取从最外层到当前区间的文件路径链"""
        if self.ancestors is None:
            return [self.file]
        return [interval.file for interval in self.ancestors]

    def __repr__(self):
        return f"SourceInterval({self.file!r}, {self.start}, {self.end})"


@dataclass
class TraceDiagnostic:
    """trace 数据质量诊断信息"""
    kind: str  # negative_self_time | partial_overlap
    message: str
    file: Optional[str] = None


@dataclass
class CompilationUnit:
    """编译单元：一个源文件的全部头文件区间以及总编译耗时"""
    name: str
    intervals: List[SourceInterval] = field(default_factory=list)
    build_time: float = 0
    source_path: Optional[str] = None
    diagnostics: List[TraceDiagnostic] = field(default_factory=list)
    hierarchy: Optional[str] = None  # full_ancestor | nearest_parent，尚未计算时为 None

    @property
    def include_count(self) -> int:
        return len(self.intervals)

    @property
    def max_end(self) -> float:
        """所有区间的最大结束时间，没有区间时为 0"""
        return max((interval.end for interval in self.intervals), default=0)

    def __str__(self):
        return f"CompilationUnit({self.name}, includes={self.include_count}, build_time={self.build_time})"
