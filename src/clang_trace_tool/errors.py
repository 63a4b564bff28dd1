"""
异常类型定义
"""


class ClangTraceError(Exception):
    """clang_trace_tool 所有异常的基类"""


class TraceParseError(ClangTraceError):
    """trace 文件无法读取或格式不正确"""


class MalformedTraceError(ClangTraceError):
    """trace 数据违反区间嵌套约束 (严格模式下抛出)"""


class NoCompilationUnitsError(ClangTraceError):
    """整个运行中没有任何编译单元产生区间"""
