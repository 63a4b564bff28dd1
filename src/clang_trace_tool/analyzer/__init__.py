"""
分析器模块
"""

from .main import (
    reconstruct_unit,
    process_trace_file,
    process_trace_files,
    PROFILE_MODE,
    DASHBOARD_MODE,
)
from .presenter import summarize_headers, write_summary, plot_top_headers

__all__ = [
    'reconstruct_unit',
    'process_trace_file',
    'process_trace_files',
    'PROFILE_MODE',
    'DASHBOARD_MODE',
    'summarize_headers',
    'write_summary',
    'plot_top_headers',
]
