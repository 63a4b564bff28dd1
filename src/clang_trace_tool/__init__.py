"""
Clang Trace Tool Package
"""

from .models import TraceEvent, SourceInterval, CompilationUnit, TraceDiagnostic
from .parser import load_trace_file, parse_trace_events, extract_build_time
from .event_matcher import match_source_intervals
from .hierarchy_builder import build_ancestor_chains, assign_nearest_parents, find_partial_overlaps
from .self_time import compute_self_durations
from .merger import merge_units

__all__ = [
    'TraceEvent',
    'SourceInterval',
    'CompilationUnit',
    'TraceDiagnostic',
    'load_trace_file',
    'parse_trace_events',
    'extract_build_time',
    'match_source_intervals',
    'build_ancestor_chains',
    'assign_nearest_parents',
    'find_partial_overlaps',
    'compute_self_durations',
    'merge_units',
]
