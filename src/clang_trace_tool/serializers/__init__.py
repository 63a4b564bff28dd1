"""
输出格式序列化模块
"""

from .profile_table import ProfileTables, build_profile_document, convert_single_trace, merge_into_profile
from .dashboard import build_dashboard_document, build_file_dictionary

__all__ = [
    'ProfileTables',
    'build_profile_document',
    'convert_single_trace',
    'merge_into_profile',
    'build_dashboard_document',
    'build_file_dictionary',
]
