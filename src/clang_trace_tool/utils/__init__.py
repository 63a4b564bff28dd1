"""
工具模块
"""

from .time import us_to_ms, us_to_rounded_ms, round_half_up

__all__ = ['us_to_ms', 'us_to_rounded_ms', 'round_half_up']
