"""
时间单位换算工具
"""

import math

MICROSECONDS_PER_MILLISECOND = 1000


def us_to_ms(microseconds: float) -> float:
    """
    将 trace 时钟 (微秒) 转换为毫秒，保留小数
    """
    return microseconds / MICROSECONDS_PER_MILLISECOND


def round_half_up(value: float) -> int:
    """
    四舍五入到整数，.5 总是向正无穷方向进位

    内置 round() 使用银行家舍入 (round(2.5) == 2)，这里需要 2.5 -> 3。
    """
    return int(math.floor(value + 0.5))


def us_to_rounded_ms(microseconds: float) -> int:
    """
    将微秒转换为整数毫秒 (四舍五入，不是截断)
    """
    return round_half_up(us_to_ms(microseconds))
