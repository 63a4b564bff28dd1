# -*- coding: utf-8 -*-
"""
CLI验证器模块
"""

import os
from typing import List, Optional

VALID_SUMMARY_FORMATS = ('csv', 'xlsx')


def validate_input_path(input_path: str, require_dir: bool = False) -> str:
    """
    验证输入路径是否存在

    Args:
        input_path: 输入文件或目录
        require_dir: 是否必须是目录

    Returns:
        str: 原样返回的输入路径

    Raises:
        ValueError: 路径不存在或类型不符
    """
    if not input_path or not input_path.strip():
        raise ValueError("输入路径不能为空")
    if not os.path.exists(input_path):
        raise ValueError(f"输入路径不存在: {input_path}")
    if require_dir and not os.path.isdir(input_path):
        raise ValueError(f"输入路径不是目录: {input_path}")
    return input_path


def parse_summary_formats(format_spec: str) -> List[str]:
    """
    解析汇总输出格式，逗号分隔

    Raises:
        ValueError: 包含不支持的格式
    """
    if not format_spec or not format_spec.strip():
        raise ValueError("汇总输出格式不能为空")

    formats = []
    for fmt in (item.strip() for item in format_spec.split(',')):
        if not fmt:
            continue
        if fmt not in VALID_SUMMARY_FORMATS:
            raise ValueError(f"不支持的汇总格式: {fmt}。支持的格式: {', '.join(VALID_SUMMARY_FORMATS)}")
        if fmt not in formats:
            formats.append(fmt)
    if not formats:
        raise ValueError("汇总输出格式不能为空")
    return formats


def validate_max_workers(max_workers: Optional[int]) -> Optional[int]:
    """验证并行进程数"""
    if max_workers is not None and max_workers < 1:
        raise ValueError(f"--max-workers 必须大于 0: {max_workers}")
    return max_workers
