"""
文件处理工具模块
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

TRACE_SUFFIX = '.json'
OBJECT_SUFFIX = '.o'


def find_matching_trace_files(root_dir: str) -> List[str]:
    """
    查找目录下所有带有同名 .o 文件的 .json trace 文件

    使用显式栈遍历目录树，不做递归调用；无法读取的目录直接跳过。
    每个目录内按名称排序，先收集当前目录的文件再进入子目录。

    Args:
        root_dir: 根目录

    Returns:
        List[str]: 匹配的 JSON 文件路径列表
    """
    results = []
    pending = [root_dir]

    while pending:
        current_dir = pending.pop()
        try:
            with os.scandir(current_dir) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            logger.debug(f"跳过无法读取的目录 {current_dir}: {e}")
            continue

        subdirs = []
        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                subdirs.append(entry.path)
            elif entry.is_file() and entry.name.endswith(TRACE_SUFFIX):
                stem = entry.name[:-len(TRACE_SUFFIX)]
                if os.path.exists(os.path.join(current_dir, stem + OBJECT_SUFFIX)):
                    results.append(entry.path)

        # 逆序入栈，保证按名称顺序出栈
        pending.extend(reversed(subdirs))

    return results


def write_json_document(document: Dict[str, Any], output_file: Optional[str] = None) -> Optional[Path]:
    """
    以紧凑格式写出 JSON 文档，output_file 为空时写到 stdout

    Returns:
        Optional[Path]: 写出的文件路径，写到 stdout 时为 None
    """
    text = json.dumps(document, ensure_ascii=False, separators=(',', ':'))
    if not output_file:
        sys.stdout.write(text)
        sys.stdout.write('\n')
        return None

    output_path = Path(output_file)
    if output_path.parent and not output_path.parent.exists():
        output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(text)
    return output_path
