"""
profile 命令模块 - 生成 Firefox Profiler 格式
"""

import os
import sys
import time
from urllib.parse import quote

from ..validators import validate_input_path, validate_max_workers
from ..file_utils import find_matching_trace_files, write_json_document
from ...analyzer import process_trace_file, process_trace_files, PROFILE_MODE
from ...serializers import convert_single_trace, merge_into_profile


def _log(message: str = ''):
    # stdout 可能用于输出 profile JSON，进度信息一律写 stderr
    print(message, file=sys.stderr)


class ProfileCommand:
    """profile 命令处理器"""

    def run(self, args) -> int:
        try:
            validate_input_path(args.input)
            max_workers = validate_max_workers(args.max_workers)
        except ValueError as e:
            _log(f"错误: {e}")
            return 1

        start_time = time.time()

        if os.path.isdir(args.input):
            _log(f"在 {args.input} 中查找带有同名 .o 文件的 .json 文件...")
            json_files = find_matching_trace_files(args.input)
            _log(f"找到 {len(json_files)} 个匹配的 JSON 文件")
            if not json_files:
                _log("错误: 没有找到匹配的 .json/.o 文件对")
                return 1

            units = process_trace_files(json_files, mode=PROFILE_MODE,
                                        max_workers=max_workers, strict=args.strict)
            _log(f"成功处理 {len(units)} 个文件")
            _log("合并为单个 profile...")
            profile = merge_into_profile(units, args.name)
        else:
            _log(f"读取 {args.input}...")
            _, unit = process_trace_file(args.input, mode=PROFILE_MODE, strict=args.strict)
            if unit is None:
                _log(f"错误: 无法处理文件 {args.input}")
                return 1
            _log(f"找到 {unit.include_count} 个 Source 标记")
            profile = convert_single_trace(unit, args.input)

        thread = profile['threads'][0]
        _log("Profile 包含:")
        _log(f"  - {thread['samples']['length']} 个样本")
        _log(f"  - {thread['funcTable']['length']} 个不同文件")
        _log(f"  - {thread['stackTable']['length']} 个不同栈")

        output_path = write_json_document(profile, args.output)
        if output_path is not None:
            _log(f"已写入 {output_path}，耗时 {time.time() - start_time:.2f} 秒")
            url = quote('file://' + str(output_path.resolve()), safe='')
            _log(f"在 Firefox Profiler 中打开: https://profiler.firefox.com/from-url/{url}")
        return 0
