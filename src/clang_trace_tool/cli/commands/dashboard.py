"""
dashboard 命令模块 - 生成紧凑 dashboard 格式
"""

import os
import sys
import time

from ..validators import validate_input_path, validate_max_workers, parse_summary_formats
from ..file_utils import find_matching_trace_files, write_json_document
from ...analyzer import process_trace_files, summarize_headers, write_summary, plot_top_headers, DASHBOARD_MODE
from ...serializers import build_dashboard_document
from ...errors import NoCompilationUnitsError


def _log(message: str = ''):
    print(message, file=sys.stderr)


class DashboardCommand:
    """dashboard 命令处理器"""

    def run(self, args) -> int:
        try:
            validate_input_path(args.input_dir, require_dir=True)
            max_workers = validate_max_workers(args.max_workers)
            summary_formats = parse_summary_formats(args.summary_format) if args.summary_dir else []
        except ValueError as e:
            _log(f"错误: {e}")
            return 1

        start_time = time.time()

        _log(f"在 {args.input_dir} 中查找带有同名 .o 文件的 .json 文件...")
        json_files = find_matching_trace_files(args.input_dir)
        _log(f"找到 {len(json_files)} 个匹配的 JSON 文件")
        if not json_files:
            _log("错误: 没有找到匹配的 .json/.o 文件对")
            return 1

        units = process_trace_files(json_files, mode=DASHBOARD_MODE,
                                    max_workers=max_workers, strict=args.strict)
        _log(f"成功处理 {len(units)} 个文件")

        try:
            document = build_dashboard_document(units, description=args.description)
        except NoCompilationUnitsError as e:
            _log(f"错误: {e}")
            return 1

        metadata = document['metadata']
        _log("写出结果:")
        _log(f"  编译单元总数: {metadata['totalCompilationUnits']}")
        _log(f"  include 总数: {metadata['totalIncludes']}")
        _log(f"  不同头文件数: {metadata['totalUniqueHeaders']}")

        output_path = write_json_document(document, args.output)
        size_mb = os.path.getsize(output_path) / (1024 * 1024)
        _log(f"完成! 输出文件: {output_path} ({size_mb:.2f} MB)")

        if args.summary_dir:
            summary = summarize_headers(units)
            generated = write_summary(summary, args.summary_dir, 'header_summary', summary_formats)
            if args.chart and not summary.empty:
                generated.append(plot_top_headers(summary, args.summary_dir, 'header_summary', args.top_n))
            _log("\n生成的汇总文件:")
            for file_path in generated:
                _log(f"  {file_path}")

        _log(f"总耗时: {time.time() - start_time:.2f} 秒")
        return 0
