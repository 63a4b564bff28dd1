"""
CLI主模块
"""

import argparse
import logging
import sys

from .commands import ProfileCommand, DashboardCommand
from ..serializers.dashboard import DEFAULT_DESCRIPTION


def parse_arguments(argv=None):
    """解析命令行参数"""
    parser = argparse.ArgumentParser(
        description="Clang Trace Tool - 分析 clang -ftime-trace 生成的 JSON 文件",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例用法:
  # 单个 trace 转换为 Firefox Profiler 格式，输出到 stdout
  clang-trace-tool profile foo.json

  # 单个 trace 转换并写入文件
  clang-trace-tool profile foo.json foo.profile.json

  # 递归查找目录下所有带同名 .o 的 .json，合并为一个 profile
  clang-trace-tool profile obj-dir/ build.profile.json --max-workers 8

  # 生成紧凑 dashboard 数据
  clang-trace-tool dashboard obj-dir/ dashboard.json

  # 同时生成头文件汇总表格 (CSV + Excel) 和柱状图
  clang-trace-tool dashboard obj-dir/ dashboard.json --summary-dir report --summary-format csv,xlsx --chart
        """
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='输出调试日志')

    subparsers = parser.add_subparsers(dest='command', help='可用命令')

    # profile 命令
    profile_parser = subparsers.add_parser('profile', help='转换为 Firefox Profiler 格式')
    profile_parser.add_argument('input', help='trace JSON 文件，或包含 .json/.o 文件对的目录')
    profile_parser.add_argument('output', nargs='?', default=None, help='输出文件 (默认: 写到 stdout)')
    profile_parser.add_argument('--name', default='Clang Build',
                                help='目录模式下合并 profile 的名称 (默认: Clang Build)')
    profile_parser.add_argument('--max-workers', type=int, default=None,
                                help='并行处理的最大工作进程数，默认为CPU核心数')
    profile_parser.add_argument('--strict', action='store_true',
                                help='trace 区间不满足嵌套约束时视为错误并跳过该文件 (默认: 仅警告)')

    # dashboard 命令
    dashboard_parser = subparsers.add_parser('dashboard', help='生成紧凑 dashboard 格式')
    dashboard_parser.add_argument('input_dir', help='包含 .json/.o 文件对的目录')
    dashboard_parser.add_argument('output', help='输出 JSON 文件')
    dashboard_parser.add_argument('--description', default=DEFAULT_DESCRIPTION,
                                  help='写入 metadata.description 的描述')
    dashboard_parser.add_argument('--summary-dir', default=None,
                                  help='头文件汇总表格的输出目录 (默认: 不生成)')
    dashboard_parser.add_argument('--summary-format', default='csv,xlsx',
                                  help='汇总表格格式，逗号分隔: csv, xlsx (默认: csv,xlsx)')
    dashboard_parser.add_argument('--chart', action='store_true',
                                  help='在汇总目录中生成自身耗时最高的头文件柱状图')
    dashboard_parser.add_argument('--top-n', type=int, default=20, help='柱状图中的头文件数量 (默认: 20)')
    dashboard_parser.add_argument('--max-workers', type=int, default=None,
                                  help='并行处理的最大工作进程数，默认为CPU核心数')
    dashboard_parser.add_argument('--strict', action='store_true',
                                  help='trace 区间不满足嵌套约束时视为错误并跳过该文件 (默认: 仅警告)')

    return parser.parse_args(argv)


def main(argv=None):
    """主函数"""
    args = parse_arguments(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    if not args.command:
        print("错误: 请指定命令 (profile, dashboard)", file=sys.stderr)
        print("使用 --help 查看帮助信息", file=sys.stderr)
        return 1

    if args.command == 'profile':
        command = ProfileCommand()
        return command.run(args)
    elif args.command == 'dashboard':
        command = DashboardCommand()
        return command.run(args)
    else:
        print(f"错误: 未知命令: {args.command}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
