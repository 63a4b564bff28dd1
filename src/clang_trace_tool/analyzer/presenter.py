"""
头文件耗时汇总展示 (CSV / Excel / 柱状图)
"""

import logging
from pathlib import Path
from typing import List, Sequence

import pandas as pd

from ..models import CompilationUnit
from ..utils.time import us_to_ms

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = [
    'file', 'include_count', 'unit_count', 'rebuild_impact',
    'total_duration_ms', 'total_self_time_ms', 'mean_duration_ms',
]


def summarize_headers(units: List[CompilationUnit]) -> pd.DataFrame:
    """
    按头文件汇总所有编译单元的 include 信息

    Args:
        units: 已完成重建的编译单元

    Returns:
        pd.DataFrame: 每个头文件一行，按总自身耗时降序排列。
            rebuild_impact 为包含该头文件的编译单元占全部编译单元的比例
    """
    records = []
    for unit in units:
        for interval in unit.intervals:
            records.append({
                'unit': unit.name,
                'file': interval.file,
                'duration_ms': us_to_ms(interval.duration),
                'self_time_ms': us_to_ms(interval.self_duration or 0),
            })

    if not records:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    df = pd.DataFrame(records)
    total_units = len(units)

    summary = df.groupby('file', sort=False).agg(
        include_count=('unit', 'size'),
        unit_count=('unit', 'nunique'),
        total_duration_ms=('duration_ms', 'sum'),
        total_self_time_ms=('self_time_ms', 'sum'),
        mean_duration_ms=('duration_ms', 'mean'),
    ).reset_index()
    summary['rebuild_impact'] = summary['unit_count'] / total_units

    summary = summary.sort_values('total_self_time_ms', ascending=False, kind='mergesort')
    return summary[SUMMARY_COLUMNS].reset_index(drop=True)


def write_summary(summary: pd.DataFrame, output_dir: str, base_name: str,
                  formats: Sequence[str] = ('csv', 'xlsx')) -> List[Path]:
    """
    生成汇总输出文件

    Args:
        summary: summarize_headers 的结果
        output_dir: 输出目录
        base_name: 基础文件名
        formats: 'csv' / 'xlsx' 的组合

    Returns:
        List[Path]: 生成的文件路径列表
    """
    if summary.empty:
        logger.warning("没有数据可供展示")
        return []

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    files = []
    if 'csv' in formats:
        csv_file = output_path / f"{base_name}.csv"
        summary.to_csv(csv_file, index=False)
        logger.info(f"生成 CSV 文件: {csv_file}")
        files.append(csv_file)

    if 'xlsx' in formats:
        excel_file = output_path / f"{base_name}.xlsx"
        with pd.ExcelWriter(excel_file, engine='openpyxl') as writer:
            summary.to_excel(writer, sheet_name='头文件汇总', index=False)
        logger.info(f"生成 Excel 文件: {excel_file}")
        files.append(excel_file)

    return files


def plot_top_headers(summary: pd.DataFrame, output_dir: str, base_name: str, top_n: int = 20) -> Path:
    """
    绘制自身耗时最高的 top_n 个头文件的水平柱状图

    Returns:
        Path: 生成的 PNG 文件路径
    """
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    chart_file = output_path / f"{base_name}_top{top_n}.png"

    top = summary.head(top_n).iloc[::-1]
    labels = [Path(file).name for file in top['file']]

    fig, ax = plt.subplots(figsize=(10, max(3, 0.35 * len(top) + 1)))
    ax.barh(labels, top['total_self_time_ms'], color='steelblue')
    ax.set_xlabel('Total self time (ms)')
    ax.set_title(f'Top {len(top)} headers by self time')
    fig.tight_layout()
    fig.savefig(chart_file, dpi=150)
    plt.close(fig)

    logger.info(f"生成柱状图: {chart_file}")
    return chart_file
