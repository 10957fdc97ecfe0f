# -*- coding: utf-8 -*-
"""
命令行接口
"""

import argparse
import logging
from pathlib import Path
import sys
from typing import List, Optional

from psd_analysis.core.config import read_run_list
from psd_analysis.core.data import BatchProcessor, summary_frame
from psd_analysis.core.exceptions import PSDError
from psd_analysis.core.foundation.constants import FeatureDefaults
from psd_analysis.core.pipeline import RunPipeline
from psd_analysis.core.processing import count_frames
from psd_analysis.core.statistics import figure_of_merit

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="psd-analysis",
        description="PSD Analysis - 闪烁体波形的脉冲形状甄别工具",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  # 按运行表分析全部运行
  psd-analysis run "File Details.txt" --workers 4

  # 计算品质因数
  psd-analysis fom 75 2 5 2 50 2

  # 统计文件中的完整帧数
  psd-analysis count LUNA/dump_001_wf_0.dat --w-size 4000
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="显示详细信息（DEBUG 日志）")
    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="分析运行表中的全部运行")
    run.add_argument("details", type=str, help="运行表路径（每行: filename runTime site destination distance orientation）")
    run.add_argument("--workers", type=_positive_int, default=1, help="并行线程数（默认: 1）")
    run.add_argument(
        "--first-ten", type=_non_negative_int, default=FeatureDefaults.FIRST_FRAMES, help="预览输出的波形数（默认: 10）"
    )
    run.add_argument("--columns", type=int, choices=[1, 2], default=None, help="覆盖输入列数（1 或 2）")
    run.add_argument("--output", type=str, help="将运行汇总表保存为 CSV（可选）")
    run.add_argument("--no-progress", action="store_true", help="不显示进度条")
    run.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="显示详细信息")

    fom = sub.add_parser("fom", help="计算品质因数 FoM = X / (Wa + Wb)")
    for name in ("X", "dX", "Wa", "dWa", "Wb", "dWb"):
        fom.add_argument(name, type=float)

    count = sub.add_parser("count", help="统计文件中的完整帧数")
    count.add_argument("file", type=str, help="采样文件路径")
    count.add_argument("--w-size", type=_positive_int, required=True, help="每帧采样点数")
    count.add_argument("--columns", type=int, choices=[1, 2], default=2, help="输入列数（默认: 2）")
    count.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="显示详细信息")

    return parser


def _cmd_run(args: argparse.Namespace) -> int:
    overrides = {} if args.columns is None else {"n_columns": args.columns}
    configs, config_errors = read_run_list(args.details, **overrides)

    processor = BatchProcessor(
        max_workers=args.workers,
        pipeline_factory=lambda cfg: RunPipeline(cfg, first_frames=args.first_ten),
        show_progress=not args.no_progress,
    )
    batch = processor.process_runs(configs)

    summaries = [batch.results[run_id].summary for run_id in batch.ordered_run_ids if run_id in batch.results]
    table = summary_frame(summaries)
    if not table.empty:
        columns = ["run_time", "neutron_count", "non_neutron_count", "neutron_rate", "flux", "flux_error"]
        print(table[columns].to_string())

    if args.output and not table.empty:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        table.to_csv(output_path)
        logger.info("Run summaries saved to %s", output_path)

    for run_id in batch.skipped + batch.failed:
        print(f"{run_id}: {batch.meta[run_id]['status']} - {batch.errors[run_id]['message']}", file=sys.stderr)
    return 0 if batch.ok and not config_errors else 1


def _cmd_fom(args: argparse.Namespace) -> int:
    result = figure_of_merit(args.X, args.dX, args.Wa, args.dWa, args.Wb, args.dWb)
    print(f"FoM = {result.value:.6g} +/- {result.error:.6g}")
    return 0


def _cmd_count(args: argparse.Namespace) -> int:
    n_frames = count_frames(args.file, args.w_size, args.columns)
    print(f"The number of frames in {args.file} is {n_frames}")
    return 0


_COMMANDS = {"run": _cmd_run, "fom": _cmd_fom, "count": _cmd_count}


def main(argv: Optional[List[str]] = None) -> int:
    """主命令行入口"""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return int(e.code or 0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return _COMMANDS[args.command](args)
    except PSDError as e:
        print(f"错误: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
