"""Command line entry point: analyze a balloon log and print a debrief."""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import Optional, Sequence

from .analyze import analyze_file
from .domain import DEFAULT_FORMAT, PRESET_CONFIGS, AbsorbPolicy, AnalysisConfig
from .logging_config import setup_logging
from .report import format_report, series_frame

EXIT_OK = 0
EXIT_EMPTY_LOG = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stratos",
        description="Analyze the log file of a stratosphere balloon flight.",
    )
    parser.add_argument("log", type=Path, help="Path to the flight log")
    parser.add_argument("--preset", choices=list(PRESET_CONFIGS), default="Standard flight",
                        help="Start from a named analysis preset")
    parser.add_argument("--ascent-threshold", type=float, help="Vertical speed (m/s) above which the balloon ascends")
    parser.add_argument("--descent-threshold", type=float, help="Vertical speed (m/s) below which it descends")
    parser.add_argument("--min-phase-duration", type=float, help="Shortest phase (s) kept on its own")
    parser.add_argument("--smoothing-window", type=int, help="Moving average window (odd number of samples)")
    parser.add_argument("--resample", type=float, help="Resample exported series every N seconds")
    parser.add_argument("--absorb", choices=[p.value for p in AbsorbPolicy],
                        help="Where short phases are absorbed")
    parser.add_argument("--delimiter", default=DEFAULT_FORMAT.delimiter, help="Field delimiter of the log")
    parser.add_argument("--max-bytes", type=int, help="Reject logs larger than this")
    parser.add_argument("--plot", type=Path, help="Save a PNG plot here")
    parser.add_argument("--csv", type=Path, help="Save the exported series as CSV here")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    return parser


def config_from_args(args: argparse.Namespace) -> AnalysisConfig:
    overrides = {
        "ascent_threshold": args.ascent_threshold,
        "descent_threshold": args.descent_threshold,
        "min_phase_duration": args.min_phase_duration,
        "smoothing_window": args.smoothing_window,
        "resample_interval": args.resample,
        "absorb_policy": AbsorbPolicy(args.absorb) if args.absorb else None,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    return dataclasses.replace(PRESET_CONFIGS[args.preset], **overrides)


def save_plot(path: Path, report) -> Path:
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    from .render import make_plot_figure

    fig = make_plot_figure(report.series, report.phases, report.config, title=f"Balloon flight - {path.stem}")
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=150)
    plt.close(fig)
    return path


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    fmt = dataclasses.replace(DEFAULT_FORMAT, delimiter=args.delimiter)
    try:
        config = config_from_args(args)
        report = analyze_file(args.log, config, fmt=fmt, max_bytes=args.max_bytes)
    except (ValueError, OSError) as e:
        print(f"stratos: {e}", file=sys.stderr)
        return EXIT_USAGE

    print(format_report(report))

    if report.is_empty:
        return EXIT_EMPTY_LOG

    if args.csv:
        args.csv.parent.mkdir(parents=True, exist_ok=True)
        series_frame(report).to_csv(args.csv, index=False)
        print(f"Series: {args.csv}")
    if args.plot:
        print(f"Plot:   {save_plot(args.plot, report)}")

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
