"""Pipeline orchestration for balloon flight log analysis."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .builder import BuildResult, LogSource, build, load_log
from .domain import DEFAULT_FORMAT, AnalysisConfig, Extrema, FlightLog, FlightPhase, LogFormat, Metric, ParseIssue
from .export import NamedSeries, export_series
from .metrics import (
    extrema,
    field_metric,
    pressure_rate,
    smooth,
    temperature_rate,
    vertical_speed,
)
from .phases import segment_speed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisReport:
    config: AnalysisConfig
    log: FlightLog
    lines_read: int
    issues: tuple[ParseIssue, ...]
    metrics: dict[str, Metric] = field(default_factory=dict)
    series: dict[str, NamedSeries] = field(default_factory=dict)
    phases: tuple[FlightPhase, ...] = ()
    extrema: Extrema = Extrema()

    @property
    def accepted(self) -> int:
        return len(self.log)

    @property
    def is_empty(self) -> bool:
        return len(self.log) == 0


def compute_metrics(log: FlightLog, config: AnalysisConfig) -> dict[str, Metric]:
    """All derived metrics of a flight, keyed by name."""
    altitude = field_metric(log, "altitude")
    vs = vertical_speed(log)
    metrics = [
        altitude,
        smooth(altitude, config.smoothing_window),
        vs,
        smooth(vs, config.smoothing_window),
        field_metric(log, "temperature"),
        temperature_rate(log),
        field_metric(log, "pressure"),
        pressure_rate(log),
    ]
    return {m.name: m for m in metrics}


def analyze_result(built: BuildResult, config: AnalysisConfig) -> AnalysisReport:
    """Run the metric and phase stages over an already built log."""
    log = built.log
    if built.is_empty:
        logger.warning("No readings accepted out of %d lines; nothing to analyze.", built.lines_read)
    elif len(log) < 2:
        logger.warning("Only one reading accepted; rates and phases need at least two.")

    metrics = compute_metrics(log, config)
    phases = segment_speed(metrics["vertical_speed_smoothed"], log.timestamps, config)
    series = export_series(metrics.values(), config.resample_interval)

    return AnalysisReport(
        config=config,
        log=log,
        lines_read=built.lines_read,
        issues=built.issues,
        metrics=metrics,
        series=series,
        phases=tuple(phases),
        extrema=extrema(log),
    )


def analyze(
    lines: Iterable[str],
    config: Optional[AnalysisConfig] = None,
    fmt: LogFormat = DEFAULT_FORMAT,
) -> AnalysisReport:
    """
    Run the complete analysis over raw log lines.

    Orchestrates:
    1. Validate the configuration (InvalidConfig is raised before any parsing)
    2. Parse and order the lines into a FlightLog
    3. Derive metrics and segment flight phases
    4. Export plot-ready series

    Per-line problems never stop the run; they are listed in report.issues.
    An empty log gives an empty report, check report.is_empty.
    """
    config = (config or AnalysisConfig()).validate()
    return analyze_result(build(lines, fmt), config)


def analyze_file(
    source: LogSource,
    config: Optional[AnalysisConfig] = None,
    fmt: LogFormat = DEFAULT_FORMAT,
    max_bytes: Optional[int] = None,
) -> AnalysisReport:
    """Same as analyze, reading the log from a path or an open file."""
    config = (config or AnalysisConfig()).validate()
    return analyze_result(load_log(source, fmt, max_bytes=max_bytes), config)
