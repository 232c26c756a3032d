"""
Stratos - Stratosphere Balloon Log Analyzer

Turns the telemetry log of a stratosphere balloon flight into a validated
time series, derives vertical speed, smoothed altitude and temperature and
pressure rates, segments the flight into ascent, float and descent phases
and exports plot-ready series. Corrupt or out-of-order log lines are
reported, never fatal.
"""

from .domain import (
    AbsorbPolicy,
    AnalysisConfig,
    Extrema,
    FlightLog,
    FlightPhase,
    InvalidConfig,
    IssueReason,
    LogFormat,
    LogTooLarge,
    Metric,
    ParseIssue,
    PhaseLabel,
    PRESET_CONFIGS,
    Reading,
)
from .parser import parse_line
from .builder import BuildResult, build, load_log
from .metrics import (
    extrema,
    moving_average,
    pressure_rate,
    rate_of_change,
    smooth,
    smoothed_altitude,
    temperature_rate,
    vertical_speed,
)
from .phases import phase_spans, segment_phases
from .export import NamedSeries, export, export_series
from .analyze import AnalysisReport, analyze, analyze_file

__all__ = [
    # Domain models
    "AbsorbPolicy",
    "AnalysisConfig",
    "Extrema",
    "FlightLog",
    "FlightPhase",
    "InvalidConfig",
    "IssueReason",
    "LogFormat",
    "LogTooLarge",
    "Metric",
    "ParseIssue",
    "PhaseLabel",
    "PRESET_CONFIGS",
    "Reading",
    # Parsing
    "parse_line",
    "BuildResult",
    "build",
    "load_log",
    # Metrics
    "extrema",
    "moving_average",
    "pressure_rate",
    "rate_of_change",
    "smooth",
    "smoothed_altitude",
    "temperature_rate",
    "vertical_speed",
    # Phases
    "phase_spans",
    "segment_phases",
    # Export
    "NamedSeries",
    "export",
    "export_series",
    # Pipeline
    "AnalysisReport",
    "analyze",
    "analyze_file",
]

__version__ = "0.2.0"
