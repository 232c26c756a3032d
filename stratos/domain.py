from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Sequence

import numpy as np
import pandas as pd


# -----------------------------
# Errors
# -----------------------------
class InvalidConfig(ValueError):
    """Raised when an AnalysisConfig violates its invariants."""


class LogTooLarge(ValueError):
    """Raised when an input log exceeds the configured maximum size."""


# -----------------------------
# Configuration
# -----------------------------
class AbsorbPolicy(Enum):
    PRECEDING = "preceding"  # short phase joins the phase before it
    NEAREST = "nearest"      # short phase joins the longer of its neighbours


@dataclass(frozen=True)     # immutable: one config is shared read-only by every stage of a run
class AnalysisConfig:
    name: str = "Standard flight"
    ascent_threshold: float = 1.0    # m/s, smoothed vertical speed above this counts as climbing
    descent_threshold: float = -1.0  # m/s, below this the balloon is falling (burst / parachute)

    min_phase_duration: float = 60.0  # seconds; a phase shorter than this is noise near the float ceiling and gets absorbed
    smoothing_window: int = 5        # samples, odd so the moving average stays centred on each reading

    resample_interval: Optional[float] = None  # seconds between exported plot points, None keeps the logger's own grid
    absorb_policy: AbsorbPolicy = AbsorbPolicy.PRECEDING  # where short phases go (see phases.absorb_short_phases)

    def validate(self) -> "AnalysisConfig":
        """
        Check the config invariants and return self.

        Called before any log line is read, so a bad config stops the run
        instead of producing a half-finished analysis.

        Raises:
            InvalidConfig: on any violated invariant
        """
        if not (math.isfinite(self.ascent_threshold) and math.isfinite(self.descent_threshold)):
            raise InvalidConfig("Thresholds must be finite numbers.")
        if self.ascent_threshold <= self.descent_threshold:
            raise InvalidConfig(
                f"ascent_threshold ({self.ascent_threshold}) must be greater than "
                f"descent_threshold ({self.descent_threshold})."
            )
        if not isinstance(self.smoothing_window, (int, np.integer)) or isinstance(self.smoothing_window, bool):
            raise InvalidConfig(f"smoothing_window must be an integer, got {self.smoothing_window!r}.")
        if self.smoothing_window < 1 or self.smoothing_window % 2 == 0:
            raise InvalidConfig(f"smoothing_window must be a positive odd number, got {self.smoothing_window}.")
        if not self.min_phase_duration >= 0:
            raise InvalidConfig(f"min_phase_duration must be >= 0, got {self.min_phase_duration}.")
        if self.resample_interval is not None and not self.resample_interval > 0:
            raise InvalidConfig(f"resample_interval must be positive, got {self.resample_interval}.")
        if not isinstance(self.absorb_policy, AbsorbPolicy):
            raise InvalidConfig(f"Unknown absorb policy: {self.absorb_policy!r}")
        return self


@dataclass(frozen=True)
class LogFormat:
    """Layout of one log line, shared with the logger firmware."""
    delimiter: str = ","  # with any other delimiter, "12,5" is read as a decimal comma
    fields: tuple[str, ...] = ("timestamp", "latitude", "longitude", "altitude", "temperature", "pressure")
    missing_tokens: frozenset[str] = frozenset({"", "-", "NA", "N/A", "null"})  # a sensor that reported nothing
    comment_prefix: str = "#"  # whole-line comments only


DEFAULT_FORMAT = LogFormat()

REQUIRED_FIELDS = ("timestamp", "altitude")
OPTIONAL_FIELDS = ("latitude", "longitude", "temperature", "pressure")


# -----------------------------
# Parse diagnostics
# -----------------------------
class IssueReason(Enum):
    MALFORMED_FORMAT = "malformed format"                    # wrong field count or text where a number belongs
    NON_FINITE_PHYSICAL_VALUE = "non-finite physical value"  # timestamp/altitude missing, NaN or inf
    TIMESTAMP_NOT_INCREASING = "timestamp not increasing"    # earlier than the last accepted reading
    DUPLICATE_TIMESTAMP = "duplicate timestamp"              # same time as the last accepted reading


@dataclass(frozen=True)
class ParseIssue:
    """
    A log line that was read but not accepted.

    Issues are reported in file order and never stop the run; the line is
    simply left out of the FlightLog.
    """
    line_number: int  # 1-based, blank and comment lines included
    raw_text: str     # the line as read, without the trailing newline
    reason: IssueReason
    detail: str = ""  # e.g. the offending field name

    def __str__(self) -> str:
        msg = f"line {self.line_number}: {self.reason.value}"
        if self.detail:
            msg += f" ({self.detail})"
        return msg


# -----------------------------
# Telemetry
# -----------------------------
@dataclass(frozen=True)
class Reading:  # One sensor sample from the flight computer, exactly as logged (no smoothing).
    timestamp: float  # seconds; flight-relative or absolute epoch, whatever the logger writes
    altitude: float  # metres, always present and finite (lines without it never become a Reading)
    latitude: Optional[float] = None   # None while the GPS has no fix
    longitude: Optional[float] = None
    temperature: Optional[float] = None  # degC, None when the sensor reported nothing
    pressure: Optional[float] = None     # hPa
    raw_line_number: int = 0  # 1-based line in the source log, for diagnostics
    # Optional fields are either a finite float or None, never NaN. NaN only appears in
    # FlightLog.column(), which is for numpy work and never stored back on a Reading.

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class FlightLog:
    """
    Validated readings of one flight, strictly increasing in time.

    Built once per run by builder.build and only read afterwards, so the
    metric and phase stages can share it freely. Construction re-checks the
    ordering and raises ValueError if it does not hold.
    """
    readings: tuple[Reading, ...] = ()

    def __post_init__(self):
        readings = tuple(self.readings)
        for prev, cur in zip(readings, readings[1:]):
            if not cur.timestamp > prev.timestamp:
                raise ValueError(
                    f"Readings must be strictly increasing in time "
                    f"(line {cur.raw_line_number}: {cur.timestamp} after {prev.timestamp})."
                )
        object.__setattr__(self, "readings", readings)

    def __len__(self) -> int:
        return len(self.readings)

    def __iter__(self) -> Iterator[Reading]:
        return iter(self.readings)

    def __getitem__(self, i):
        return self.readings[i]

    @property
    def timestamps(self) -> np.ndarray:
        return np.array([r.timestamp for r in self.readings], dtype=float)

    @property
    def duration(self) -> float:
        if len(self.readings) < 2:
            return 0.0
        return self.readings[-1].timestamp - self.readings[0].timestamp

    def column(self, name: str) -> np.ndarray:
        """Numeric column for vectorised work; absent optional values become NaN."""
        if name not in REQUIRED_FIELDS + OPTIONAL_FIELDS:
            raise KeyError(f"Unknown reading field: {name}")
        values = [getattr(r, name) for r in self.readings]
        return np.array([np.nan if v is None else v for v in values], dtype=float)

    def to_frame(self) -> pd.DataFrame:
        cols = ["timestamp", "latitude", "longitude", "altitude", "temperature", "pressure"]
        df = pd.DataFrame({c: self.column(c) for c in cols})
        df["line"] = [r.raw_line_number for r in self.readings]
        return df


@dataclass(frozen=True)
class Metric:
    """
    A derived time series aligned to (a subset of) a FlightLog's timestamps.

    Rates need two neighbouring readings, so they have no point at the first
    reading and are one shorter than the log.
    """
    name: str  # e.g. "vertical_speed", "altitude_smoothed"
    points: tuple[tuple[float, float], ...] = ()  # (timestamp, value), increasing in time
    unit: str = ""  # "m/s", "degC", ...

    def __len__(self) -> int:
        return len(self.points)

    @property
    def timestamps(self) -> np.ndarray:
        return np.array([p[0] for p in self.points], dtype=float)

    @property
    def values(self) -> np.ndarray:
        return np.array([p[1] for p in self.points], dtype=float)

    @classmethod
    def from_arrays(cls, name: str, t: Sequence[float], v: Sequence[float], unit: str = "") -> "Metric":
        return cls(name=name, points=tuple((float(a), float(b)) for a, b in zip(t, v)), unit=unit)


class PhaseLabel(Enum):
    ASCENT = "Ascent"    # smoothed vertical speed above ascent_threshold
    FLOAT = "Float"      # between the two thresholds, inclusive
    DESCENT = "Descent"  # below descent_threshold
    UNKNOWN = "Unknown"  # no finite speed to classify (e.g. overflowing altitude values)


@dataclass(frozen=True)
class FlightPhase:  # one contiguous stretch of the flight with a single motion state
    label: PhaseLabel
    start: float  # seconds; equals the previous phase's end
    end: float    # seconds; the last phase ends at the final reading

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class Extrema:
    """Headline numbers of a flight. Fields stay None when the log lacks the data."""
    max_altitude: Optional[float] = None       # m, the burst altitude on a normal flight
    max_altitude_time: Optional[float] = None  # s, when max_altitude was logged
    min_temperature: Optional[float] = None    # degC, coldest reading (usually near the tropopause)
    min_pressure: Optional[float] = None       # hPa
    max_ascent_rate: Optional[float] = None    # m/s, fastest climb; None if the balloon never climbed
    max_descent_rate: Optional[float] = None   # m/s (negative), fastest fall; None if it never fell
    duration: float = 0.0                      # s, first to last accepted reading
    ground_distance_m: float = 0.0             # great-circle track length over readings with a GPS fix


# -----------------------------
# Preset configurations
# -----------------------------
PRESET_CONFIGS: dict[str, AnalysisConfig] = {
    "Standard flight": AnalysisConfig(),
    "Noisy altimeter": AnalysisConfig(
        name="Noisy altimeter",
        ascent_threshold=1.5,
        descent_threshold=-1.5,
        min_phase_duration=120.0,
        smoothing_window=9,
    ),
    "Slow float (zero-pressure balloon)": AnalysisConfig(
        name="Slow float (zero-pressure balloon)",
        ascent_threshold=0.5,
        descent_threshold=-0.5,
        min_phase_duration=300.0,
        smoothing_window=7,
    ),
}
