"""Plot-ready point sequences from metrics."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

import numpy as np

from .domain import Metric

Point = tuple[float, float]


def resample_grid(t0: float, t_end: float, interval: float) -> np.ndarray:
    """Uniform grid t0, t0+interval, ... that never passes t_end."""
    if not (interval > 0 and math.isfinite(interval)):
        raise ValueError(f"Resample interval must be a positive number, got {interval}.")
    steps = int(math.floor((t_end - t0) / interval + 1e-9))
    grid = t0 + interval * np.arange(steps + 1, dtype=float)
    return np.minimum(grid, t_end)


def export(metric: Metric, resample: Optional[float] = None) -> Iterator[Point]:
    """
    Points of a metric for plotting.

    Without resample the metric's own (timestamp, value) pairs come out
    unchanged. With a resample interval the metric is linearly interpolated
    onto a uniform grid starting at its first timestamp; the grid stops at
    the last timestamp, nothing is extrapolated.

    Each call returns a fresh iterator, so the same metric can be exported
    any number of times.
    """
    if resample is None:
        return iter(metric.points)

    if len(metric) == 0:
        resample_grid(0.0, 0.0, resample)  # still reject a bad interval
        return iter(())

    t = metric.timestamps
    v = metric.values
    grid = resample_grid(float(t[0]), float(t[-1]), resample)
    values = np.interp(grid, t, v)
    return iter([(float(a), float(b)) for a, b in zip(grid, values)])


@dataclass(frozen=True)
class NamedSeries:
    name: str
    points: tuple[Point, ...]
    unit: str = ""

    @property
    def x(self) -> np.ndarray:
        return np.array([p[0] for p in self.points], dtype=float)

    @property
    def y(self) -> np.ndarray:
        return np.array([p[1] for p in self.points], dtype=float)


def export_series(metrics: Iterable[Metric], resample: Optional[float] = None) -> dict[str, NamedSeries]:
    return {
        m.name: NamedSeries(name=m.name, points=tuple(export(m, resample)), unit=m.unit)
        for m in metrics
    }
