"""Derived flight metrics: rates of change, smoothing and extrema."""

from __future__ import annotations

import numpy as np

from .domain import Extrema, FlightLog, Metric

EARTH_R_M = 6371000.0

UNITS = {
    "altitude": "m",
    "temperature": "degC",
    "pressure": "hPa",
    "latitude": "deg",
    "longitude": "deg",
}

DEFAULT_SMOOTHING_WINDOW = 5


def moving_average(x: np.ndarray, win: int) -> np.ndarray:
    """
    Centred simple moving average, same length as x.

    Near the edges the window shrinks to the largest symmetric one that fits,
    so no padded or invented samples enter the average. The first and last
    points are therefore returned unchanged.
    """
    x = np.asarray(x, dtype=float)
    n = len(x)
    if win <= 1 or n == 0:
        return x.copy()

    half = win // 2
    idx = np.arange(n)
    reach = np.minimum(half, np.minimum(idx, n - 1 - idx))  # per-point half width

    csum = np.concatenate(([0.0], np.cumsum(x)))
    lo = idx - reach
    hi = idx + reach + 1
    return (csum[hi] - csum[lo]) / (hi - lo)


def field_metric(log: FlightLog, field: str) -> Metric:
    """A raw reading field as a metric; readings without the value are left out."""
    if len(log) < 2:
        return Metric(name=field, unit=UNITS.get(field, ""))
    t = log.timestamps
    v = log.column(field)
    keep = np.isfinite(v)
    return Metric.from_arrays(field, t[keep], v[keep], unit=UNITS.get(field, ""))


def rate_of_change(log: FlightLog, field: str, name: str | None = None) -> Metric:
    """
    First difference of a field over time, one point per adjacent pair of readings.

    The value at reading i is (v[i] - v[i-1]) / (t[i] - t[i-1]), so the first
    reading never gets a point. Pairs with a missing value or a non-positive
    time step are skipped, as are pairs whose rate
    overflows to inf.
    """
    unit = f"{UNITS.get(field, '')}/s"
    name = name or f"{field}_rate"
    if len(log) < 2:
        return Metric(name=name, unit=unit)

    t = log.timestamps
    v = log.column(field)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        dt = np.diff(t)
        dv = np.diff(v)
        rate = dv / dt
    keep = (dt > 0) & np.isfinite(rate)
    return Metric.from_arrays(name, t[1:][keep], rate[keep], unit=unit)


def vertical_speed(log: FlightLog) -> Metric:
    return rate_of_change(log, "altitude", name="vertical_speed")


def temperature_rate(log: FlightLog) -> Metric:
    return rate_of_change(log, "temperature")


def pressure_rate(log: FlightLog) -> Metric:
    return rate_of_change(log, "pressure")


def smooth(metric: Metric, window: int = DEFAULT_SMOOTHING_WINDOW, name: str | None = None) -> Metric:
    if window < 1 or window % 2 == 0:
        raise ValueError(f"Smoothing window must be a positive odd number, got {window}.")
    values = moving_average(metric.values, window)
    return Metric.from_arrays(name or f"{metric.name}_smoothed", metric.timestamps, values, unit=metric.unit)


def smoothed_altitude(log: FlightLog, window: int = DEFAULT_SMOOTHING_WINDOW) -> Metric:
    return smooth(field_metric(log, "altitude"), window)


def smoothed_vertical_speed(log: FlightLog, window: int = DEFAULT_SMOOTHING_WINDOW) -> Metric:
    return smooth(vertical_speed(log), window)


def ground_track_distance(log: FlightLog) -> float:
    """Great-circle length (m) of the track through readings that have a GPS fix."""
    lat = log.column("latitude")
    lon = log.column("longitude")
    fix = np.isfinite(lat) & np.isfinite(lon)
    if np.count_nonzero(fix) < 2:
        return 0.0

    lat = np.deg2rad(lat[fix])
    lon = np.deg2rad(lon[fix])
    dlat = np.diff(lat)
    dlon = np.diff(lon)

    # haversine
    a = np.sin(dlat / 2) ** 2 + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(dlon / 2) ** 2
    c = 2 * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))
    return float(np.sum(EARTH_R_M * c))


def _nanmin(x: np.ndarray):
    x = x[np.isfinite(x)]
    return float(np.min(x)) if len(x) else None


def extrema(log: FlightLog) -> Extrema:
    """
    Burst altitude, coldest and lowest-pressure readings, peak rates.

    A flight that never climbs has no max_ascent_rate (None rather than a
    negative number); likewise for max_descent_rate.
    """
    if len(log) == 0:
        return Extrema()

    alt = log.column("altitude")
    i_max = int(np.argmax(alt))
    vs = vertical_speed(log).values

    return Extrema(
        max_altitude=float(alt[i_max]),
        max_altitude_time=float(log[i_max].timestamp),
        min_temperature=_nanmin(log.column("temperature")),
        min_pressure=_nanmin(log.column("pressure")),
        max_ascent_rate=float(np.max(vs)) if len(vs) and np.max(vs) > 0 else None,
        max_descent_rate=float(np.min(vs)) if len(vs) and np.min(vs) < 0 else None,
        duration=log.duration,
        ground_distance_m=ground_track_distance(log),
    )
