"""Plain-text and dictionary summaries of an analysis run."""

from __future__ import annotations

from collections import Counter

import pandas as pd

from .analyze import AnalysisReport


def summary(report: AnalysisReport) -> dict:
    """Headline numbers; always includes lines read, accepted readings and issue count."""
    ex = report.extrema
    out = {
        "lines_read": report.lines_read,
        "accepted_readings": report.accepted,
        "issues": len(report.issues),
        "duration_s": ex.duration,
    }
    counts = Counter(issue.reason.value for issue in report.issues)
    out.update({f"issues_{k.replace(' ', '_').replace('-', '_')}": v for k, v in sorted(counts.items())})

    for key in ("max_altitude", "max_altitude_time", "min_temperature", "min_pressure",
                "max_ascent_rate", "max_descent_rate"):
        value = getattr(ex, key)
        if value is not None:
            out[key] = value
    if ex.ground_distance_m > 0:
        out["ground_distance_m"] = ex.ground_distance_m
    return out


def phases_frame(report: AnalysisReport) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"phase": p.label.value, "start": p.start, "end": p.end, "duration_s": p.duration}
            for p in report.phases
        ],
        columns=["phase", "start", "end", "duration_s"],
    )


def issues_frame(report: AnalysisReport) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"line": i.line_number, "reason": i.reason.value, "detail": i.detail, "text": i.raw_text}
            for i in report.issues
        ],
        columns=["line", "reason", "detail", "text"],
    )


def series_frame(report: AnalysisReport) -> pd.DataFrame:
    """Exported series in long format (series, unit, x, y), ready for CSV download."""
    rows = [
        {"series": s.name, "unit": s.unit, "x": x, "y": y}
        for s in report.series.values()
        for x, y in s.points
    ]
    return pd.DataFrame(rows, columns=["series", "unit", "x", "y"])


def format_report(report: AnalysisReport) -> str:
    lines = [f"Lines read: {report.lines_read}",
             f"Accepted readings: {report.accepted}",
             f"Issues: {len(report.issues)}"]

    if report.is_empty:
        lines.append("No readings accepted.")
    else:
        ex = report.extrema
        lines.append(f"Duration: {ex.duration:.0f} s")
        if ex.max_altitude is not None:
            lines.append(f"Max altitude: {ex.max_altitude:.1f} m at t={ex.max_altitude_time:g}")
        if ex.max_ascent_rate is not None:
            lines.append(f"Max ascent rate: {ex.max_ascent_rate:.2f} m/s")
        if ex.max_descent_rate is not None:
            lines.append(f"Max descent rate: {ex.max_descent_rate:.2f} m/s")
        if ex.min_temperature is not None:
            lines.append(f"Min temperature: {ex.min_temperature:.1f} degC")
        if ex.min_pressure is not None:
            lines.append(f"Min pressure: {ex.min_pressure:.1f} hPa")
        if ex.ground_distance_m > 0:
            lines.append(f"Ground track: {ex.ground_distance_m / 1000:.2f} km")

    if report.phases:
        lines.append("")
        lines.append("Phases:")
        for p in report.phases:
            lines.append(f"  {p.label.value:<8} {p.start:>10g} .. {p.end:<10g} ({p.duration:.0f} s)")

    if report.issues:
        lines.append("")
        lines.append("Issues:")
        lines.extend(f"  {issue}" for issue in report.issues)

    return "\n".join(lines)
