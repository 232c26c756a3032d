from __future__ import annotations

from typing import Mapping, Sequence

import matplotlib.pyplot as plt

from .domain import AnalysisConfig, FlightPhase, PhaseLabel
from .export import NamedSeries

PHASE_COLORS = {
    PhaseLabel.ASCENT: "tab:green",
    PhaseLabel.FLOAT: "tab:blue",
    PhaseLabel.DESCENT: "tab:red",
    PhaseLabel.UNKNOWN: "grey",
}

# (panel title/ylabel, raw series, smoothed series)
PANELS = [
    ("Altitude (m)", "altitude", "altitude_smoothed"),
    ("Vertical speed (m/s)", "vertical_speed", "vertical_speed_smoothed"),
    ("Temperature (degC)", "temperature", None),
    ("Pressure (hPa)", "pressure", None),
]


def make_plot_figure(
    series: Mapping[str, NamedSeries],
    phases: Sequence[FlightPhase],
    config: AnalysisConfig,
    title: str = "Balloon flight",
):
    # Only draw panels whose raw series has data
    panels = [p for p in PANELS if p[1] in series and len(series[p[1]].points) > 0]
    if not panels:
        fig, ax = plt.subplots(figsize=(14, 3))
        ax.text(0.5, 0.5, "No data", ha="center", va="center")
        ax.set_axis_off()
        return fig

    fig, axes = plt.subplots(
        nrows=len(panels),
        ncols=1,
        figsize=(14, 2.8 * len(panels) + 1),
        sharex=True,
        squeeze=False,
    )
    axes = axes[:, 0]

    for ax, (ylabel, raw_name, smooth_name) in zip(axes, panels):
        raw = series[raw_name]
        ax.plot(raw.x, raw.y, linewidth=1.0, alpha=0.6, label=raw_name)
        if smooth_name and smooth_name in series and len(series[smooth_name].points) > 0:
            sm = series[smooth_name]
            ax.plot(sm.x, sm.y, linewidth=2.0, label=smooth_name)
        if raw_name == "vertical_speed":
            ax.axhline(config.ascent_threshold, linestyle=":", linewidth=1.2, label="Ascent threshold")
            ax.axhline(config.descent_threshold, linestyle=":", linewidth=1.2, label="Descent threshold")
        ax.set_ylabel(ylabel)
        ax.grid(True, alpha=0.2)
        ax.legend(loc="upper right")

    # Phase shading on every panel, labelled once on the top one
    seen = set()
    for p in phases:
        color = PHASE_COLORS[p.label]
        for i, ax in enumerate(axes):
            label = p.label.value if i == 0 and p.label not in seen else None
            ax.axvspan(p.start, p.end, alpha=0.08, color=color, label=label)
        seen.add(p.label)
    if phases:
        axes[0].legend(loc="upper right")

    axes[-1].set_xlabel("Time (s)")
    fig.suptitle(title, y=0.995)
    fig.tight_layout(rect=(0.0, 0.0, 1.0, 0.98))
    return fig
