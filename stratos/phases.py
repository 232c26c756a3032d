"""Flight phase segmentation (ascent / float / descent) with short-phase absorption."""

from __future__ import annotations

import logging
import math

import numpy as np

from .domain import AbsorbPolicy, AnalysisConfig, FlightLog, FlightPhase, Metric, PhaseLabel
from .metrics import smoothed_vertical_speed

logger = logging.getLogger(__name__)


def classify(speed: float, ascent_threshold: float, descent_threshold: float) -> PhaseLabel:
    if not math.isfinite(speed):
        return PhaseLabel.UNKNOWN
    if speed > ascent_threshold:
        return PhaseLabel.ASCENT
    if speed < descent_threshold:
        return PhaseLabel.DESCENT
    return PhaseLabel.FLOAT


def _merge_adjacent(phases: list[FlightPhase]) -> list[FlightPhase]:
    merged: list[FlightPhase] = []
    for p in phases:
        if merged and merged[-1].label == p.label:
            merged[-1] = FlightPhase(p.label, merged[-1].start, p.end)
        else:
            merged.append(p)
    return merged


def _pick_target(phases: list[FlightPhase], k: int, policy: AbsorbPolicy) -> int:
    if k == 0:
        return 1
    if k == len(phases) - 1 or policy == AbsorbPolicy.PRECEDING:
        return k - 1
    # nearest: the longer neighbour wins, ties go to the preceding phase
    if phases[k + 1].duration > phases[k - 1].duration:
        return k + 1
    return k - 1


def absorb_short_phases(
    phases: list[FlightPhase],
    min_duration: float,
    policy: AbsorbPolicy = AbsorbPolicy.PRECEDING,
) -> list[FlightPhase]:
    """
    Fold phases shorter than min_duration into a neighbour.

    Noise on the altimeter near the float ceiling makes per-point
    classification flap between labels; this removes those flickers.
    Phases are handled left to right. With PRECEDING the short phase takes
    the label of the phase before it (the very first phase has none and
    joins its successor). With NEAREST it joins the longer neighbour.
    Adjacent phases that end up with the same label are merged again.
    """
    phases = _merge_adjacent(list(phases))

    while len(phases) > 1:
        short = [k for k, p in enumerate(phases) if p.duration < min_duration]
        if not short:
            break
        k = short[0]
        target = _pick_target(phases, k, policy)
        label = phases[target].label
        phases[k] = FlightPhase(label, phases[k].start, phases[k].end)
        phases = _merge_adjacent(phases)

    return phases


def segment_speed(
    speed: Metric,
    timestamps: np.ndarray,
    config: AnalysisConfig,
) -> list[FlightPhase]:
    """
    Segment a vertical-speed metric aligned to the given log timestamps.

    The speed point at t[i] describes the interval [t[i-1], t[i]], so the
    returned phases cover the whole log from its first to its last reading.
    A log with no usable speed point at all is one Unknown phase.
    """
    if len(timestamps) < 2:
        return []
    if len(speed) == 0:
        return [FlightPhase(PhaseLabel.UNKNOWN, float(timestamps[0]), float(timestamps[-1]))]

    raw: list[FlightPhase] = []
    prev_end = float(timestamps[0])
    for t, v in speed.points:
        label = classify(v, config.ascent_threshold, config.descent_threshold)
        raw.append(FlightPhase(label, prev_end, t))
        prev_end = t

    # speed points can be missing at the tail; the last phase runs to the final reading
    last_t = float(timestamps[-1])
    if raw[-1].end < last_t:
        raw[-1] = FlightPhase(raw[-1].label, raw[-1].start, last_t)

    phases = absorb_short_phases(raw, config.min_phase_duration, config.absorb_policy)
    logger.debug("Segmented %d speed points into %d phases", len(speed), len(phases))
    return phases


def segment_phases(log: FlightLog, config: AnalysisConfig) -> list[FlightPhase]:
    if len(log) < 2:
        return []
    speed = smoothed_vertical_speed(log, config.smoothing_window)
    return segment_speed(speed, log.timestamps, config)


def phase_spans(phases: list[FlightPhase]) -> list[tuple[float, float, PhaseLabel]]:
    return [(p.start, p.end, p.label) for p in phases]
