"""Tests for the analysis pipeline, reports and command line"""

import numpy as np
import pandas as pd
import pytest

from stratos.analyze import AnalysisReport, analyze, analyze_file
from stratos.cli import EXIT_EMPTY_LOG, EXIT_OK, EXIT_USAGE, main
from stratos.domain import (
    PRESET_CONFIGS,
    AbsorbPolicy,
    AnalysisConfig,
    InvalidConfig,
    IssueReason,
    PhaseLabel,
)
from stratos.report import format_report, issues_frame, phases_frame, series_frame, summary


def flight_lines():
    """A synthetic flight: 5 m/s climb, 10 min float, 12 m/s descent, with a few bad lines."""
    lines = ["timestamp,latitude,longitude,altitude,temperature,pressure"]
    rng = np.random.default_rng(1)
    for t in range(0, 4810, 10):
        if t < 3000:
            alt = 5.0 * t
        elif t < 3600:
            alt = 15000.0 + rng.normal(0, 0.5)
        else:
            alt = 15000.0 - 12.0 * (t - 3600)
        temp = 15.0 - 0.0065 * alt
        pres = 1013.25 * np.exp(-alt / 8000.0)
        lat = 48.0 + t * 1e-5
        lines.append(f"{t},{lat:.6f},11.5,{alt:.2f},{temp:.2f},{pres:.2f}")
    lines.insert(50, "49,,,garbled,,")
    lines.insert(100, lines[99])  # duplicate record
    lines.insert(200, "10,48.0,11.5,50.0,15.0,1000.0")  # stale reading from a reboot
    return lines


class TestAnalysisConfig:
    """Tests for configuration validation."""

    def test_defaults_valid(self):
        cfg = AnalysisConfig()
        assert cfg.validate() is cfg

    def test_presets_valid(self):
        for cfg in PRESET_CONFIGS.values():
            cfg.validate()

    @pytest.mark.parametrize("kwargs", [
        {"ascent_threshold": -1.0, "descent_threshold": -1.0},
        {"ascent_threshold": -2.0, "descent_threshold": 1.0},
        {"smoothing_window": 4},
        {"smoothing_window": 0},
        {"smoothing_window": 5.0},
        {"smoothing_window": True},
        {"min_phase_duration": -1.0},
        {"resample_interval": 0.0},
        {"ascent_threshold": float("nan")},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(InvalidConfig):
            AnalysisConfig(**kwargs).validate()

    def test_invalid_config_raised_before_parsing(self):
        consumed = []

        def lines():
            consumed.append(True)
            yield "0,,,100,,"

        with pytest.raises(InvalidConfig):
            analyze(lines(), AnalysisConfig(smoothing_window=2))
        assert consumed == []


class TestAnalyze:
    """Tests for the analyze pipeline."""

    @pytest.fixture
    def report(self):
        return analyze(flight_lines(), AnalysisConfig())

    def test_returns_report(self, report):
        assert isinstance(report, AnalysisReport)
        assert not report.is_empty

    def test_counts(self, report):
        assert report.lines_read == 485
        assert report.accepted == 481
        assert len(report.issues) == 3

    def test_issue_reasons(self, report):
        reasons = {i.reason for i in report.issues}
        assert reasons == {
            IssueReason.NON_FINITE_PHYSICAL_VALUE,
            IssueReason.DUPLICATE_TIMESTAMP,
            IssueReason.TIMESTAMP_NOT_INCREASING,
        }

    def test_phases(self, report):
        assert [p.label for p in report.phases] == [PhaseLabel.ASCENT, PhaseLabel.FLOAT, PhaseLabel.DESCENT]
        assert report.phases[0].start == 0.0
        assert report.phases[-1].end == 4800.0

    def test_metrics(self, report):
        assert set(report.metrics) == {
            "altitude", "altitude_smoothed",
            "vertical_speed", "vertical_speed_smoothed",
            "temperature", "temperature_rate",
            "pressure", "pressure_rate",
        }
        assert len(report.metrics["vertical_speed"]) == report.accepted - 1
        for m in report.metrics.values():
            assert len(m) <= report.accepted

    def test_series_pass_through_without_resample(self, report):
        for name, metric in report.metrics.items():
            assert report.series[name].points == metric.points

    def test_extrema(self, report):
        assert report.extrema.max_altitude == pytest.approx(15000.0, abs=2.0)
        assert report.extrema.max_ascent_rate == pytest.approx(5.0, abs=0.5)
        assert report.extrema.max_descent_rate == pytest.approx(-12.0, abs=0.5)
        assert report.extrema.ground_distance_m > 0

    def test_resampled_series(self):
        report = analyze(flight_lines(), AnalysisConfig(resample_interval=30.0))
        x = report.series["altitude"].x
        np.testing.assert_array_almost_equal(np.diff(x), np.full(len(x) - 1, 30.0))
        assert x[0] == 0.0
        assert x[-1] <= 4800.0

    def test_empty_input(self):
        """No input is an empty report, not an exception."""
        report = analyze([])
        assert report.is_empty
        assert report.issues == ()
        assert report.phases == ()
        assert all(len(m) == 0 for m in report.metrics.values())
        assert report.extrema.max_altitude is None

    def test_all_lines_corrupt(self):
        report = analyze(["junk", "1,2,3", "x,,,y,,"])
        assert report.is_empty
        assert report.lines_read == 3
        assert len(report.issues) == 3

    def test_single_reading(self):
        report = analyze(["0,,,100,,"])
        assert report.accepted == 1
        assert report.phases == ()
        assert len(report.metrics["vertical_speed"]) == 0

    def test_nearest_policy(self):
        report = analyze(flight_lines(), AnalysisConfig(absorb_policy=AbsorbPolicy.NEAREST))
        assert [p.label for p in report.phases] == [PhaseLabel.ASCENT, PhaseLabel.FLOAT, PhaseLabel.DESCENT]

    def test_analyze_file(self, tmp_path):
        path = tmp_path / "flight.log"
        path.write_text("\n".join(flight_lines()) + "\n")
        report = analyze_file(path)
        assert report.accepted == 481


class TestReport:
    """Tests for the summary and tables in report.py."""

    @pytest.fixture
    def report(self):
        return analyze(flight_lines(), AnalysisConfig())

    def test_summary_always_has_counts(self):
        info = summary(analyze([]))
        assert info["lines_read"] == 0
        assert info["accepted_readings"] == 0
        assert info["issues"] == 0

    def test_summary(self, report):
        info = summary(report)
        assert info["accepted_readings"] == 481
        assert info["issues_duplicate_timestamp"] == 1
        assert info["issues_non_finite_physical_value"] == 1
        assert info["max_altitude"] == pytest.approx(15000.0, abs=2.0)

    def test_format_report_lists_issues(self, report):
        text = format_report(report)
        assert "Lines read: 485" in text
        assert "Accepted readings: 481" in text
        assert "duplicate timestamp" in text
        assert "timestamp not increasing" in text
        assert "Ascent" in text and "Descent" in text

    def test_format_report_descent_only(self):
        """A log that only falls has no ascent rate to report."""
        lines = [f"{t},,,{2000 - 5 * t},," for t in range(0, 200, 10)]
        report = analyze(lines, AnalysisConfig())
        assert report.extrema.max_ascent_rate is None
        text = format_report(report)
        assert "Max descent rate: -5.00 m/s" in text
        assert "Max ascent rate" not in text
        assert "max_ascent_rate" not in summary(report)

    def test_frames(self, report):
        assert list(phases_frame(report)["phase"]) == ["Ascent", "Float", "Descent"]
        issues = issues_frame(report)
        assert len(issues) == 3
        assert issues["line"].is_monotonic_increasing
        series = series_frame(report)
        assert isinstance(series, pd.DataFrame)
        assert set(series["series"]) == set(report.series)

    def test_empty_frames_keep_columns(self):
        report = analyze([])
        assert list(phases_frame(report).columns) == ["phase", "start", "end", "duration_s"]
        assert list(issues_frame(report).columns) == ["line", "reason", "detail", "text"]


class TestCli:
    """Tests for the stratos command."""

    @pytest.fixture
    def log_path(self, tmp_path):
        path = tmp_path / "flight.csv"
        path.write_text("\n".join(flight_lines()) + "\n")
        return path

    def test_ok(self, log_path, capsys):
        assert main([str(log_path)]) == EXIT_OK
        out = capsys.readouterr().out
        assert "Accepted readings: 481" in out

    def test_empty_log(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")
        assert main([str(path)]) == EXIT_EMPTY_LOG

    def test_invalid_config(self, log_path, capsys):
        assert main([str(log_path), "--smoothing-window", "4"]) == EXIT_USAGE
        assert "smoothing_window" in capsys.readouterr().err

    def test_missing_file(self, tmp_path):
        assert main([str(tmp_path / "nope.csv")]) == EXIT_USAGE

    def test_too_large(self, log_path):
        assert main([str(log_path), "--max-bytes", "100"]) == EXIT_USAGE

    def test_outputs(self, log_path, tmp_path):
        png = tmp_path / "out" / "flight.png"
        csv = tmp_path / "out" / "series.csv"
        assert main([str(log_path), "--plot", str(png), "--csv", str(csv), "--resample", "60"]) == EXIT_OK
        assert png.exists() and png.stat().st_size > 0
        df = pd.read_csv(csv)
        assert {"series", "unit", "x", "y"} <= set(df.columns)

    def test_overrides(self, log_path, capsys):
        assert main([str(log_path), "--preset", "Noisy altimeter", "--absorb", "nearest"]) == EXIT_OK
