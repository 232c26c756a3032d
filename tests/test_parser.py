"""Tests for line parsing in parser.py"""

import pytest

from stratos.domain import IssueReason, LogFormat, ParseIssue, Reading
from stratos.parser import is_skippable, parse_line


class TestParseLine:
    """Tests for the parse_line function."""

    def test_full_line(self):
        """All six fields should be parsed into a Reading."""
        r = parse_line("120.5,48.137,11.575,1532.0,-12.5,845.3", line_number=7)
        assert isinstance(r, Reading)
        assert r.timestamp == pytest.approx(120.5)
        assert r.latitude == pytest.approx(48.137)
        assert r.longitude == pytest.approx(11.575)
        assert r.altitude == pytest.approx(1532.0)
        assert r.temperature == pytest.approx(-12.5)
        assert r.pressure == pytest.approx(845.3)
        assert r.raw_line_number == 7

    def test_trailing_newline_ignored(self):
        """A line read from a file still carries its newline."""
        r = parse_line("1,48.1,11.5,500,10,1000\r\n", line_number=1)
        assert isinstance(r, Reading)
        assert r.pressure == pytest.approx(1000.0)

    def test_whitespace_around_fields(self):
        r = parse_line(" 1 , 48.1 , 11.5 , 500 , 10 , 1000 ", line_number=1)
        assert isinstance(r, Reading)
        assert r.altitude == pytest.approx(500.0)

    def test_non_numeric_altitude(self):
        """Non-numeric altitude is a non-finite physical value, not a crash."""
        issue = parse_line("abc,1.0,2.0,bad,,", line_number=3)
        assert isinstance(issue, ParseIssue)
        assert issue.reason == IssueReason.NON_FINITE_PHYSICAL_VALUE
        assert issue.line_number == 3
        assert issue.raw_text == "abc,1.0,2.0,bad,,"

    @pytest.mark.parametrize("alt", ["nan", "inf", "-inf", "", "-", "NA"])
    def test_altitude_missing_or_non_finite(self, alt):
        issue = parse_line(f"10,48.1,11.5,{alt},,", line_number=1)
        assert isinstance(issue, ParseIssue)
        assert issue.reason == IssueReason.NON_FINITE_PHYSICAL_VALUE

    def test_bad_timestamp(self):
        """A reading without a usable timestamp cannot be placed in time."""
        issue = parse_line("later,48.1,11.5,500,,", line_number=2)
        assert isinstance(issue, ParseIssue)
        assert issue.reason == IssueReason.NON_FINITE_PHYSICAL_VALUE
        assert "timestamp" in issue.detail

    @pytest.mark.parametrize("line", ["1,2,3", "1,2,3,4,5,6,7", "", "garbage"])
    def test_field_count_mismatch(self, line):
        issue = parse_line(line, line_number=9)
        assert isinstance(issue, ParseIssue)
        assert issue.reason == IssueReason.MALFORMED_FORMAT

    @pytest.mark.parametrize("token", ["", "-", "NA", "N/A", "null"])
    def test_missing_optional_fields_become_none(self, token):
        r = parse_line(f"10,{token},{token},500,{token},{token}", line_number=1)
        assert isinstance(r, Reading)
        assert r.latitude is None
        assert r.longitude is None
        assert r.temperature is None
        assert r.pressure is None
        assert not r.has_position

    def test_non_finite_optional_becomes_none(self):
        """Optional fields are finite or absent, never NaN."""
        r = parse_line("10,nan,11.5,500,inf,1000", line_number=1)
        assert isinstance(r, Reading)
        assert r.latitude is None
        assert r.temperature is None
        assert r.longitude == pytest.approx(11.5)

    def test_garbage_optional_field_is_malformed(self):
        issue = parse_line("10,48.1,11.5,500,warm,1000", line_number=4)
        assert isinstance(issue, ParseIssue)
        assert issue.reason == IssueReason.MALFORMED_FORMAT
        assert "temperature" in issue.detail

    def test_semicolon_delimiter_with_decimal_comma(self):
        fmt = LogFormat(delimiter=";")
        r = parse_line("10;48,1;11,5;500,5;;", line_number=1, fmt=fmt)
        assert isinstance(r, Reading)
        assert r.altitude == pytest.approx(500.5)
        assert r.latitude == pytest.approx(48.1)

    def test_custom_field_order(self):
        fmt = LogFormat(fields=("timestamp", "altitude"))
        r = parse_line("5,1200", line_number=1, fmt=fmt)
        assert isinstance(r, Reading)
        assert r.altitude == pytest.approx(1200.0)
        assert r.temperature is None

    def test_deterministic(self):
        """Same input gives the same outcome."""
        for line in ["1,2,3,4,5,6", "abc,1.0,2.0,bad,,", "1,2"]:
            assert parse_line(line, 1) == parse_line(line, 1)

    def test_never_raises(self):
        """Every outcome is a Reading or a ParseIssue."""
        junk = [",,,,,", "\x00\x01", "1e999,0,0,1e999,0,0", ";;;;;", "1,2,3,4,5,6,,,", "𝜋,𝜋,𝜋,𝜋,𝜋,𝜋", "0x10,1,1,1,1,1"]
        for line in junk:
            assert isinstance(parse_line(line, 1), (Reading, ParseIssue))


class TestIsSkippable:
    """Tests for blank, comment and header detection."""

    @pytest.mark.parametrize("line", ["", "   ", "\n", "# balloon 3 launch", "#"])
    def test_blank_and_comment(self, line):
        assert is_skippable(line)

    def test_header_row(self):
        assert is_skippable("timestamp,latitude,longitude,altitude,temperature,pressure\n")
        assert is_skippable("Timestamp, Latitude, Longitude, Altitude, Temperature, Pressure")

    def test_data_row_not_skipped(self):
        assert not is_skippable("1,48.1,11.5,500,10,1000")
        assert not is_skippable("abc,1.0,2.0,bad,,")


class TestParseIssue:
    """Tests for the ParseIssue display form."""

    def test_str(self):
        issue = ParseIssue(142, "x", IssueReason.TIMESTAMP_NOT_INCREASING)
        assert str(issue) == "line 142: timestamp not increasing"

    def test_str_with_detail(self):
        issue = ParseIssue(3, "x", IssueReason.DUPLICATE_TIMESTAMP, "t=5")
        assert str(issue) == "line 3: duplicate timestamp (t=5)"
