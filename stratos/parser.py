"""Line-level parsing of balloon telemetry logs."""

from __future__ import annotations

import math
from typing import Optional, Union

from .domain import (
    DEFAULT_FORMAT,
    IssueReason,
    LogFormat,
    OPTIONAL_FIELDS,
    ParseIssue,
    Reading,
)

ParseResult = Union[Reading, ParseIssue]


class _BadField(Exception):
    def __init__(self, reason: IssueReason, detail: str):
        super().__init__(detail)
        self.reason = reason
        self.detail = detail


def _to_float(token: str, fmt: LogFormat) -> float:
    # ';' separated exports from European ground stations use decimal commas
    if fmt.delimiter != "," and token.count(",") == 1 and "." not in token:
        token = token.replace(",", ".")
    return float(token)


def _required(token: str, name: str, fmt: LogFormat) -> float:
    if token in fmt.missing_tokens:
        raise _BadField(IssueReason.NON_FINITE_PHYSICAL_VALUE, f"{name} missing")
    try:
        value = _to_float(token, fmt)
    except ValueError:
        raise _BadField(IssueReason.NON_FINITE_PHYSICAL_VALUE, f"{name} not a number: {token!r}") from None
    if not math.isfinite(value):
        raise _BadField(IssueReason.NON_FINITE_PHYSICAL_VALUE, f"{name} not finite: {token!r}")
    return value


def _optional(token: str, name: str, fmt: LogFormat) -> Optional[float]:
    if token in fmt.missing_tokens:
        return None
    try:
        value = _to_float(token, fmt)
    except ValueError:
        raise _BadField(IssueReason.MALFORMED_FORMAT, f"{name} not a number: {token!r}") from None
    # nan/inf from the logger means the sensor had nothing to report
    return value if math.isfinite(value) else None


def split_fields(raw: str, fmt: LogFormat = DEFAULT_FORMAT) -> list[str]:
    return [f.strip() for f in raw.rstrip("\r\n").split(fmt.delimiter)]


def is_skippable(raw: str, fmt: LogFormat = DEFAULT_FORMAT) -> bool:
    """Blank lines, comments and a header row carry no reading and are not issues."""
    line = raw.strip()
    if not line:
        return True
    if fmt.comment_prefix and line.startswith(fmt.comment_prefix):
        return True
    names = [f.lower() for f in split_fields(line, fmt)]
    return names == [f.lower() for f in fmt.fields]


def parse_line(raw: str, line_number: int = 0, fmt: LogFormat = DEFAULT_FORMAT) -> ParseResult:
    """
    Parse one log line into a Reading, or describe why it could not be parsed.

    Never raises: every outcome is either a Reading or a ParseIssue.

    Args:
        raw: The line as read from the log (a trailing newline is ignored)
        line_number: 1-based position of the line in the log, for diagnostics
        fmt: Delimiter, field order and "no data" tokens of the log

    Returns:
        Reading on success, ParseIssue otherwise
    """
    text = raw.rstrip("\r\n")
    tokens = split_fields(text, fmt)

    if len(tokens) != len(fmt.fields):
        return ParseIssue(
            line_number,
            text,
            IssueReason.MALFORMED_FORMAT,
            f"expected {len(fmt.fields)} fields, got {len(tokens)}",
        )

    row = dict(zip(fmt.fields, tokens))
    try:
        # altitude first: it is the quantity everything downstream depends on
        altitude = _required(row.get("altitude", ""), "altitude", fmt)
        timestamp = _required(row.get("timestamp", ""), "timestamp", fmt)
        optional = {
            name: _optional(row[name], name, fmt) if name in row else None
            for name in OPTIONAL_FIELDS
        }
    except _BadField as e:
        return ParseIssue(line_number, text, e.reason, e.detail)

    return Reading(
        timestamp=timestamp,
        altitude=altitude,
        raw_line_number=line_number,
        **optional,
    )
