from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterable, Optional, Union

from .domain import (
    DEFAULT_FORMAT,
    FlightLog,
    IssueReason,
    LogFormat,
    LogTooLarge,
    ParseIssue,
    Reading,
)
from .parser import is_skippable, parse_line

logger = logging.getLogger(__name__)

LogSource = Union[str, Path, IO[bytes], IO[str]]


@dataclass(frozen=True)
class BuildResult:
    log: FlightLog
    issues: tuple[ParseIssue, ...]
    lines_read: int

    @property
    def accepted(self) -> int:
        return len(self.log)

    @property
    def is_empty(self) -> bool:
        return len(self.log) == 0


def build(lines: Iterable[str], fmt: LogFormat = DEFAULT_FORMAT) -> BuildResult:
    """
    Turn raw log lines into a validated FlightLog plus the issues found on the way.

    Lines are taken in file order. A reading is kept only if it is strictly
    later than the last kept reading; the log is emitted in acquisition
    order, so anything else is corruption and gets reported rather than
    re-sorted.

    Args:
        lines: Raw text lines (any iterable, consumed once)
        fmt: Log line layout

    Returns:
        BuildResult with the FlightLog, the ordered issues and the number of lines read
    """
    accepted: list[Reading] = []
    issues: list[ParseIssue] = []
    n = 0

    for n, raw in enumerate(lines, start=1):
        if is_skippable(raw, fmt):
            continue

        result = parse_line(raw, n, fmt)
        if isinstance(result, ParseIssue):
            issues.append(result)
            continue

        if accepted:
            last_t = accepted[-1].timestamp
            if result.timestamp == last_t:
                issues.append(ParseIssue(
                    n, raw.rstrip("\r\n"), IssueReason.DUPLICATE_TIMESTAMP, f"t={result.timestamp:g}"
                ))
                continue
            if result.timestamp < last_t:
                issues.append(ParseIssue(
                    n, raw.rstrip("\r\n"), IssueReason.TIMESTAMP_NOT_INCREASING,
                    f"t={result.timestamp:g} after t={last_t:g}",
                ))
                continue

        accepted.append(result)

    for issue in issues:
        logger.debug("Rejected %s", issue)
    logger.info("Read %d lines: %d readings accepted, %d issues", n, len(accepted), len(issues))

    return BuildResult(log=FlightLog(tuple(accepted)), issues=tuple(issues), lines_read=n)


def _read_text(source: LogSource, max_bytes: Optional[int]) -> str:
    if isinstance(source, (str, Path)):
        path = Path(source)
        if max_bytes is not None and path.stat().st_size > max_bytes:
            raise LogTooLarge(f"Log {path.name} is larger than {max_bytes} bytes.")
        data = path.read_bytes()
    else:
        data = source.read() if max_bytes is None else source.read(max_bytes + 1)

    # text streams read characters; the limit is on encoded bytes
    size = len(data.encode("utf-8", errors="replace")) if isinstance(data, str) else len(data)
    if max_bytes is not None and size > max_bytes:
        raise LogTooLarge(f"Log is larger than {max_bytes} bytes.")

    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def load_log(
    source: LogSource,
    fmt: LogFormat = DEFAULT_FORMAT,
    max_bytes: Optional[int] = None,
) -> BuildResult:
    """Read a log from a path or an open file (text or binary) and build it."""
    text = _read_text(source, max_bytes)
    return build(io.StringIO(text), fmt)
