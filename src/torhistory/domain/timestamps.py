"""Acquisition timestamp (DLTS) derivation.

A DLTS is the canonical ``YYYYMMDDhhmmss`` UTC string attached to a whole
snapshot. It drives every freshness comparison, so an unparseable timestamp is
an error and never silently replaced by the current time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from pathlib import PurePath
from typing import TYPE_CHECKING, Final, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from torhistory.domain.model import Dlts

log = getLogger(__name__)

DLTS_FORMAT: Final[str] = "%Y%m%d%H%M%S"
DEFAULT_FILENAME_PATTERN: Final[str] = r"[0-9][0-9-_:]+[0-9]"

DEFAULT_TIME_FORMATS: Final[tuple[str, ...]] = (
    "%Y-%m-%d_%H:%M:%S",
    "%Y-%m-%d_%H:%M",
    "%Y%m%d%H%M%S",
    "%Y%m%d%H%M",
    "%Y-%m-%d-%H-%M-%S",
    "%Y-%m-%d-%H-%M",
    "%Y-%m-%dT%H:%M:%S%z",  # RFC 3339
    "%Y-%m-%dT%H:%M:%S.%f%z",  # RFC 3339 with fractional seconds
    "%a %b %d %H:%M:%S %Y",  # ANSI C
    "%a %b %d %H:%M:%S %Z %Y",  # Unix date
    "%d %b %y %H:%M %Z",  # RFC 822
    "%d %b %y %H:%M %z",  # RFC 822 numeric zone
    "%A, %d-%b-%y %H:%M:%S %Z",  # RFC 850
    "%a, %d %b %Y %H:%M:%S %Z",  # RFC 1123
    "%a, %d %b %Y %H:%M:%S %z",  # RFC 1123 numeric zone
    "%a %b %d %H:%M:%S %z %Y",  # Ruby date
)


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TimestampParseError(ValueError):
    """Raised when no candidate timestamp matches any known format."""

    def __init__(self, candidates: Sequence[str], formats: Sequence[str]) -> None:
        self.candidates = tuple(candidates)
        self.formats = tuple(formats)
        super().__init__(f"Unable to parse timestamp from candidates {list(self.candidates)}")


@dataclass(frozen=True, slots=True)
class TimestampOptions:
    """How to determine the DLTS of a snapshot."""

    override: str | None = None
    time_format: str | None = None
    extract_from_filename: bool = False
    filename_pattern: str | None = None

    @property
    def uses_system_time(self) -> bool:
        return not self.extract_from_filename and not self.override

    def formats(self) -> tuple[str, ...]:
        if self.time_format:
            return (self.time_format,)
        return DEFAULT_TIME_FORMATS


def format_dlts(value: datetime) -> Dlts:
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.strftime(DLTS_FORMAT)


def filename_candidates(filename: str, pattern: str | None = None) -> list[str]:
    """Return timestamp-looking substrings of the file's base name."""

    regex = re.compile(pattern or DEFAULT_FILENAME_PATTERN)
    return regex.findall(PurePath(filename).name)


# strptime accepts one-digit fields for these directives, so a 12-digit stamp
# would also match "%Y%m%d%H%M%S"; formats built only from them must round-trip.
_FIXED_WIDTH_DIRECTIVES: Final[frozenset[str]] = frozenset("YmdHMS")
_DIRECTIVE = re.compile(r"%(.)")


def _is_fixed_width(time_format: str) -> bool:
    directives = _DIRECTIVE.findall(time_format)
    return bool(directives) and all(d in _FIXED_WIDTH_DIRECTIVES for d in directives)


def match_timestamp(candidates: Sequence[str], formats: Sequence[str]) -> datetime | None:
    """Return the first (candidate, format) pair that parses, trying candidates in order."""

    for candidate in candidates:
        for time_format in formats:
            try:
                parsed = datetime.strptime(candidate, time_format)  # noqa: DTZ007
            except ValueError:
                continue
            if _is_fixed_width(time_format) and parsed.strftime(time_format) != candidate:
                continue
            log.debug("Timestamp %r matched format %r", candidate, time_format)
            return parsed
    return None


def derive_dlts(
    options: TimestampOptions,
    *,
    filename: str | None = None,
    clock: Clock = _utcnow,
) -> Dlts:
    """Determine the DLTS for a snapshot acquired from ``filename`` (or downloaded)."""

    if options.uses_system_time:
        dlts = format_dlts(clock())
        log.debug("Using system time as DLTS: %s", dlts)
        return dlts

    candidates: list[str] = []
    if options.override:
        candidates.append(options.override)
    if options.extract_from_filename:
        if filename is None:
            raise ValueError("Timestamp extraction requested without a filename")
        candidates = filename_candidates(filename, options.filename_pattern)
        log.debug("Extracted timestamp candidates from %s: %s", filename, candidates)

    formats = options.formats()
    parsed = match_timestamp(candidates, formats)
    if parsed is None:
        raise TimestampParseError(candidates, formats)
    dlts = format_dlts(parsed)
    log.debug("Derived DLTS %s", dlts)
    return dlts


__all__ = [
    "DEFAULT_FILENAME_PATTERN",
    "DEFAULT_TIME_FORMATS",
    "DLTS_FORMAT",
    "Clock",
    "TimestampOptions",
    "TimestampParseError",
    "derive_dlts",
    "filename_candidates",
    "format_dlts",
    "match_timestamp",
]
