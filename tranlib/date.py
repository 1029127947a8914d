"""Microsecond-precision time points with UTC and local-time formatting."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from functools import lru_cache

_MICRO = 1_000_000
_STRFTIME_LIMIT = 256
_INTEGER_PREFIX = re.compile(r"\s*[+-]?\d+")


def _trunc_div(value: int, divisor: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(value) // abs(divisor)
    return quotient if (value >= 0) == (divisor > 0) else -quotient


def _trunc_mod(value: int, divisor: int) -> int:
    """Remainder whose sign follows the dividend."""
    return value - _trunc_div(value, divisor) * divisor


def _split(text: str, delimiter: str) -> list[str]:
    return [part for part in text.split(delimiter) if part]


def _leading_int(text: str) -> int:
    """Parse the leading integer of ``text``, ignoring whatever follows it."""
    match = _INTEGER_PREFIX.match(text)
    if match is None:
        raise ValueError(f"no integer in {text!r}")
    return int(match.group())


def _strftime(fmt: str, moment: time.struct_time) -> str:
    result = time.strftime(fmt, moment)
    if len(result.encode()) >= _STRFTIME_LIMIT:
        return ""
    return result


@lru_cache(maxsize=1)
def _timezone_offset() -> int:
    probe = Date.from_db_string_local("1970-01-03 00:00:00")
    return -(probe.seconds_since_epoch() - 2 * 3600 * 24)


@dataclass(frozen=True, order=True)
class Date:
    """A point in time counted in microseconds since 1970-01-01 00:00:00 UTC."""

    microseconds_since_epoch: int = 0

    MICRO_SECONDS_PER_SEC = _MICRO

    @classmethod
    def from_components(
        cls,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        microsecond: int = 0,
    ) -> Date:
        """Build a date from local calendar fields."""
        epoch = time.mktime((year, month, day, hour, minute, second, 0, 0, -1))
        return cls(int(epoch) * _MICRO + microsecond)

    @classmethod
    def now(cls) -> Date:
        """Return the current time."""
        return cls(time.time_ns() // 1000)

    @classmethod
    def timezone_offset(cls) -> int:
        """Seconds the local zone is ahead of UTC, measured once near the epoch."""
        return _timezone_offset()

    def after(self, seconds: float) -> Date:
        """Return the date ``seconds`` later (earlier when negative)."""
        return Date(int(self.microseconds_since_epoch + seconds * _MICRO))

    def round_second(self) -> Date:
        """Return this date with the microsecond part removed."""
        us = self.microseconds_since_epoch
        return Date(us - _trunc_mod(us, _MICRO))

    def round_day(self) -> Date:
        """Return local midnight of this date's day."""
        local = time.localtime(self.seconds_since_epoch())
        midnight = time.mktime(
            (
                local.tm_year,
                local.tm_mon,
                local.tm_mday,
                0,
                0,
                0,
                local.tm_wday,
                local.tm_yday,
                local.tm_isdst,
            )
        )
        return Date(int(midnight) * _MICRO)

    def seconds_since_epoch(self) -> int:
        """Whole seconds since the epoch."""
        return _trunc_div(self.microseconds_since_epoch, _MICRO)

    def tm_struct(self) -> time.struct_time:
        """UTC broken-down time."""
        return time.gmtime(self.seconds_since_epoch())

    def _micro_part(self) -> int:
        return _trunc_mod(self.microseconds_since_epoch, _MICRO)

    def _format(self, moment: time.struct_time, show_microseconds: bool) -> str:
        text = "%4d%02d%02d %02d:%02d:%02d" % (
            moment.tm_year,
            moment.tm_mon,
            moment.tm_mday,
            moment.tm_hour,
            moment.tm_min,
            moment.tm_sec,
        )
        if show_microseconds:
            text += ".%06d" % self._micro_part()
        return text

    def _custom(self, fmt: str, moment: time.struct_time, show_microseconds: bool) -> str:
        text = _strftime(fmt, moment)
        if show_microseconds:
            text += ".%06d" % self._micro_part()
        return text

    def to_formatted_string(self, show_microseconds: bool) -> str:
        """UTC text such as ``20180101 10:10:25``."""
        return self._format(self.tm_struct(), show_microseconds)

    def to_custom_formatted_string(self, fmt: str, show_microseconds: bool = False) -> str:
        """UTC text formatted with a strftime pattern."""
        return self._custom(fmt, self.tm_struct(), show_microseconds)

    def to_formatted_string_local(self, show_microseconds: bool) -> str:
        """Local-time text in the same layout as :meth:`to_formatted_string`."""
        return self._format(time.localtime(self.seconds_since_epoch()), show_microseconds)

    def to_custom_formatted_string_local(
        self, fmt: str, show_microseconds: bool = False
    ) -> str:
        """Local-time text formatted with a strftime pattern."""
        return self._custom(
            fmt, time.localtime(self.seconds_since_epoch()), show_microseconds
        )

    def to_db_string_local(self) -> str:
        """Local-time database text, omitting parts that are zero."""
        local = time.localtime(self.seconds_since_epoch())
        day = "%4d-%02d-%02d" % (local.tm_year, local.tm_mon, local.tm_mday)
        clock = "%02d:%02d:%02d" % (local.tm_hour, local.tm_min, local.tm_sec)
        micro = self._micro_part()
        if micro != 0:
            return f"{day} {clock}.{micro:06d}"
        if self == self.round_day():
            return day
        return f"{day} {clock}"

    def to_db_string(self) -> str:
        """UTC database text."""
        return self.after(float(-self.timezone_offset())).to_db_string_local()

    @classmethod
    def from_db_string_local(cls, text: str) -> Date:
        """Parse ``YYYY-MM-DD[ HH:MM:SS[.UUUUUU]]`` as local time."""
        error = ValueError("Invalid date string: " + text)
        parts = _split(text, " ")
        if not parts:
            raise error
        date_fields = _split(parts[0], "-")
        if len(date_fields) != 3 or len(parts) > 2:
            raise error
        hour = minute = second = microsecond = 0
        try:
            year, month, day = (_leading_int(field) for field in date_fields)
            if len(parts) == 2:
                clock = _split(parts[1], ":")
                if len(clock) > 2:
                    hour = _leading_int(clock[0])
                    minute = _leading_int(clock[1])
                    seconds = _split(clock[2], ".")
                    second = _leading_int(seconds[0])
                    if len(seconds) > 1:
                        fraction = seconds[1][:6].ljust(6, "0")
                        microsecond = _leading_int(fraction)
        except (ValueError, IndexError):
            raise error from None
        return cls.from_components(year, month, day, hour, minute, second, microsecond)

    @classmethod
    def from_db_string(cls, text: str) -> Date:
        """Parse database text given in UTC."""
        return cls.from_db_string_local(text).after(float(cls.timezone_offset()))

    def is_same_second(self, other: Date) -> bool:
        """True if both dates fall within the same whole second."""
        return self.seconds_since_epoch() == other.seconds_since_epoch()