# THIS FILE IS PART OF THE CYLC WORKFLOW ENGINE.
# Copyright (C) NIWA & British Crown (Met Office) & Contributors.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
"""ISO8601 cycle points and cycle offsets.

Cycle points are dumped in the "canonical" workflow format, e.g:

    >>> point = CyclePoint.parse('2013-01-01T12:00Z', utc=True)
    >>> str(point)
    '20130101T1200Z'
    >>> str(OffsetSpec.parse('PT12H').apply(point))
    '20130102T0000Z'
    >>> str(OffsetSpec.parse('-P1D').apply(point))
    '20121231T1200Z'

"""

from typing import NamedTuple, Optional, Tuple

from metomi.isodatetime.data import Calendar, Duration
from metomi.isodatetime.dumpers import TimePointDumper
from metomi.isodatetime.exceptions import IsodatetimeError
from metomi.isodatetime.parsers import DurationParser, TimePointParser
from metomi.isodatetime.timezone import (
    TimeZoneFormatMode,
    get_local_time_zone,
    get_local_time_zone_format,
)

from cylc.taskenv.exceptions import (
    InputError,
    InvalidCyclePoint,
    InvalidDuration,
)

DATE_TIME_FORMAT = "CCYYMMDDThhmm"
UTC_TIME_ZONE = "Z"


def set_calendar_mode(mode: Optional[str]) -> None:
    """Set the calendar used for cycle point arithmetic.

    Note: this is process-wide (it is held by metomi-isodatetime).

    Args:
        mode: One of "gregorian", "360day", "365day", "366day" or None
            to leave the calendar unchanged.

    """
    if mode is None:
        return
    modes = Calendar.default().MODES
    if mode not in modes:
        raise InputError(
            f'Unknown calendar: {mode}'
            f' (valid calendars: {", ".join(sorted(modes))})'
        )
    Calendar.default().set_mode(mode)


def get_time_zone_info(
    time_zone: Optional[str] = None,
    utc: bool = False,
) -> Tuple[str, Tuple[int, int]]:
    """Return the time zone string and (hours, minutes) for parsing points.

    Examples:
        >>> get_time_zone_info(utc=True)
        ('Z', (0, 0))
        >>> get_time_zone_info('+13:00')
        ('+13:00', (13, 0))

    """
    if time_zone is None:
        if utc:
            return UTC_TIME_ZONE, (0, 0)
        return (
            get_local_time_zone_format(TimeZoneFormatMode.reduced),
            get_local_time_zone()
        )
    try:
        hours_minutes = TimePointDumper().get_time_zone(time_zone)
    except (IsodatetimeError, ValueError, TypeError):
        hours_minutes = None
    if hours_minutes is None:
        raise InputError(f'Invalid time zone: {time_zone}')
    return time_zone, tuple(hours_minutes)


def format_time_zone(hours: int, minutes: int) -> str:
    """Return the basic format string for a UTC offset.

    Examples:
        >>> format_time_zone(0, 0)
        'Z'
        >>> format_time_zone(13, 0)
        '+13'
        >>> format_time_zone(-2, -30)
        '-0230'

    """
    if hours == 0 and minutes == 0:
        return UTC_TIME_ZONE
    sign = '-' if hours < 0 or minutes < 0 else '+'
    ret = f'{sign}{abs(hours):02d}'
    if minutes:
        ret += f'{abs(minutes):02d}'
    return ret


def get_explicit_time_zone(value: str) -> Optional[str]:
    """Return the time zone written in an ISO8601 date-time, if it has one.

    Examples:
        >>> get_explicit_time_zone('20130101T1200Z')
        'Z'
        >>> get_explicit_time_zone('2013-01-01T12:00+13:00')
        '+13'
        >>> get_explicit_time_zone('2013-01-01T12:00-02:30')
        '-0230'
        >>> get_explicit_time_zone('20130101T1200') is None
        True

    """
    parser = TimePointParser(
        allow_only_basic=False,
        allow_truncated=False,
        default_to_unknown_time_zone=True,
    )
    time_zone = parser.parse(value).time_zone
    if time_zone.unknown:
        return None
    return format_time_zone(time_zone.hours, time_zone.minutes)


class CyclePoint:
    """A single ISO8601 date-time cycle point.

    Instances are immutable, arithmetic returns new instances:

        >>> point = CyclePoint.parse('20130101T12Z', utc=True)
        >>> point + DurationParser().parse('PT12H')
        <CyclePoint 20130102T0000Z>
        >>> point
        <CyclePoint 20130101T1200Z>

    Comparison is format agnostic:

        >>> point == CyclePoint.parse('2013-01-01T13:00+01:00')
        True

    """

    __slots__ = ('_time_point', '_dump_format')

    def __init__(self, time_point, dump_format: str):
        object.__setattr__(self, '_time_point', time_point)
        object.__setattr__(self, '_dump_format', dump_format)

    def __setattr__(self, key, value):
        raise AttributeError(f'{type(self).__name__} is immutable')

    @classmethod
    def parse(
        cls,
        value: str,
        time_zone: Optional[str] = None,
        utc: bool = False,
        dump_format: Optional[str] = None,
    ) -> 'CyclePoint':
        """Parse an ISO8601 date-time into a cycle point.

        Args:
            value:
                ISO8601 date-time string (basic or extended format).
            time_zone:
                Time zone to assume if the value has none, also used
                to dump the point (e.g. "Z", "+13:00").
            utc:
                UTC mode, used if time_zone is not specified.
            dump_format:
                Custom dump format (ISO8601 or strftime-style).

        Points are dumped in time_zone if given, else in UTC in UTC mode,
        else in the time zone written in the value. Values with no time
        zone are taken to be in the local time zone and dumped in it.

        Raises:
            InvalidCyclePoint

        """
        value = value.strip()
        zone_string, assumed_time_zone = get_time_zone_info(time_zone, utc)
        parser = TimePointParser(
            allow_only_basic=False,
            allow_truncated=False,
            assumed_time_zone=assumed_time_zone,
        )
        try:
            time_point = parser.parse(value)
            if time_zone is None and not utc:
                zone_string = get_explicit_time_zone(value) or zone_string
        except (IsodatetimeError, ValueError) as exc:
            raise InvalidCyclePoint(value, str(exc)) from None
        if dump_format is None:
            dump_format = DATE_TIME_FORMAT + zone_string
        point = cls(time_point, dump_format)
        # make sure the point can be represented in the requested format
        try:
            str(point)
        except (IsodatetimeError, ValueError) as exc:
            raise InputError(
                f'Invalid cycle point format: {dump_format}: {exc}'
            ) from None
        return point

    @property
    def time_point(self):
        """The underlying metomi.isodatetime TimePoint."""
        return self._time_point

    @property
    def dump_format(self) -> str:
        return self._dump_format

    def __add__(self, other: Duration) -> 'CyclePoint':
        if not isinstance(other, Duration):
            return NotImplemented
        return CyclePoint(self._time_point + other, self._dump_format)

    def __sub__(self, other: Duration) -> 'CyclePoint':
        if not isinstance(other, Duration):
            return NotImplemented
        return CyclePoint(self._time_point - other, self._dump_format)

    def __eq__(self, other):
        if not isinstance(other, CyclePoint):
            return NotImplemented
        return self._time_point == other._time_point

    def __lt__(self, other):
        if not isinstance(other, CyclePoint):
            return NotImplemented
        return self._time_point < other._time_point

    def __le__(self, other):
        return self == other or self < other

    def __hash__(self) -> int:
        return hash(self._time_point.seconds_since_unix_epoch)

    def __str__(self) -> str:
        if '%' in self._dump_format:
            # May be a custom not-quite ISO 8601 dump format.
            return self._time_point.strftime(self._dump_format)
        return TimePointDumper().dump(self._time_point, self._dump_format)

    def __repr__(self) -> str:
        return f'<{type(self).__name__} {self}>'


class OffsetSpec(NamedTuple):
    """A signed ISO8601 duration to apply to a cycle point.

    Examples:
        >>> OffsetSpec.parse('PT12H').sign
        1
        >>> str(OffsetSpec.parse('-PT12H'))
        '-PT12H'
        >>> str(-OffsetSpec.parse('-PT12H'))
        '+PT12H'

    """

    sign: int
    duration: Duration

    @classmethod
    def parse(cls, value: str) -> 'OffsetSpec':
        """Parse an offset with an optional leading sign.

        Raises:
            InvalidDuration

        """
        offset = value.strip()
        sign = 1
        if offset.startswith('-'):
            sign = -1
            offset = offset[1:]
        elif offset.startswith('+'):
            offset = offset[1:]
        if offset.startswith(('+', '-')):
            raise InvalidDuration(value, 'only one leading sign allowed')
        try:
            duration = DurationParser().parse(offset)
        except (IsodatetimeError, ValueError) as exc:
            raise InvalidDuration(value, str(exc)) from None
        return cls(sign, duration)

    def signed(self) -> Duration:
        """Return the offset as a single (possibly negative) duration."""
        return self.duration * self.sign

    def apply(self, point: CyclePoint) -> CyclePoint:
        """Return a new point offset from point.

        The inverse offset undoes this unless the duration has years or
        months. These are nominal, so the inverse may not return to the
        original point when the day of the month had to be clipped:

            >>> point = CyclePoint.parse('20130131T00Z', utc=True)
            >>> offset = OffsetSpec.parse('P1M')
            >>> offset.apply(point)
            <CyclePoint 20130228T0000Z>
            >>> (-offset).apply(offset.apply(point))
            <CyclePoint 20130128T0000Z>

        """
        if self.sign < 0:
            return point - self.duration
        return point + self.duration

    def __neg__(self) -> 'OffsetSpec':
        return OffsetSpec(-self.sign, self.duration)

    def __str__(self) -> str:
        return f'{"-" if self.sign < 0 else "+"}{self.duration}'
