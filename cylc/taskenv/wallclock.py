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
"""Wall clock times for log messages.

Times are shown in the local time zone, or UTC if the task runs in UTC mode
(so that log times match the cycle points).
"""

from datetime import (
    datetime,
    timedelta,
    timezone,
)

from metomi.isodatetime.timezone import (
    TimeZoneFormatMode,
    get_local_time_zone,
    get_local_time_zone_format,
)

_FLAGS = {'utc_mode': False}


def set_utc_mode(mode) -> None:
    """Report times in UTC (True) or the local time zone (False)."""
    _FLAGS['utc_mode'] = bool(mode)


def get_time_string(
    date_time: datetime,
    override_use_utc: bool | None = None,
    use_basic_format: bool = False,
) -> str:
    """Return an ISO8601 string representing a UTC datetime.

    Args:
        date_time: A datetime in UTC.
        override_use_utc:
            True or False to force (or prevent) UTC output, None to follow
            the UTC mode.
        use_basic_format:
            Represent the date/time without "-" or ":" delimiters.

    Examples:
        >>> get_time_string(
        ...     datetime(2013, 1, 1, 12, tzinfo=timezone.utc),
        ...     override_use_utc=True,
        ... )
        '2013-01-01T12:00:00Z'
        >>> get_time_string(
        ...     datetime(2013, 1, 1, 12, tzinfo=timezone.utc),
        ...     override_use_utc=True,
        ...     use_basic_format=True,
        ... )
        '20130101T120000Z'

    """
    if use_basic_format:
        fmt = '%Y%m%dT%H%M%S'
        zone_mode = TimeZoneFormatMode.reduced
    else:
        fmt = '%Y-%m-%dT%H:%M:%S'
        zone_mode = TimeZoneFormatMode.extended
    if override_use_utc is None:
        override_use_utc = _FLAGS['utc_mode']
    if override_use_utc:
        return date_time.strftime(fmt) + 'Z'
    hours, minutes = get_local_time_zone()
    local_time = date_time + timedelta(hours=hours, minutes=minutes)
    return local_time.strftime(fmt) + get_local_time_zone_format(zone_mode)


def get_time_string_from_unix_time(unix_time: float, **kwargs) -> str:
    """Return an ISO8601 string for a unix timestamp.

    Keyword arguments are passed on to get_time_string.
    """
    return get_time_string(
        datetime.fromtimestamp(unix_time, timezone.utc), **kwargs
    )
