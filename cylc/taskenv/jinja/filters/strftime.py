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
"""Filter for formatting cycle points in path templates."""

from metomi.isodatetime.parsers import TimePointParser


def strftime(cycle_point: str, strftime_str: str) -> str:
    """Format an ISO8601 cycle point using an strftime string.

    Useful where data is filed in directories which do not follow the
    cycle point format:

    .. code-block:: bash

       --path='OBS=obs/{{ point | strftime("%Y/%m/%d") }}/*.nc'

    Args:
        cycle_point:
            Any valid ISO8601 datetime as a string.
        strftime_str:
            A valid strftime string to format the output datetime.

    Raises:
        ISO8601SyntaxError: In the event of an invalid datetime string.
        StrftimeSyntaxError: In the event of an invalid strftime string.

    Examples:
        >>> strftime('20130101T1200Z', '%Y/%m/%d')
        '2013/01/01'
        >>> strftime('20130101T1200Z', '%H')
        '12'
        >>> strftime('2013-01-01T12:00+13', '%j')  # Day of the year
        '001'

    """
    return TimePointParser().parse(str(cycle_point)).strftime(strftime_str)
