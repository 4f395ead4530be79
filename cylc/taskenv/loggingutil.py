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
"""Logging for cylc-task-env commands.

Log messages are diagnostics for the job log, so they go to stderr. Stdout
carries the exported environment only.
"""

import logging
import sys

from ansimarkup import parse as cparse, strip as cstrip

from cylc.taskenv.wallclock import get_time_string_from_unix_time


class TaskEnvLogFormatter(logging.Formatter):
    """Format log records as '[TIME ]LEVEL - [[module:line] - ]MESSAGE'.

    * Times are ISO8601 date-times in the local (or UTC) time zone.
    * Continuation lines of multi-line messages are indented.
    * ansimarkup tags in messages are rendered if colour is on,
      stripped otherwise.

    """

    COLORS = {
        'CRITICAL': '<red><bold>{0}</bold></red>',
        'ERROR': '<red>{0}</red>',
        'WARNING': '<yellow>{0}</yellow>',
        'DEBUG': '<fg #888888>{0}</fg #888888>'
    }

    def __init__(
        self,
        timestamp: bool = True,
        color: bool = False,
        dev_info: bool = False,
    ) -> None:
        self.timestamp = timestamp
        self.color = color
        fmt = '%(asctime)s %(levelname)-2s - '
        if dev_info:
            fmt += '[%(module)s:%(lineno)d] - '
        super().__init__(fmt + '%(message)s')

    def configure(self, timestamp=None, color=None):
        """Change the timestamp or colour settings."""
        if timestamp is not None:
            self.timestamp = timestamp
        if color is not None:
            self.color = color

    def format(self, record):  # noqa: A003 (method name not local)
        text = super().format(record)
        if not self.timestamp:
            # ISO8601 date-times contain no spaces
            text = text.split(' ', 1)[1]
        if not self.color:
            text = cstrip(text)
        elif record.levelname in self.COLORS:
            text = cparse(self.COLORS[record.levelname].format(text))
        else:
            text = cparse(text)
        return '\n    '.join(text.splitlines())

    def formatTime(self, record, datefmt=None):
        return get_time_string_from_unix_time(record.created)


def setup_stream_handler(
    logger: logging.Logger,
    level: int,
    timestamp: bool = False,
    dev_info: bool = False,
) -> logging.StreamHandler:
    """Make stderr the only destination of a logger's messages.

    Existing handlers (e.g. the package NullHandler, or the handler from a
    previous call) are closed and removed.

    """
    logger.setLevel(level)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(
        TaskEnvLogFormatter(timestamp=timestamp, dev_info=dev_info)
    )
    logger.addHandler(stream_handler)
    return stream_handler
