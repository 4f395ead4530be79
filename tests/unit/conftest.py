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
"""Standard pytest fixtures for unit tests."""

import logging
from pathlib import Path
import time
from typing import Callable

from metomi.isodatetime.data import Calendar
import pytest

from cylc.taskenv import LOG
from cylc.taskenv.cycling import CyclePoint
from cylc.taskenv.wallclock import set_utc_mode


@pytest.fixture(autouse=True)
def reset_globals():
    """Restore the default calendar and UTC mode after each test."""
    yield
    Calendar.default().set_mode('gregorian')
    set_utc_mode(False)


@pytest.fixture(autouse=True)
def reset_log():
    """Restore the package logger after each test.

    The CLI replaces the logger's handlers each time it parses options.
    """
    handlers = list(LOG.handlers)
    level = LOG.level
    yield
    for handler in list(LOG.handlers):
        if handler not in handlers:
            LOG.removeHandler(handler)
    for handler in handlers:
        if handler not in LOG.handlers:
            LOG.addHandler(handler)
    LOG.setLevel(level)


@pytest.fixture
def log_debug():
    """Log everything, messages reach caplog via the root logger."""
    LOG.setLevel(logging.DEBUG)


@pytest.fixture
def utc_point() -> Callable[[str], CyclePoint]:
    """Parse a cycle point in UTC mode."""
    def _utc_point(value: str) -> CyclePoint:
        return CyclePoint.parse(value, utc=True)
    return _utc_point


@pytest.fixture
def populate(tmp_path: Path) -> Callable[..., Path]:
    """Create empty files (and their parent directories) under tmp_path.

    Example:
        root = populate('etc/my-path/a', 'etc/my-path/b')

    """
    def _populate(*paths: str, root: Path = tmp_path) -> Path:
        for path in paths:
            file_path = root / path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.touch()
        return root
    return _populate


@pytest.fixture
def set_local_time_zone(monkeypatch):
    """Change the local time zone of this process.

    Example:
        set_local_time_zone('XXX-13')  # POSIX TZ string for UTC+13

    """
    def _set_local_time_zone(tz: str) -> None:
        monkeypatch.setenv('TZ', tz)
        time.tzset()
    yield _set_local_time_zone
    monkeypatch.undo()
    time.tzset()
