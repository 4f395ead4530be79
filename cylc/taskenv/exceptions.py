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
"""Exceptions for "expected" errors."""

from typing import Optional


class TaskEnvError(Exception):
    """Generic exception for task environment errors.

    This exception is raised in-place of "expected" errors where a short
    message to the user is more appropriate than traceback.

    CLI commands will catch this exception and exit with str(exception).
    """


class InputError(TaskEnvError):
    """Exception covering erroneous user input to a cylc-task-env interface.

    Ideally this would be handled in the interface (e.g. argument parser).
    If this isn't possible raise InputError.

    """


class InvalidCyclePoint(InputError):
    """An error raised when a cycle point has an incorrect value."""

    def __init__(self, value: str, reason: Optional[str] = None):
        self.value = value
        self.reason = reason

    def __str__(self) -> str:
        ret = f'Invalid cycle point: {self.value}'
        if self.reason:
            ret += f' ({self.reason})'
        return ret


class InvalidDuration(InputError):
    """An error raised when a cycle offset is not a valid ISO8601 duration."""

    def __init__(self, value: str, reason: Optional[str] = None):
        self.value = value
        self.reason = reason

    def __str__(self) -> str:
        ret = f'Invalid cycle offset: {self.value}'
        if self.reason:
            ret += f' ({self.reason})'
        return ret


class InvalidPathTemplate(InputError):
    """A path template is malformed or cannot be rendered."""


class DuplicateVariable(InputError):
    """More than one path template exports the same variable."""

    def __init__(self, name: str):
        self.name = name

    def __str__(self) -> str:
        return f'Variable defined by more than one path template: {self.name}'


class NoPathMatch(TaskEnvError):
    """A path template matched nothing on the filesystem."""

    def __init__(self, name: str, pattern: str):
        self.name = name
        self.pattern = pattern

    def __str__(self) -> str:
        return f'{self.name}: no paths match "{self.pattern}"'
