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
"""Terminal handling for the command line.

The exported environment is written to stdout, which is usually captured
(``eval "$(cylc-task-env ...)"``), so colour is decided by stderr alone.
"""

from functools import wraps
import logging
import os
import sys
from typing import (
    TYPE_CHECKING,
    Callable,
    NoReturn,
    Optional,
)

from ansimarkup import parse as cparse
from colorama import init as color_init

from cylc.taskenv import TASKENV_LOG
from cylc.taskenv.exceptions import TaskEnvError
import cylc.taskenv.flags
from cylc.taskenv.loggingutil import TaskEnvLogFormatter


if TYPE_CHECKING:
    from optparse import (
        OptionParser,
        Values,
    )


# CLI exception message format
EXC_EXIT = cparse('<red><bold>{name}: </bold>{exc}</red>')


def is_terminal() -> bool:
    """Return True if diagnostics (stderr) are going to a terminal."""
    return hasattr(sys.stderr, 'isatty') and sys.stderr.isatty()


def supports_color() -> bool:
    """Determine if running in a terminal which supports color.

    See the equivalent code in Django (django/core/management/color.py).
    """
    if not is_terminal():
        return False
    if sys.platform in {'Pocket PC', 'win32'}:
        return False
    return 'ANSICON' not in os.environ


def should_use_color(opts: 'Optional[Values]') -> bool:
    """Interpret the --color option.

    Examples:
        >>> from optparse import Values
        >>> should_use_color(Values({'color': 'always'}))
        True
        >>> should_use_color(Values({'color': 'never'}))
        False
        >>> should_use_color(None)
        False

    """
    color = getattr(opts, 'color', None)
    if color == 'auto':
        return supports_color()
    return color == 'always'


def ansi_log(name: str = TASKENV_LOG) -> None:
    """Switch on colour for the stderr handlers of a logger."""
    for handler in logging.getLogger(name).handlers:
        if (
            isinstance(handler, logging.StreamHandler)
            and isinstance(handler.formatter, TaskEnvLogFormatter)
            and handler.stream is sys.stderr
        ):
            handler.formatter.configure(color=True)


def exit_with_error(name: str, message: object) -> NoReturn:
    """Print an error summary to stderr and exit 1."""
    print(EXC_EXIT.format(name=name, exc=message), file=sys.stderr)
    sys.exit(1)


def cli_function(
    parser_function: 'Optional[Callable[[], OptionParser]]' = None,
):
    """Decorator for CLI entry points.

    The wrapped function is called as ``function(parser, options, *args)``
    with the command line it is given (rather than sys.argv) parsed by
    the parser ``parser_function`` returns.

    Errors derived from TaskEnvError are "expected": they are printed as a
    one line summary and the command exits 1. Run with --debug to get the
    full traceback instead. Other exceptions propagate.

    """
    def inner(wrapped_function: Callable) -> Callable:
        @wraps(wrapped_function)
        def wrapper(*api_args: str) -> None:
            wrapped_args = []
            use_color = False
            if parser_function:
                parser = parser_function()
                opts, args = parser.parse_args(list(api_args))
                use_color = should_use_color(opts)
                wrapped_args = [parser, opts, *args]

            color_init(autoreset=False, strip=not use_color)
            if use_color:
                ansi_log()

            try:
                wrapped_function(*wrapped_args)
            except TaskEnvError as exc:
                if cylc.taskenv.flags.verbosity > 1:
                    raise
                exit_with_error(type(exc).__name__, exc)
            except SystemExit as exc:
                # sys.exit(<str>) prints the message and exits 1, reformat
                # the message to match other errors
                if exc.args and isinstance(exc.args[0], str):
                    exit_with_error('ERROR', exc.args[0])
                raise
        wrapper.parser_function = parser_function  # type: ignore
        return wrapper
    return inner
