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
"""Option parsing for cylc-task-env commands."""

from optparse import (
    IndentedHelpFormatter,
    Option,
    OptionParser,
)
import os
import re
from typing import List, Optional, Tuple

from ansimarkup import (
    parse as cparse,
    strip as cstrip
)

from cylc.taskenv import LOG
import cylc.taskenv.flags
from cylc.taskenv.log_level import (
    env_to_verbosity,
    verbosity_to_log_level
)
from cylc.taskenv.loggingutil import setup_stream_handler
from cylc.taskenv.terminal import should_use_color

# default grey colour (do not use "dim", it is not sufficiently portable)
DIM = 'fg 248'

ArgDoc = Tuple[str, str]


def format_shell_examples(string: str) -> str:
    """Put comments in the terminal "diminished" colour."""
    return cparse(
        re.sub(
            r'^(\s*(?:\$[^#]+)?)(#.*)$',
            rf'\1<{DIM}>\2</{DIM}>',
            string,
            flags=re.M,
        )
    )


def format_help_headings(string: str) -> str:
    """Put unindented lines ending in a colon in bold."""
    return cparse(re.sub(r'^(\w.*:)$', r'<bold>\1</bold>', string, flags=re.M))


def format_argdoc(usage: str, argdoc: List[ArgDoc]) -> str:
    """Substitute argument names for ARGS and list them under the usage.

    Examples:
        >>> print(format_argdoc('cmd ARGS', [('[POINT]', 'a point')]))
        cmd [POINT]
        <BLANKLINE>
        Arguments:
           [POINT]   a point

    """
    width = max(len(arg) for arg, _ in argdoc)
    usage = usage.replace('ARGS', ' '.join(arg for arg, _ in argdoc))
    lines = [usage, '', 'Arguments:']
    lines.extend(f'   {arg.ljust(width)}   {doc}' for arg, doc in argdoc)
    return '\n'.join(lines)


class TaskEnvOption(Option):
    """Optparse option with a "decrement" action (for --quiet)."""

    ACTIONS = Option.ACTIONS + ('decrement',)
    STORE_ACTIONS = Option.STORE_ACTIONS + ('decrement',)

    def take_action(self, action, dest, opt, value, values, parser):
        if action == 'decrement':
            setattr(values, dest, values.ensure_value(dest, 0) - 1)
        else:
            Option.take_action(self, action, dest, opt, value, values, parser)


class TaskEnvHelpFormatter(IndentedHelpFormatter):
    """Help formatter which colours headings and shell examples.

    Markup in help text is rendered or stripped according to --color.
    """

    def _markup(self, text: str) -> str:
        if should_use_color(self.parser.values):
            return cparse(text)
        return cstrip(text)

    def format_usage(self, usage: str) -> str:
        if should_use_color(self.parser.values):
            usage = format_shell_examples(format_help_headings(usage))
        else:
            usage = cstrip(usage)
        return super().format_usage(usage)

    def format_option(self, option: Option) -> str:
        if option.help:
            option.help = self._markup(option.help)
        return super().format_option(option)


class TaskEnvOptionParser(OptionParser):
    """Option parser with the standard logging and colour options.

    Parsing options also sets up logging to stderr at the requested
    verbosity.
    """

    CAN_BE_USED_MULTIPLE = (
        " This option can be used multiple times on the command line.")

    def __init__(
        self,
        usage: str,
        argdoc: Optional[List[ArgDoc]] = None,
        auto_add: bool = True,
    ) -> None:
        """
        Args:
            usage:
                Usage instructions, typically the __doc__ of the script
                module. "ARGS" is replaced with the names from argdoc.
            argdoc:
                (name, description) for each positional argument, names
                in square brackets are optional.
            auto_add:
                Add the standard options when parsing.

        """
        self.auto_add = auto_add
        argdoc = argdoc or []
        self.n_optional_args = sum(
            1 for arg, _ in argdoc if arg.startswith('['))
        self.n_compulsory_args = len(argdoc) - self.n_optional_args
        if argdoc:
            usage = format_argdoc(usage, argdoc)
        super().__init__(
            usage,
            option_class=TaskEnvOption,
            formatter=TaskEnvHelpFormatter(),
        )

    def add_std_options(self) -> None:
        """Add the standard options unless a command defines them."""
        std_options = [
            (
                ['-q', '--quiet'],
                dict(
                    help='Decrease verbosity.',
                    action='decrement', dest='verbosity',
                ),
            ),
            (
                ['-v', '--verbose'],
                dict(
                    help=(
                        'Increase verbosity'
                        ' (default from $CYLC_VERBOSE, $CYLC_DEBUG).'
                    ),
                    action='count', dest='verbosity',
                    default=env_to_verbosity(os.environ),
                ),
            ),
            (
                ['--debug'],
                dict(
                    help='Equivalent to -v -v, show tracebacks for errors.',
                    action='store_const', const=2, dest='verbosity',
                ),
            ),
            (
                ['--timestamp'],
                dict(
                    help='Add a timestamp to messages logged to stderr.',
                    action='store_true', default=False,
                    dest='log_timestamp',
                ),
            ),
            (
                ['--color', '--colour'],
                dict(
                    metavar='WHEN', action='store', default='auto',
                    choices=['never', 'auto', 'always'],
                    help=(
                        "When to use color/bold text in terminal output."
                        " Options are 'never', 'auto' and 'always'."
                    ),
                ),
            ),
        ]
        for args, kwargs in std_options:
            if not any(self.has_option(arg) for arg in args):
                self.add_option(*args, **kwargs)

    def parse_args(self, api_args: Optional[List[str]] = None):
        """Parse options and arguments, overrides OptionParser.parse_args.

        Args:
            api_args:
                Command line options if passed via Python as opposed to
                sys.argv.

        """
        if self.auto_add:
            self.add_std_options()

        options, args = super().parse_args(api_args)

        if len(args) < self.n_compulsory_args:
            self.error("Wrong number of arguments (too few)")
        elif len(args) > self.n_compulsory_args + self.n_optional_args:
            self.error("Wrong number of arguments (too many)")

        cylc.taskenv.flags.verbosity = options.verbosity

        # stdout is reserved for the exported environment
        setup_stream_handler(
            LOG,
            verbosity_to_log_level(options.verbosity),
            timestamp=options.log_timestamp,
            dev_info=(options.verbosity > 2),
        )

        return options, args

    @staticmethod
    def optional(arg: ArgDoc) -> ArgDoc:
        """Display an argdoc entry as an optional argument."""
        name, doc = arg
        return (f'[{name}]', doc)
