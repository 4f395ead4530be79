#!/usr/bin/env python3
# -*- coding: utf-8 -*-

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

"""cylc-task-env [OPTIONS] ARGS

Export environment variables pointing at files relative to a cycle point.

Cycle offsets are applied to the cycle point in the order given, each to
the result of the last. Path globs are then rendered as Jinja2 templates
with these variables:
  point    the cycle point after all offsets are applied
  points   every point, points[0] is the task's cycle point
  offsets  the offsets applied
  environ  the environment

and expanded relative to the workflow run directory. Matches are sorted.

The output is designed to be evaluated in task scripts, nothing is
printed unless every path resolves.

Examples:
  # files in this cycle's share directory:
  $ export CYLC_TASK_CYCLE_POINT=20130101T1200Z
  $ eval "$(cylc-task-env --path='DATA=share/cycle/{{ point }}/*')"

  # files from the previous cycle:
  $ cylc-task-env --cycle-offset=-PT12H \\
  >   --path='DATA=share/cycle/{{ point }}/*'
  export DATA='share/cycle/20130101T0000Z/a share/cycle/20130101T0000Z/b'

  # an explicit cycle point, files filed by date:
  $ cylc-task-env 2013-01-01T12Z \\
  >   --path='OBS=obs/{{ point | strftime("%Y/%m/%d") }}/*.nc'
"""

import json
import os
import shlex
import sys

from cylc.taskenv import LOG
from cylc.taskenv.cycling import CyclePoint, OffsetSpec, set_calendar_mode
from cylc.taskenv.exceptions import DuplicateVariable
from cylc.taskenv.option_parsers import TaskEnvOptionParser as TEOP
from cylc.taskenv.resolver import (
    DEFAULT_SEPARATOR,
    PathTemplate,
    resolve,
    resolve_points,
)
from cylc.taskenv.terminal import cli_function
from cylc.taskenv.wallclock import set_utc_mode

ENV_CYCLE_POINT = 'CYLC_TASK_CYCLE_POINT'
ENV_UTC = 'CYLC_UTC'
ENV_CYCLING_MODE = 'CYLC_CYCLING_MODE'
ENV_RUN_DIR = 'CYLC_WORKFLOW_RUN_DIR'

ENV_POINT = 'CYLC_TASK_ENV_POINT'
ENV_POINTS = 'CYLC_TASK_ENV_POINTS'

OUTPUT_FORMATS = ('shell', 'json')


def get_option_parser() -> TEOP:
    parser = TEOP(
        __doc__,
        argdoc=[
            TEOP.optional(
                ('POINT', f'ISO8601 date-time, default=${ENV_CYCLE_POINT}')
            )
        ]
    )

    parser.add_option(
        "--cycle-offset", "-c", metavar="[+-]DURATION",
        help=(
            "Offset the cycle point by an ISO8601 duration, e.g. PT12H,"
            " -P1D." + TEOP.CAN_BE_USED_MULTIPLE
        ),
        action="append", default=[], dest="offsets")

    parser.add_option(
        "--path", "-P", metavar="NAME=GLOB",
        help=(
            "Export NAME as the files matching GLOB (\"**\" matches any"
            " number of directories)." +
            TEOP.CAN_BE_USED_MULTIPLE
        ),
        action="append", default=[], dest="paths")

    parser.add_option(
        "--utc",
        help=f"Use UTC for cycle points (default ${ENV_UTC}).",
        action="store_true", default=None, dest="utc")

    parser.add_option(
        "--time-zone", metavar="TZ",
        help="Time zone for cycle points e.g. Z, +13:00, -0230.",
        action="store", default=None, dest="time_zone")

    parser.add_option(
        "--point-format", metavar="FORMAT",
        help=(
            "Format for cycle points in templates, ISO8601 (CCYYMMDDThhmmZ)"
            " or strftime (%Y%m%dT%H%M) style."
        ),
        action="store", default=None, dest="point_format")

    parser.add_option(
        "--calendar", metavar="MODE",
        help=(
            "Calendar for cycle point arithmetic: gregorian, 360day,"
            f" 365day or 366day (default ${ENV_CYCLING_MODE})."
        ),
        action="store", default=None, dest="calendar")

    parser.add_option(
        "--root-dir", metavar="DIR",
        help=(
            "Expand relative globs in DIR"
            f" (default ${ENV_RUN_DIR} or the current directory)."
        ),
        action="store", default=None, dest="root_dir")

    parser.add_option(
        "--allow-empty",
        help="Export an empty value for globs which match nothing.",
        action="store_true", default=False, dest="allow_empty")

    parser.add_option(
        "--separator", metavar="SEP",
        help="Separator for multiple matches (default: space).",
        action="store", default=DEFAULT_SEPARATOR, dest="separator")

    parser.add_option(
        "--format", metavar="FORMAT",
        help="Output format: shell (default) or json.",
        action="store", default="shell", choices=OUTPUT_FORMATS,
        dest="format")

    parser.add_option(
        "--print-points",
        help=(
            f"Also export {ENV_POINT} (the offset cycle point) and"
            f" {ENV_POINTS} (all points)."
        ),
        action="store_true", default=False, dest="print_points")

    return parser


def get_utc(options, environ) -> bool:
    """Return UTC mode from the command line or the task environment."""
    if options.utc is not None:
        return options.utc
    return environ.get(ENV_UTC, '').lower() == 'true'


def get_calendar(options, environ):
    """Return the calendar from the command line or the task environment.

    The task environment also uses CYLC_CYCLING_MODE for integer cycling,
    which has no calendar.
    """
    if options.calendar:
        return options.calendar
    mode = environ.get(ENV_CYCLING_MODE)
    if mode and mode != 'integer':
        return mode
    return None


def format_env(env, fmt='shell') -> str:
    """Format the resolved environment for output.

    Examples:
        >>> print(format_env({'A': 'x y', 'B': ''}))
        export A='x y'
        export B=''
        >>> print(format_env({'A': 'x y'}, 'json'))
        {
          "A": "x y"
        }

    """
    if fmt == 'json':
        return json.dumps(env, indent=2)
    return '\n'.join(
        f'export {key}={shlex.quote(value)}'
        for key, value in env.items()
    )


def get_task_env(parser, options, *args, environ=None):
    """Return the environment to export for the given options."""
    if environ is None:
        environ = os.environ
    if args:
        point_string = args[0]
    elif environ.get(ENV_CYCLE_POINT):
        point_string = environ[ENV_CYCLE_POINT]
    else:
        parser.error(f"Provide POINT arg, or define ${ENV_CYCLE_POINT}")

    utc = get_utc(options, environ)
    set_utc_mode(utc)
    set_calendar_mode(get_calendar(options, environ))

    current = CyclePoint.parse(
        point_string,
        time_zone=options.time_zone,
        utc=utc,
        dump_format=options.point_format,
    )
    offsets = [OffsetSpec.parse(offset) for offset in options.offsets]
    templates = [PathTemplate.parse(path) for path in options.paths]
    root_dir = options.root_dir or environ.get(ENV_RUN_DIR) or os.getcwd()
    LOG.debug(f'cycle point: {current}')
    LOG.debug(f'root directory: {root_dir}')

    env = {}
    if options.print_points:
        for template in templates:
            if template.name in {ENV_POINT, ENV_POINTS}:
                raise DuplicateVariable(template.name)
        history = resolve_points(current, offsets)
        env[ENV_POINT] = str(history[-1])
        env[ENV_POINTS] = ' '.join(str(point) for point in history)
    env.update(
        resolve(
            current,
            offsets,
            templates,
            root_dir=root_dir,
            allow_empty=options.allow_empty,
            separator=options.separator,
            environ=environ,
        )
    )
    return env


@cli_function(get_option_parser)
def main(parser, options, *args):
    env = get_task_env(parser, options, *args)
    if env or options.format == 'json':
        print(format_env(env, options.format))


def run() -> None:
    """Entry point for the cylc-task-env command."""
    main(*sys.argv[1:])
