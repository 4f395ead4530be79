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
"""Jinja2 templating of path globs.

Path templates are rendered with the cycle points they are resolved against
before anything is looked up on the filesystem:

    >>> render_pattern(
    ...     'share/cycle/{{ point }}/*.nc',
    ...     {'point': '20130101T1200Z'},
    ... )
    'share/cycle/20130101T1200Z/*.nc'

Patterns without template markup are returned unchanged:

    >>> render_pattern('etc/my-path/*', {})
    'etc/my-path/*'

"""

from functools import lru_cache
import importlib
import pkgutil
from typing import Any, Dict, Mapping, Optional, Sequence

from jinja2 import (
    Environment,
    StrictUndefined,
    TemplateError,
)
from metomi.isodatetime.exceptions import IsodatetimeError

from cylc.taskenv.cycling import CyclePoint, OffsetSpec
from cylc.taskenv.exceptions import InvalidPathTemplate


def _load_jinja2_extensions():
    """Load Jinja2 filters from the cylc.taskenv.jinja.filters namespace.

    Filters provided by third-party packages will also be included if
    correctly put in the cylc.taskenv.jinja.filters namespace.

    :return: {"filters": {filter_name: module}}
    :rtype: dict[string, dict[string, object]]
    """
    module = importlib.import_module("cylc.taskenv.jinja.filters")
    return {
        "filters": {
            name.split(".")[-1]: importlib.import_module(name)
            for _finder, name, _ispkg in pkgutil.iter_modules(
                module.__path__, f"{module.__name__}.")
        }
    }


@lru_cache(maxsize=1)
def jinja2environment() -> Environment:
    """Set up and return the Jinja2 environment for path templates."""
    # Ignore bandit false positive: B701:jinja2_autoescape_false
    # This env is not used to render content that is vulnerable to XSS.
    env = Environment(undefined=StrictUndefined)  # nosec
    for scope, extensions in _load_jinja2_extensions().items():
        for fname, module in extensions.items():
            getattr(env, scope)[fname] = getattr(module, fname)
    return env


def template_context(
    history: Sequence[CyclePoint],
    offsets: Sequence[OffsetSpec],
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Return the variables available to path templates.

    Args:
        history:
            The current cycle point followed by the point after each offset
            was applied. The last point is the resolution point.
        offsets:
            The offsets which were applied.
        environ:
            Environment variables to make available as ``environ``.

    """
    points = [str(point) for point in history]
    return {
        'point': points[-1],
        'points': points,
        'offsets': [str(offset) for offset in offsets],
        'environ': dict(environ or {}),
    }


def render_pattern(
    pattern: str,
    context: Mapping[str, Any],
    name: Optional[str] = None,
) -> str:
    """Render a single glob pattern.

    Raises:
        InvalidPathTemplate:
            If the pattern is not a valid template, references an
            undefined variable, or a filter fails.

    """
    label = f'{name}={pattern}' if name else pattern
    try:
        return jinja2environment().from_string(pattern).render(**context)
    except TemplateError as exc:
        raise InvalidPathTemplate(
            f'{label}: {type(exc).__name__}: {exc}'
        ) from None
    except (IsodatetimeError, ValueError) as exc:
        raise InvalidPathTemplate(f'{label}: {exc}') from None
