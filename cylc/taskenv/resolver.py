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
"""Resolve path templates against cycle-relative points.

Resolution happens in two phases:

1. Pure: apply the cycle offsets to the current cycle point, check the
   templates and render each glob pattern with the resulting points.
2. Impure: expand the rendered patterns against the filesystem.

Nothing is exported unless every template resolves.
"""

from glob import glob
import os
import re
from typing import (
    Dict,
    Iterable,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Sequence,
    Union,
)

from cylc.taskenv import LOG
from cylc.taskenv.cycling import CyclePoint, OffsetSpec
from cylc.taskenv.exceptions import (
    DuplicateVariable,
    InvalidPathTemplate,
    NoPathMatch,
)
from cylc.taskenv.templating import render_pattern, template_context

DEFAULT_SEPARATOR = ' '

# valid (portable) shell variable name
RE_VARIABLE_NAME = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

ResolvedEnv = Dict[str, str]


class PathTemplate(NamedTuple):
    """An environment variable to bind to the paths matching a glob."""

    name: str
    pattern: str

    @classmethod
    def parse(cls, value: str) -> 'PathTemplate':
        """Parse a NAME=GLOB string.

        Examples:
            >>> PathTemplate.parse('MY_PATH=etc/my-path/*')
            PathTemplate(name='MY_PATH', pattern='etc/my-path/*')
            >>> PathTemplate.parse('X=a=b')
            PathTemplate(name='X', pattern='a=b')
            >>> PathTemplate.parse('1X=foo')
            Traceback (most recent call last):
            cylc.taskenv.exceptions.InvalidPathTemplate: ...

        """
        name, sep, pattern = value.partition('=')
        name = name.strip()
        if not sep:
            raise InvalidPathTemplate(f'{value}: expected NAME=GLOB')
        if not RE_VARIABLE_NAME.match(name):
            raise InvalidPathTemplate(f'{value}: invalid variable name')
        if not pattern:
            raise InvalidPathTemplate(f'{value}: empty glob pattern')
        return cls(name, pattern)


def resolve_points(
    current: CyclePoint,
    offsets: Iterable[OffsetSpec],
) -> List[CyclePoint]:
    """Apply offsets cumulatively to the current cycle point.

    Returns:
        The history of points: the current point followed by the point
        after each offset. The last point is the resolution point.

    Examples:
        >>> point = CyclePoint.parse('2013-01-01T12:00Z', utc=True)
        >>> [str(p) for p in resolve_points(point, [])]
        ['20130101T1200Z']
        >>> [
        ...     str(p) for p in resolve_points(
        ...         point,
        ...         [OffsetSpec.parse('+PT12H'), OffsetSpec.parse('-PT12H')]
        ...     )
        ... ]
        ['20130101T1200Z', '20130102T0000Z', '20130101T1200Z']

    """
    history = [current]
    for offset in offsets:
        history.append(offset.apply(history[-1]))
        LOG.debug(f'[{offset}] {history[-2]} => {history[-1]}')
    return history


def check_templates(templates: Iterable[PathTemplate]) -> None:
    """Ensure no two templates export the same variable.

    Raises:
        DuplicateVariable

    """
    names = set()
    for template in templates:
        if template.name in names:
            raise DuplicateVariable(template.name)
        names.add(template.name)


def render_patterns(
    templates: Sequence[PathTemplate],
    history: Sequence[CyclePoint],
    offsets: Sequence[OffsetSpec] = (),
    environ: Optional[Mapping[str, str]] = None,
) -> List[PathTemplate]:
    """Return the templates with their glob patterns rendered.

    This does not touch the filesystem.

    Raises:
        InvalidPathTemplate

    """
    context = template_context(history, offsets, environ)
    return [
        PathTemplate(
            template.name,
            render_pattern(template.pattern, context, template.name),
        )
        for template in templates
    ]


def expand_pattern(
    pattern: str,
    root_dir: Optional[Union[str, os.PathLike]] = None,
) -> List[str]:
    """Return the sorted filesystem matches for a glob pattern.

    Relative patterns are expanded relative to root_dir (default the
    current working directory) and the matches remain relative. "**"
    matches any number of directories.
    """
    if os.path.isabs(pattern):
        return sorted(glob(pattern, recursive=True))
    return sorted(glob(pattern, root_dir=root_dir, recursive=True))


def expand_patterns(
    templates: Sequence[PathTemplate],
    root_dir: Optional[Union[str, os.PathLike]] = None,
    allow_empty: bool = False,
    separator: str = DEFAULT_SEPARATOR,
) -> ResolvedEnv:
    """Expand rendered templates against the filesystem.

    Raises:
        NoPathMatch:
            If a pattern matches nothing and allow_empty is False.

    """
    env: ResolvedEnv = {}
    for template in templates:
        matches = expand_pattern(template.pattern, root_dir)
        if not matches:
            if not allow_empty:
                raise NoPathMatch(template.name, template.pattern)
            LOG.warning(
                f'{template.name}: no paths match "{template.pattern}"'
                ' (binding empty value)'
            )
        else:
            LOG.debug(
                f'{template.name}: {len(matches)} match(es)'
                f' for "{template.pattern}"'
            )
        env[template.name] = separator.join(matches)
    return env


def resolve(
    current: CyclePoint,
    offsets: Sequence[OffsetSpec],
    templates: Sequence[PathTemplate],
    root_dir: Optional[Union[str, os.PathLike]] = None,
    allow_empty: bool = False,
    separator: str = DEFAULT_SEPARATOR,
    environ: Optional[Mapping[str, str]] = None,
) -> ResolvedEnv:
    """Resolve path templates relative to an offset cycle point.

    Args:
        current:
            The task's cycle point.
        offsets:
            Cycle offsets, applied cumulatively in order.
        templates:
            The variables to export, in order.
        root_dir:
            Directory relative glob patterns are expanded in.
        allow_empty:
            Bind an empty value to templates which match nothing rather
            than failing.
        separator:
            String used to join multiple matches.
        environ:
            Environment variables available to templates as ``environ``.

    Returns:
        {variable_name: matches} in template order.

    Raises:
        DuplicateVariable, InvalidPathTemplate, NoPathMatch

    """
    check_templates(templates)
    history = resolve_points(current, offsets)
    rendered = render_patterns(templates, history, offsets, environ)
    return expand_patterns(rendered, root_dir, allow_empty, separator)
