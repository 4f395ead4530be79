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

import logging
import os

import pytest

from cylc.taskenv.cycling import OffsetSpec
from cylc.taskenv.exceptions import (
    DuplicateVariable,
    InvalidPathTemplate,
    NoPathMatch,
)
from cylc.taskenv.resolver import (
    PathTemplate,
    check_templates,
    expand_pattern,
    expand_patterns,
    render_patterns,
    resolve,
    resolve_points,
)


def offsets(*values):
    return [OffsetSpec.parse(value) for value in values]


def templates(*values):
    return [PathTemplate.parse(value) for value in values]


@pytest.mark.parametrize(
    'value, name, pattern',
    [
        ('MY_PATH=etc/my-path/*', 'MY_PATH', 'etc/my-path/*'),
        ('_x=*', '_x', '*'),
        (' X =a b', 'X', 'a b'),
        ('X=a=b', 'X', 'a=b'),
        ('X={{ point }}/*', 'X', '{{ point }}/*'),
    ]
)
def test_path_template_parse(value, name, pattern):
    assert PathTemplate.parse(value) == PathTemplate(name, pattern)


@pytest.mark.parametrize(
    'value',
    ['X', '=foo', '1X=foo', 'MY-PATH=foo', 'X Y=foo', 'X=']
)
def test_path_template_parse_invalid(value):
    with pytest.raises(InvalidPathTemplate):
        PathTemplate.parse(value)


def test_resolve_points_empty(utc_point):
    point = utc_point('20130101T1200Z')
    assert resolve_points(point, []) == [point]


def test_resolve_points_cumulative(utc_point):
    """Each offset applies to the result of the previous one."""
    history = resolve_points(
        utc_point('20130101T1200Z'),
        offsets('+PT12H', '-P1D', 'PT6H'),
    )
    assert [str(point) for point in history] == [
        '20130101T1200Z',
        '20130102T0000Z',
        '20130101T0000Z',
        '20130101T0600Z',
    ]


def test_resolve_points_there_and_back(utc_point):
    point = utc_point('20130101T1200Z')
    history = resolve_points(point, offsets('+PT12H', '-PT12H'))
    assert history[-1] == point
    assert str(history[-1]) == str(point)


def test_resolve_points_log(utc_point, log_debug, caplog):
    resolve_points(utc_point('20130101T1200Z'), offsets('-PT12H'))
    assert '[-PT12H] 20130101T1200Z => 20130101T0000Z' in caplog.messages


def test_check_templates():
    check_templates(templates('A=a', 'B=a'))
    with pytest.raises(DuplicateVariable) as exc_ctx:
        check_templates(templates('A=a', 'B=b', 'A=c'))
    assert exc_ctx.value.name == 'A'
    assert 'A' in str(exc_ctx.value)


def test_render_patterns(utc_point):
    history = resolve_points(utc_point('20130101T1200Z'), offsets('-PT12H'))
    rendered = render_patterns(
        templates(
            'A=data/{{ point }}/*',
            'B=data/{{ points[0] }}/*',
            'C=etc/*',
            'D={{ environ["HOME_DIR"] }}/{{ offsets | join(",") }}',
        ),
        history,
        offsets('-PT12H'),
        {'HOME_DIR': '/home/me'},
    )
    assert rendered == [
        PathTemplate('A', 'data/20130101T0000Z/*'),
        PathTemplate('B', 'data/20130101T1200Z/*'),
        PathTemplate('C', 'etc/*'),
        PathTemplate('D', '/home/me/-PT12H'),
    ]


def test_render_patterns_undefined(utc_point):
    with pytest.raises(InvalidPathTemplate) as exc_ctx:
        render_patterns(
            templates('A={{ pint }}/*'),
            [utc_point('20130101T1200Z')],
        )
    assert 'A={{ pint }}/*' in str(exc_ctx.value)


def test_expand_pattern(populate, tmp_path):
    populate('etc/my-path/b', 'etc/my-path/a', 'etc/other')
    assert expand_pattern('etc/my-path/*', tmp_path) == [
        'etc/my-path/a',
        'etc/my-path/b',
    ]
    assert expand_pattern('etc/nothing/*', tmp_path) == []


def test_expand_pattern_recursive(populate, tmp_path):
    populate('a/3.nc', 'a/x/1.nc', 'a/y/z/2.nc', 'a/y/z/2.txt')
    assert expand_pattern('a/**/*.nc', tmp_path) == [
        'a/3.nc',
        'a/x/1.nc',
        'a/y/z/2.nc',
    ]


def test_expand_pattern_absolute(populate, tmp_path):
    populate('a/x', 'a/y')
    assert expand_pattern(str(tmp_path / 'a' / '*'), '/elsewhere') == [
        str(tmp_path / 'a' / 'x'),
        str(tmp_path / 'a' / 'y'),
    ]


def test_expand_patterns_no_match(populate, tmp_path):
    populate('etc/a')
    with pytest.raises(NoPathMatch) as exc_ctx:
        expand_patterns(templates('A=etc/*', 'B=nothing/*'), tmp_path)
    assert exc_ctx.value.name == 'B'
    assert exc_ctx.value.pattern == 'nothing/*'


def test_expand_patterns_allow_empty(populate, tmp_path, caplog):
    populate('etc/a')
    caplog.set_level(logging.WARNING)
    env = expand_patterns(
        templates('A=etc/*', 'B=nothing/*'),
        tmp_path,
        allow_empty=True,
    )
    assert env == {'A': 'etc/a', 'B': ''}
    assert len(caplog.records) == 1
    assert caplog.records[0].levelno == logging.WARNING
    assert 'B: no paths match "nothing/*"' in caplog.messages[0]


def test_expand_patterns_separator(populate, tmp_path):
    populate('etc/a', 'etc/b', 'etc/c')
    env = expand_patterns(templates('A=etc/*'), tmp_path, separator=':')
    assert env == {'A': 'etc/a:etc/b:etc/c'}


def test_resolve(populate, tmp_path, utc_point):
    """It exports sorted matches against the current cycle point."""
    populate('etc/my-path/b', 'etc/my-path/a')
    env = resolve(
        utc_point('2013-01-01T12:00Z'),
        [],
        templates('MY_PATH=etc/my-path/*'),
        root_dir=tmp_path,
    )
    assert env == {'MY_PATH': 'etc/my-path/a etc/my-path/b'}


def test_resolve_offset(populate, tmp_path, utc_point):
    populate(
        'share/20130101T0000Z/a',
        'share/20130101T1200Z/a',
        'share/20130101T1200Z/b',
        'share/20130102T0000Z/a',
    )
    point = utc_point('20130101T1200Z')
    pattern = 'DATA=share/{{ point }}/*'
    assert resolve(point, offsets('-PT12H'), templates(pattern), tmp_path) == {
        'DATA': 'share/20130101T0000Z/a'
    }
    assert resolve(point, [], templates(pattern), tmp_path) == {
        'DATA': 'share/20130101T1200Z/a share/20130101T1200Z/b'
    }
    assert resolve(
        point, offsets('+PT12H', '-PT12H'), templates(pattern), tmp_path
    ) == resolve(point, [], templates(pattern), tmp_path)


def test_resolve_order(populate, tmp_path, utc_point):
    """Variables are returned in template order."""
    populate('x/1', 'y/1', 'z/1')
    env = resolve(
        utc_point('20130101T1200Z'),
        [],
        templates('Z=z/*', 'X=x/*', 'Y=y/*'),
        root_dir=tmp_path,
    )
    assert list(env) == ['Z', 'X', 'Y']


def test_resolve_deterministic(populate, tmp_path, utc_point):
    populate(*(f'etc/{name}' for name in 'qwertyuiop'))
    args = (
        utc_point('20130101T1200Z'),
        offsets('P1D'),
        templates('A=etc/*', 'B=etc/[a-m]*'),
    )
    first = resolve(*args, root_dir=tmp_path)
    assert first == resolve(*args, root_dir=tmp_path)
    assert first['A'] == 'etc/' + ' etc/'.join(sorted('qwertyuiop'))


def test_resolve_relative_to_cwd(populate, tmp_path, utc_point, monkeypatch):
    populate('etc/a')
    monkeypatch.chdir(tmp_path)
    env = resolve(utc_point('20130101T1200Z'), [], templates('A=etc/*'))
    assert env == {'A': os.path.join('etc', 'a')}


def test_resolve_no_match(populate, tmp_path, utc_point):
    populate('etc/a')
    with pytest.raises(NoPathMatch):
        resolve(
            utc_point('20130101T1200Z'),
            [],
            templates('A=etc/*', 'B=share/{{ point }}/*'),
            root_dir=tmp_path,
        )


def test_resolve_checks_before_filesystem(utc_point, monkeypatch):
    """Template errors are raised before the filesystem is looked at."""
    def _glob(*args, **kwargs):
        raise Exception('filesystem accessed')

    monkeypatch.setattr('cylc.taskenv.resolver.glob', _glob)
    point = utc_point('20130101T1200Z')
    with pytest.raises(DuplicateVariable):
        resolve(point, [], templates('A=a/*', 'A=b/*'))
    with pytest.raises(InvalidPathTemplate):
        resolve(point, [], templates('A=a/*', 'B={{ undefined }}/*'))
