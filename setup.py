#!/usr/bin/env python
# coding=utf-8

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

import codecs
import re
from os.path import join, dirname, abspath

from setuptools import setup, find_namespace_packages

here = abspath(dirname(__file__))


def read(*parts):
    with codecs.open(join(here, *parts), 'r') as fp:
        return fp.read()


def find_version(*file_paths):
    version_file = read(*file_paths)
    version_match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]",
                              version_file, re.M)
    if version_match:
        return version_match.group(1)
    raise RuntimeError("Unable to find version string.")


install_requires = [
    'ansimarkup>=1.0.0',
    'colorama>=0.4,<1',
    'jinja2>=3.0',
    'metomi-isodatetime>=1!3.0.0',
]
tests_require = [
    'coverage>=5.0.0',
    'flake8>=3.0.0',
    'pycodestyle>=2.5.0',
    'pytest-cov>=2.8.0',
    'pytest>=8.1',
]

extra_requires = {
    'tests': tests_require,
    'all': [],
}
extra_requires['all'] = (
    tests_require
    + list({
        req
        for reqs in extra_requires.values()
        for req in reqs
    })
)


setup(
    name='cylc-task-env',
    version=find_version("cylc", "taskenv", "__init__.py"),
    description='Cycle-relative task environments for Cylc workflows',
    long_description=open('README.md').read(),
    long_description_content_type="text/markdown",
    license='GPL',
    python_requires='>=3.10',
    packages=find_namespace_packages(include=["cylc.*"]),
    install_requires=install_requires,
    tests_require=tests_require,
    extras_require=extra_requires,
    entry_points={
        'console_scripts': [
            'cylc-task-env = cylc.taskenv.scripts.task_env:run',
        ],
    },
)
