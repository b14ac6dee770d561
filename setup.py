#!/usr/bin/env python3
import sys

from setuptools import setup

from savekeeper import __version__ as VERSION

if sys.version_info < (3, 7):
    sys.exit('Python 3.7 is required to run SaveKeeper')

setup(
    name='savekeeper',
    version=VERSION,
    license='GPL-3',
    packages=[
        'savekeeper',
        'savekeeper.database',
        'savekeeper.util',
        'savekeeper.util.wine',
    ],
    scripts=['bin/savekeeper'],
    zip_safe=False,
    install_requires=[
        'PyYAML',
        'PyGObject',
    ],
    extras_require={
        'test': ['pytest'],
    },
    description='Local backups of game saves',
    long_description="""SaveKeeper captures the save files of a game into versioned
    local archives and puts them back where they belong, translating paths
    between Windows layouts and the Wine prefixes used to run Windows games
    on Linux.""",
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: End Users/Desktop',
        'License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)',
        'Programming Language :: Python',
        'Operating System :: POSIX :: Linux',
        'Topic :: Games/Entertainment'
    ],
)
