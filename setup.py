# Copyright (c) 2024, The manifest-tool Contributors
#
# SPDX-License-Identifier: Apache-2.0

import os

import setuptools

with open('README.rst', 'r') as f:
    long_description = f.read()

with open('src/manifest_tool/version.py', 'r') as f:
    __version__ = None
    exec(f.read())
    assert __version__ is not None

version = os.environ.get('MANIFEST_TOOL_VERSION', __version__)

setuptools.setup(
    name='manifest-tool',
    version=version,
    description='Generate repo local manifests which override upstream '
                'remotes',
    long_description=long_description,
    # http://docutils.sourceforge.net/FAQ.html#what-s-the-official-mime-type-for-restructuredtext-data
    long_description_content_type="text/x-rst",
    packages=setuptools.find_packages(where='src'),
    package_dir={'': 'src'},
    include_package_data=True,
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: POSIX :: Linux',
        'Operating System :: MacOS :: MacOS X',
        'Operating System :: Microsoft :: Windows',
    ],
    install_requires=[
        'colorama',
    ],
    extras_require={
        'test': ['pytest'],
    },
    python_requires='>=3.8',
    entry_points={'console_scripts': (
        'manifest-tool = manifest_tool.app.main:main',)},
)
