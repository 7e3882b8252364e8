# Copyright (c) 2024, The manifest-tool Contributors
#
# SPDX-License-Identifier: Apache-2.0

'''Miscellaneous utilities.
'''

import os
import pathlib
from typing import Optional, Union

# Type for paths accepted by functions in this package.
PathType = Union[str, os.PathLike]

#: Name of the directory at the top of a repo workspace which holds
#: the manifest repository, the default manifest and local manifests.
REPO_DIR = '.repo'

def canon_path(path: PathType) -> str:
    '''Returns a canonical version of the path.

    This is currently ``os.path.normcase(os.path.abspath(path))``. The
    path separator is converted to os.sep on platforms where that
    matters (Windows).

    :param path: path whose canonical name to return; need not
                 refer to an existing file.
    '''
    return os.path.normcase(os.path.abspath(path))

class RepoNotFound(RuntimeError):
    '''Neither the current directory nor any parent has a repo workspace.'''

def repo_dir(start: Optional[PathType] = None) -> str:
    '''Returns the absolute path of the workspace's .repo directory.

    Starts the search from the start directory, and goes to its
    parents. If the start directory is not specified, the current
    directory is used.

    Raises RepoNotFound if no .repo directory is found.
    '''
    return os.path.join(repo_topdir(start), REPO_DIR)

def repo_topdir(start: Optional[PathType] = None) -> str:
    '''
    Like repo_dir(), but returns the path to the parent directory of the
    .repo/ directory instead, where project repositories are checked out.
    '''
    cur_dir = canon_path(start or os.getcwd())

    while True:
        if os.path.isdir(os.path.join(cur_dir, REPO_DIR)):
            return cur_dir

        parent_dir = os.path.dirname(cur_dir)
        if cur_dir == parent_dir:
            raise RepoNotFound('Could not find a repo workspace '
                               'in this or any parent directory')
        cur_dir = parent_dir

def is_xml(path: PathType) -> bool:
    '''True if and only if *path* names a file with an .xml suffix.'''
    return pathlib.Path(path).suffix == '.xml'
