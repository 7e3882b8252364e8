# Copyright (c) 2024, The manifest-tool Contributors
#
# SPDX-License-Identifier: Apache-2.0

'''Generate local manifests which override upstream remotes.

For every upstream manifest file in ``.repo/manifests``, a file of the
same name is written to ``.repo/local_manifests``. It contains one
``<remote>`` element per upstream remote, in the same order, with the
connection parameters from manifest_tool.overlay and
``override="true"``. It has no projects or defaults, so repo layers it
on top of the upstream manifest as a pure override.

A local manifest is rendered in memory before anything is written, so
a failure never leaves a partial file behind. Processing stops at the
first failure; local manifests already written for earlier files in
the same run are kept.
'''

import logging
import os
from pathlib import Path
from typing import Iterable, List

from manifest_tool.manifest import Manifest
from manifest_tool.overlay import Overrides, resolve_remotes
from manifest_tool.util import REPO_DIR, PathType, is_xml

_logger = logging.getLogger(__name__)

#: Directory inside .repo containing the upstream manifest repository.
MANIFESTS_DIR = 'manifests'

#: Directory inside .repo which repo reads local manifests from.
LOCAL_MANIFESTS_DIR = 'local_manifests'

def manifest_files(repodir: PathType) -> List[str]:
    '''Upstream manifest files in *repodir*, sorted by name.

    These are the regular files with an ``.xml`` suffix directly inside
    ``<repodir>/manifests``. If that directory does not exist, the
    result is empty.

    :param repodir: path to a workspace's .repo directory
    '''
    manifests = Path(repodir) / MANIFESTS_DIR
    if not manifests.is_dir():
        _logger.debug(f'{manifests} is not a directory')
        return []

    return sorted(os.fspath(p) for p in manifests.iterdir()
                  if p.is_file() and is_xml(p))

def local_manifest_path(source: PathType, repodir: PathType) -> str:
    '''Output path of the local manifest for the upstream *source*.'''
    return os.fspath(Path(repodir) / LOCAL_MANIFESTS_DIR /
                     os.path.basename(source))

def local_manifest(manifest: Manifest, config_text: str,
                   overrides: Overrides = Overrides()) -> Manifest:
    '''Build the local manifest for the upstream *manifest*.

    The result contains only rewritten remotes. Exceptions from
    manifest_tool.overlay.resolve_remotes() propagate.
    '''
    return Manifest(remotes=resolve_remotes(manifest, config_text,
                                            overrides))

def generate(source: PathType, config_text: str,
             overrides: Overrides = Overrides(),
             repodir: PathType = REPO_DIR) -> str:
    '''Write the local manifest for the upstream manifest file *source*.

    Returns the path of the file written. The local manifests directory
    is created if needed. Running this again with the same inputs
    writes the same bytes.

    :param source: upstream manifest file
    :param config_text: raw configuration file contents
    :param overrides: command line values
    :param repodir: path to the workspace's .repo directory
    '''
    _logger.debug(f'generating local manifest for {os.fspath(source)}')

    upstream = Manifest.from_file(source)
    content = local_manifest(upstream, config_text, overrides).as_xml()

    path = local_manifest_path(source, repodir)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8', newline='\n') as f:
        f.write(content)

    return path

def generate_all(sources: Iterable[PathType], config_text: str,
                 overrides: Overrides = Overrides(),
                 repodir: PathType = REPO_DIR) -> List[str]:
    '''Call generate() for each of *sources*, in order.

    Returns the paths written. The first exception propagates, and
    the remaining sources are not processed.
    '''
    return [generate(source, config_text, overrides, repodir)
            for source in sources]
