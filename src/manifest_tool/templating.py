# Copyright (c) 2024, The manifest-tool Contributors
#
# SPDX-License-Identifier: Apache-2.0

'''Render a template once for every project in the default manifest.

The template is substituted with manifest_tool.substitution, using
these variables for each project:

- ``project_name``: always set
- ``remote_name``: set if the project has a remote, either its own or
  the manifest's default
- ``fetch_url``: set if that remote is defined in the manifest
- ``push_url``: set if that remote is defined and has a push URL

Referring to a variable which is not set for some project is an error,
and stops rendering at that project.
'''

import logging
import os
import sys
from typing import Dict, Mapping, Optional, TextIO

from manifest_tool.manifest import Manifest, Project, Remote
from manifest_tool.substitution import substitute
from manifest_tool.util import REPO_DIR, PathType

_logger = logging.getLogger(__name__)

#: The default manifest, relative to the workspace top directory.
DEFAULT_MANIFEST = os.path.join(REPO_DIR, 'manifest.xml')

#: Template file name meaning "read the template from standard input".
STDIN = '-'

def read_template(name: PathType, stdin: Optional[TextIO] = None) -> str:
    '''Read a whole template into memory.

    :param name: template file path, or STDIN
    :param stdin: stream to read if *name* is STDIN; sys.stdin if None
    '''
    if name == STDIN:
        return (stdin or sys.stdin).read()
    with open(name, 'r', encoding='utf-8') as f:
        return f.read()

def project_context(project: Project,
                    remotes: Mapping[str, Remote]) -> Dict[str, str]:
    '''The substitution variables for *project*.

    :param project: project, after Manifest.set_defaults()
    :param remotes: remote name to Remote mapping for the manifest
    '''
    context = {'project_name': project.name}

    if project.remote:
        context['remote_name'] = project.remote
        remote = remotes.get(project.remote)
        if remote is not None:
            context['fetch_url'] = remote.fetch
            if remote.pushurl is not None:
                context['push_url'] = remote.pushurl
        else:
            _logger.debug(f'project {project.name}: remote {project.remote} '
                          'is not defined; omitting its URLs')

    return context

def render_projects(manifest: Manifest, template: str, out: TextIO) -> None:
    '''Write *template*, substituted for each project, to *out*.

    Projects are rendered in manifest order, and each result is written
    as soon as it is ready, with nothing in between. The manifest's
    defaults are applied first.

    Raises `manifest_tool.substitution.SubstitutionError` at the first
    project the template cannot be substituted for.
    '''
    manifest.set_defaults()
    remotes = manifest.remotes_by_name()

    for project in manifest.projects:
        out.write(substitute(template, project_context(project, remotes)))
