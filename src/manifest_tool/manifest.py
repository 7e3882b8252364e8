# Copyright (c) 2024, The manifest-tool Contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
Parser and abstract data types for repo XML manifests.

Only the parts of the manifest format needed to rewrite remotes are
modeled: ``<remote>``, ``<default>`` and ``<project>`` elements. Other
elements, like ``<include>`` or ``<notice>``, are ignored when parsing
and never written.
'''

import enum
import io
import logging
import os
from typing import Dict, Iterable, List, NamedTuple, Optional
import xml.dom.minidom
import xml.parsers.expat

from manifest_tool.util import PathType

_logger = logging.getLogger(__name__)

#
# Exception types
#

class MalformedManifest(Exception):
    '''Manifest parsing failed due to invalid data.
    '''

#
# Data types
#

class ReviewProtocol(enum.Enum):
    '''Code review protocols a remote's review server may speak.

    This is a closed set: parse() rejects anything else, so typos in
    configuration files are caught before any file is written.
    '''

    GERRIT = 'gerrit'
    AGIT = 'agit'

    @classmethod
    def parse(cls, text: str) -> 'ReviewProtocol':
        '''Convert manifest or configuration text to a ReviewProtocol.

        Raises ValueError if *text* is not the value of a member.
        '''
        try:
            return cls(text)
        except ValueError:
            choices = ', '.join(p.value for p in cls)
            raise ValueError(f'invalid review protocol "{text}"; '
                             f'must be one of: {choices}') from None

    def __str__(self):
        return self.value

class Remote(NamedTuple):
    '''Represents a remote defined in a manifest.

    Remotes are never modified in place. To rewrite one, build a new
    value, e.g. with ``remote._replace(fetch=...)``.
    '''

    #: Remote name, unique within a manifest.
    name: str

    #: Fetch URL. Always set for remotes parsed from a file.
    fetch: str

    #: Push URL, if different from the fetch URL.
    pushurl: Optional[str] = None

    #: Code review server URL.
    review: Optional[str] = None

    #: Protocol spoken by the review server.
    review_protocol: Optional[ReviewProtocol] = None

    #: Name the remote is given in project checkouts, if not *name*.
    alias: Optional[str] = None

    #: Default revision for projects using this remote.
    revision: Optional[str] = None

    #: True if this remote replaces an upstream remote of the same name.
    override: Optional[bool] = None

class Project(NamedTuple):
    '''Represents a project defined in a manifest.'''

    #: Project name, relative to its remote's fetch URL.
    name: str

    #: Remote name, or None to use the manifest's default remote.
    remote: Optional[str] = None

    #: Revision to check out, or None to use the default revision.
    revision: Optional[str] = None

    #: Checkout path relative to the workspace, or None for *name*.
    path: Optional[str] = None

class Defaults(NamedTuple):
    '''The contents of a manifest's ``<default>`` element.'''

    remote: Optional[str] = None
    revision: Optional[str] = None

#
# XML helpers
#

def _att(node, name: str) -> Optional[str]:
    # Read an optional attribute. minidom returns '' for a missing
    # attribute, which we treat the same as an empty one.
    return node.getAttribute(name) or None

def _reqatt(node, name: str, where: str) -> str:
    value = node.getAttribute(name)
    if not value:
        raise MalformedManifest(f'no {name} in <{node.nodeName}> '
                                f'within {where}')
    return value

def _bool(value: Optional[str], name: str, where: str) -> Optional[bool]:
    if value is None:
        return None
    lower = value.lower()
    if lower in ('true', 'yes', '1'):
        return True
    if lower in ('false', 'no', '0'):
        return False
    raise MalformedManifest(f'{where}: invalid boolean "{value}" '
                            f'for attribute {name}')

#
# The main Manifest class
#

class Manifest:
    '''The parsed contents of a repo manifest file.
    '''

    @staticmethod
    def from_file(source_file: PathType) -> 'Manifest':
        '''Manifest object factory given a source XML file.

        Exceptions raised:

            - ``OSError`` if the file cannot be read

            - `MalformedManifest` if the file contains invalid data

        :param source_file: XML file to load
        '''
        with open(source_file, 'rb') as f:
            data = f.read()
        return Manifest(_parse(data, os.fspath(source_file)),
                        path=os.path.abspath(source_file))

    @staticmethod
    def from_data(source_data: str) -> 'Manifest':
        '''Manifest object factory given XML manifest data as a string.

        Raises `MalformedManifest` if the data are invalid.
        '''
        return Manifest(_parse(source_data.encode('utf-8'), '<data>'))

    def __init__(self, parsed: Optional['_Parsed'] = None,
                 remotes: Optional[Iterable[Remote]] = None,
                 projects: Optional[Iterable[Project]] = None,
                 defaults: Optional[Defaults] = None,
                 path: Optional[str] = None):
        '''
        Using `from_file` or `from_data` is usually easier than
        passing *parsed* directly. Manifests built from *remotes*,
        *projects* and *defaults* are how local manifests are made.

        Instance attributes:

            - ``remotes``: list of `Remote`, in file order

            - ``projects``: list of `Project`, in file order

            - ``defaults``: the `Defaults`

            - ``path``: path to the manifest file itself, or None

        Raises ValueError if *parsed* is given together with any of
        *remotes*, *projects* or *defaults*, and `MalformedManifest`
        if two remotes share a name.
        '''
        if parsed is not None:
            if remotes is not None or projects is not None or \
               defaults is not None:
                raise ValueError('parsed data and explicit contents '
                                 'were both given')
            remotes, projects, defaults = parsed

        self.remotes: List[Remote] = list(remotes or [])
        self.projects: List[Project] = list(projects or [])
        self.defaults: Defaults = defaults or Defaults()
        self.path: Optional[str] = path

        self._remotes_by_name: Dict[str, Remote] = {}
        for remote in self.remotes:
            if remote.name in self._remotes_by_name:
                raise MalformedManifest(
                    f'{path or "manifest"}: duplicate remote "{remote.name}"')
            self._remotes_by_name[remote.name] = remote

    def __repr__(self):
        return (f'Manifest(remotes={self.remotes!r}, '
                f'projects={self.projects!r}, defaults={self.defaults!r}, '
                f'path={self.path!r})')

    def get_remote(self, name: str) -> Optional[Remote]:
        '''Get the remote named *name*, or None if there is none.'''
        return self._remotes_by_name.get(name)

    def remotes_by_name(self) -> Dict[str, Remote]:
        '''A new dict mapping each remote's name to the remote.'''
        return dict(self._remotes_by_name)

    def set_defaults(self) -> None:
        '''Fill in missing project fields from the manifest's defaults.

        Each project without a remote or revision is replaced by a copy
        with the value from the ``<default>`` element, if there is one.
        Projects are replaced, not modified.
        '''
        default_remote, default_revision = self.defaults
        self.projects = [
            project._replace(remote=project.remote or default_remote,
                             revision=project.revision or default_revision)
            for project in self.projects]

    def as_xml(self) -> str:
        '''Serialize the manifest as a string of XML.

        Elements are indented with tabs, one per line, in the order
        remotes, default, projects. The output depends only on the
        manifest's contents.
        '''
        doc = xml.dom.minidom.Document()
        root = doc.createElement('manifest')
        doc.appendChild(root)

        for remote in self.remotes:
            _remote_to_xml(remote, doc, root)

        if self.defaults != Defaults():
            e = doc.createElement('default')
            root.appendChild(e)
            if self.defaults.remote is not None:
                e.setAttribute('remote', self.defaults.remote)
            if self.defaults.revision is not None:
                e.setAttribute('revision', self.defaults.revision)

        for project in self.projects:
            _project_to_xml(project, doc, root)

        with io.StringIO() as sio:
            doc.writexml(sio, '', '\t', '\n', 'UTF-8')
            return sio.getvalue()

# What _parse() returns: remotes, projects, defaults.
class _Parsed(NamedTuple):
    remotes: List[Remote]
    projects: List[Project]
    defaults: Defaults

def _parse(data: bytes, where: str) -> _Parsed:
    try:
        root = xml.dom.minidom.parseString(data)
    except xml.parsers.expat.ExpatError as e:
        raise MalformedManifest(f'error parsing manifest {where}: {e}') \
            from e

    for manifest in root.childNodes:
        if manifest.nodeName == 'manifest':
            break
    else:
        raise MalformedManifest(f'no <manifest> in {where}')

    remotes = []
    projects = []
    defaults = Defaults()
    have_default = False

    for node in manifest.childNodes:
        if node.nodeName == 'remote':
            remotes.append(_parse_remote(node, where))
        elif node.nodeName == 'project':
            projects.append(Project(name=_reqatt(node, 'name', where),
                                    remote=_att(node, 'remote'),
                                    revision=_att(node, 'revision'),
                                    path=_att(node, 'path')))
        elif node.nodeName == 'default':
            if have_default:
                raise MalformedManifest(f'duplicate <default> in {where}')
            have_default = True
            defaults = Defaults(remote=_att(node, 'remote'),
                                revision=_att(node, 'revision'))
        elif node.nodeType == node.ELEMENT_NODE:
            _logger.debug(f'{where}: ignoring <{node.nodeName}>')

    _logger.debug(f'{where}: {len(remotes)} remote(s), '
                  f'{len(projects)} project(s)')
    return _Parsed(remotes, projects, defaults)

def _parse_remote(node, where: str) -> Remote:
    # Reads a <remote> element.
    protocol = _att(node, 'reviewprotocol')
    if protocol is not None:
        try:
            review_protocol: Optional[ReviewProtocol] = \
                ReviewProtocol.parse(protocol)
        except ValueError as e:
            raise MalformedManifest(f'{where}: {e}') from e
    else:
        review_protocol = None

    return Remote(name=_reqatt(node, 'name', where),
                  fetch=_reqatt(node, 'fetch', where),
                  pushurl=_att(node, 'pushurl'),
                  review=_att(node, 'review'),
                  review_protocol=review_protocol,
                  alias=_att(node, 'alias'),
                  revision=_att(node, 'revision'),
                  override=_bool(_att(node, 'override'), 'override', where))

def _remote_to_xml(remote: Remote, doc, root) -> None:
    e = doc.createElement('remote')
    root.appendChild(e)
    e.setAttribute('name', remote.name)
    if remote.alias is not None:
        e.setAttribute('alias', remote.alias)
    e.setAttribute('fetch', remote.fetch)
    if remote.pushurl is not None:
        e.setAttribute('pushurl', remote.pushurl)
    if remote.review is not None:
        e.setAttribute('review', remote.review)
    if remote.review_protocol is not None:
        e.setAttribute('reviewprotocol', remote.review_protocol.value)
    if remote.revision is not None:
        e.setAttribute('revision', remote.revision)
    if remote.override is not None:
        e.setAttribute('override', 'true' if remote.override else 'false')

def _project_to_xml(project: Project, doc, root) -> None:
    e = doc.createElement('project')
    root.appendChild(e)
    e.setAttribute('name', project.name)
    if project.path is not None:
        e.setAttribute('path', project.path)
    if project.remote is not None:
        e.setAttribute('remote', project.remote)
    if project.revision is not None:
        e.setAttribute('revision', project.revision)
