# Copyright (c) 2024, The manifest-tool Contributors
#
# SPDX-License-Identifier: Apache-2.0

'''Resolve a remote's effective connection parameters.

Values come from two layers, in increasing precedence order:

1. the configuration file (see manifest_tool.configuration), after
   substituting the remote's variables into its text
2. command line overrides, after the same substitution

A key set in both layers takes the command line value. The only
variable available in either layer is ``remote_name``.

Resolution is a pure function of its inputs. Nothing is shared
between remotes, so resolving one remote never affects another.
'''

import logging
from typing import Dict, List, NamedTuple, Optional

from manifest_tool.configuration import MalformedConfig, parse_config
from manifest_tool.manifest import Manifest, Remote, ReviewProtocol
from manifest_tool.substitution import substitute

_logger = logging.getLogger(__name__)

class FetchRequired(Exception):
    '''A remote resolved without a fetch URL.

    Attributes:

    - ``remote``: name of the remote
    '''

    def __init__(self, remote: str):
        super().__init__(remote)
        self.remote = remote

    def __str__(self):
        return (f'remote "{self.remote}" has no fetch_url; set it in the '
                'configuration file or with --fetch-url')

class Overrides(NamedTuple):
    '''Values given on the command line, before substitution.

    None means "not given"; the configuration file value (if any)
    is used for that key instead.
    '''

    push_url: Optional[str] = None
    fetch_url: Optional[str] = None
    review_url: Optional[str] = None
    review_protocol: Optional[str] = None

def remote_context(name: str) -> Dict[str, str]:
    '''The substitution variables for the remote named *name*.'''
    return {'remote_name': name}

def resolve(name: str, config_text: str,
            overrides: Overrides = Overrides()) -> Dict[str, str]:
    '''Merge the configuration layers for the remote named *name*.

    Returns a dict of every key set in the configuration file or in
    *overrides*, with command line values replacing file values.

    Exceptions raised:

        - `manifest_tool.substitution.SubstitutionError` if either
          layer refers to an unknown variable

        - `manifest_tool.configuration.MalformedConfig` if the
          substituted configuration text has a line without ``=``

    :param name: remote name
    :param config_text: raw configuration file contents
    :param overrides: command line values
    '''
    context = remote_context(name)
    config = parse_config(substitute(config_text, context))

    for key, value in overrides._asdict().items():
        if value is None:
            continue
        if key in config:
            _logger.debug(f'{name}: command line {key} overrides '
                          'configuration file')
        config[key] = substitute(value, context)

    return config

def resolve_remote(remote: Remote, config_text: str,
                   overrides: Overrides = Overrides()) -> Remote:
    '''Build the local override for *remote*.

    The result has the same name as *remote*, connection parameters
    from resolve(), and is marked as an override. Other attributes of
    *remote* are not carried over.

    Raises `FetchRequired` if no non-empty ``fetch_url`` was resolved,
    `MalformedConfig` for an unknown ``review_protocol``, and anything
    resolve() raises.
    '''
    config = resolve(remote.name, config_text, overrides)

    fetch = config.get('fetch_url')
    if not fetch:
        raise FetchRequired(remote.name)

    protocol = config.get('review_protocol')
    if protocol is not None:
        try:
            review_protocol: Optional[ReviewProtocol] = \
                ReviewProtocol.parse(protocol)
        except ValueError as e:
            raise MalformedConfig(f'remote "{remote.name}": {e}') from e
    else:
        review_protocol = None

    return Remote(name=remote.name,
                  fetch=fetch,
                  pushurl=config.get('push_url') or None,
                  review=config.get('review_url') or None,
                  review_protocol=review_protocol,
                  override=True)

def resolve_remotes(manifest: Manifest, config_text: str,
                    overrides: Overrides = Overrides()) -> List[Remote]:
    '''Call resolve_remote() on each of *manifest*'s remotes in order.

    The first failure propagates, so either every remote resolves or
    none are returned.
    '''
    return [resolve_remote(remote, config_text, overrides)
            for remote in manifest.remotes]
