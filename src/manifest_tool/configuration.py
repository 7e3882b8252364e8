# Copyright (c) 2024, The manifest-tool Contributors
#
# SPDX-License-Identifier: Apache-2.0

'''manifest-tool configuration file handling.

There is one configuration file, ``config.env``, which applies to the
current user. It lives in the platform's per-user configuration
directory, inside a ``manifest-tool`` directory:

- Linux: ``$XDG_CONFIG_HOME/manifest-tool/config.env``, or
  ``~/.config/manifest-tool/config.env`` if ``XDG_CONFIG_HOME`` is unset
- macOS: ``~/Library/Application Support/manifest-tool/config.env``
- Windows: ``%APPDATA%\\manifest-tool\\config.env``

You can override the file's location with the ``MANIFEST_TOOL_CONFIG``
environment variable.

The file contains one ``key=value`` pair per line, with no quoting and
no comments. It may contain ``${remote_name}`` placeholders, which are
substituted separately for every remote before the file is parsed (see
manifest_tool.overlay). Recognized keys are ``fetch_url``, ``push_url``,
``review_url`` and ``review_protocol``; command line options take
precedence over values from this file.
'''

import logging
import os
from pathlib import Path
import platform
from typing import Dict, Optional

from manifest_tool.util import PathType

_logger = logging.getLogger(__name__)

#: Directory inside the per-user configuration directory which holds
#: this program's files.
APP_NAMESPACE = 'manifest-tool'

#: Name of the configuration file inside APP_NAMESPACE.
CONFIG_FILE_NAME = 'config.env'

#: Keys which have a meaning when resolving a remote.
CONFIG_KEYS = ('push_url', 'fetch_url', 'review_url', 'review_protocol')

class MalformedConfig(Exception):
    '''The configuration was malformed in a way that made resolving a
    remote fail.
    '''

def config_dir() -> Optional[str]:
    '''The platform's per-user configuration directory, or None if it
    cannot be determined.
    '''
    # Making this a function that gets called each time makes it
    # respect updated environment variables (such as XDG_CONFIG_HOME
    # and APPDATA) if they're set during the program lifetime, which
    # the test cases rely on.
    env = os.environ
    plat = platform.system()

    if plat == 'Windows':
        appdata = env.get('APPDATA')
        return appdata or None

    if plat == 'Darwin':
        return os.fspath(Path.home() / 'Library' / 'Application Support')

    if env.get('XDG_CONFIG_HOME'):
        return env['XDG_CONFIG_HOME']

    try:
        return os.fspath(Path.home() / '.config')
    except RuntimeError:
        # Path.home() raises this if the home directory is unknown.
        return None

def config_path() -> Optional[str]:
    '''Path to the configuration file, which need not exist.

    This is ``MANIFEST_TOOL_CONFIG`` if it is set in the environment,
    otherwise ``config.env`` inside the ``manifest-tool`` directory of
    config_dir(). None is returned if neither can be determined.
    '''
    if 'MANIFEST_TOOL_CONFIG' in os.environ:
        return os.environ['MANIFEST_TOOL_CONFIG']

    base = config_dir()
    if base is None:
        return None
    return os.fspath(Path(base) / APP_NAMESPACE / CONFIG_FILE_NAME)

def read_config(path: Optional[PathType] = None) -> str:
    '''Read the raw contents of the configuration file.

    The configuration is read once, when the program starts, and the
    resulting string is passed explicitly to the code that needs it.
    A missing file reads as an empty configuration. A file which is
    not UTF-8 raises MalformedConfig. Other errors, like permission
    problems, propagate as OSError.

    :param path: file to read; if not given, config_path() is used
    '''
    if path is None:
        path = config_path()
    if path is None:
        _logger.debug('no configuration directory; using empty config')
        return ''

    try:
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return f.read()
    except FileNotFoundError:
        _logger.debug(f'{os.fspath(path)} not found; using empty config')
        return ''
    except UnicodeDecodeError as e:
        raise MalformedConfig(f'{os.fspath(path)}: not valid UTF-8: {e}') \
            from e

def parse_config(text: str) -> Dict[str, str]:
    '''Parse configuration text into a key to value dict.

    Each line must be a single ``key=value`` pair. The key ends at the
    first ``=``, so values may contain further ``=`` characters. Later
    lines override earlier ones with the same key.

    A line without ``=`` (including an empty line) makes the whole
    configuration invalid: MalformedConfig is raised, naming the
    offending line.

    :param text: configuration text, after variable substitution
    '''
    ret: Dict[str, str] = {}

    # Only '\n' and '\r\n' end lines. str.splitlines() would also split
    # on characters like '\x0c' or U+2028, which may appear in values.
    lines = text.split('\n')
    if lines[-1] == '':
        del lines[-1]

    for lineno, line in enumerate(lines, start=1):
        if line.endswith('\r'):
            line = line[:-1]
        key, sep, value = line.partition('=')
        if not sep:
            raise MalformedConfig(f'line {lineno}: expected "key=value", '
                                  f'got "{line}"')
        ret[key] = value

    return ret
