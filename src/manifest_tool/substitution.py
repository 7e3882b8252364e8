# Copyright (c) 2024, The manifest-tool Contributors
#
# SPDX-License-Identifier: Apache-2.0

'''Variable substitution for configuration text and templates.

Placeholders use shell syntax: ``${name}`` or ``$name``, with ``$$``
standing for a literal ``$``. Every placeholder must name a variable
in the context; there is no fallback to the process environment and
no blanking of unknown variables.

Substitution is all or nothing. Either the whole input is returned
with every placeholder replaced, or SubstitutionError is raised.
'''

import logging
from string import Template
from typing import Mapping, Optional

from manifest_tool.util import PathType

_logger = logging.getLogger(__name__)

class SubstitutionError(Exception):
    '''A template could not be substituted.

    Attributes:

    - ``variable``: the name of the missing variable, or None if the
      template contained malformed placeholder syntax
    '''

    def __init__(self, message: str, variable: Optional[str] = None):
        super().__init__(message)
        self.variable = variable

class _Template(Template):
    # Keep Template's syntax, but make the variable names case
    # sensitive ASCII identifiers, like shell variables.
    flags = 0
    idpattern = r'(?a:[_a-zA-Z][_a-zA-Z0-9]*)'

def substitute(template: str, context: Mapping[str, str]) -> str:
    '''Replace every placeholder in *template* with its value in *context*.

    :param template: text containing ``${name}`` placeholders
    :param context: variable name to value mapping
    '''
    try:
        ret = _Template(template).substitute(context)
    except KeyError as e:
        variable = e.args[0]
        known = ', '.join(sorted(context)) or 'none'
        raise SubstitutionError(f'undefined variable "{variable}" '
                                f'(defined: {known})',
                                variable=variable) from e
    except ValueError as e:
        # Template reports the line and column of the bad placeholder.
        raise SubstitutionError(f'malformed placeholder: {e}') from e

    _logger.debug(f'substituted {len(context)} variable(s)')
    return ret

def substitute_file(path: PathType, context: Mapping[str, str]) -> str:
    '''Like substitute(), for the entire contents of the file at *path*.

    OSError is raised if the file cannot be read.
    '''
    with open(path, 'r', encoding='utf-8') as f:
        template = f.read()
    try:
        return substitute(template, context)
    except SubstitutionError as se:
        raise SubstitutionError(f'{path}: {se}', variable=se.variable) \
            from se
