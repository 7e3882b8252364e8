# Copyright (c) 2024, The manifest-tool Contributors
#
# SPDX-License-Identifier: Apache-2.0

import contextlib
import io
import os
from pathlib import Path
import sys
import textwrap

import pytest

from manifest_tool.app import main

# If you change this, keep the docstring in repo_workspace() updated also.
MANIFEST_TEMPLATE = '''\
<?xml version="1.0" encoding="UTF-8"?>
<manifest>
  <remote name="origin" fetch="https://upstream.example.com/origin"
          review="https://review.example.com" />
  <remote name="vendor" fetch="https://vendor.example.com"
          pushurl="ssh://vendor.example.com/push" />
  <default remote="origin" revision="main" />
  <project name="app" path="apps/app" />
  <project name="lib" remote="vendor" revision="v1.0" />
</manifest>
'''

#
# Contextmanagers
#


@contextlib.contextmanager
def update_env(env):
    """
    Temporarily update the process environment variables.
    This context manager updates `os.environ` with the key-value pairs
    provided in the `env` dictionary for the duration of the `with` block.
    The existing environment is preserved and fully restored when the block
    exits. If the value is set to None, the environment variable is unset.
    """
    env_bak = dict(os.environ)
    env_vars = {}
    for k, v in env.items():
        # unset if value is None
        if v is None and k in os.environ:
            del os.environ[k]
        # set env variable to new value only if v is not None
        elif v is not None:
            env_vars[k] = v
    # apply the new environment
    os.environ.update(env_vars)
    try:
        yield
    finally:
        # reset to previous environment
        os.environ.clear()
        os.environ.update(env_bak)


@contextlib.contextmanager
def chdir(path):
    """
    Temporarily change the current working directory.
    """
    oldpwd = os.getcwd()
    os.chdir(path)
    try:
        yield
    finally:
        os.chdir(oldpwd)


#
# Test fixtures
#


@pytest.fixture(autouse=True)
def setup_teardown_test_environment(tmp_path_factory):
    """
    The fixture ensures an isolated test environment.

    It creates a new temporary directory which is used as working directory.
    This ensures a clean start for each test and prevents tests from affecting
    another one through changes to the working directory.

    The fixture ensures that the user's actual configuration file is neither
    used nor touched during test, as MANIFEST_TOOL_CONFIG is set to a file
    in a temporary directory. The file is not created; tests that need
    configuration write it with write_config().
    """
    configs = tmp_path_factory.mktemp('test-configs')
    tmp_cwd = tmp_path_factory.mktemp('tmp-cwd')

    with chdir(tmp_cwd), update_env({
            'MANIFEST_TOOL_CONFIG': str(configs / 'config.env'),
            'NO_COLOR': '1',
    }):
        yield


@pytest.fixture
def repo_workspace(tmp_path):
    """
    Fixture for a skeletal repo workspace in a temporary directory.

    Switches directory to, and returns, the workspace's top level
    directory, which contains:

    .repo/
    ├── manifest.xml      (MANIFEST_TEMPLATE)
    └── manifests/
        └── default.xml   (MANIFEST_TEMPLATE)

    MANIFEST_TEMPLATE has remotes "origin" and "vendor", defaults
    remote="origin" revision="main", and projects "app" (default
    remote) and "lib" (remote "vendor").
    """
    topdir = tmp_path / 'workspace'
    manifests = topdir / '.repo' / 'manifests'
    manifests.mkdir(parents=True)
    (manifests / 'default.xml').write_text(MANIFEST_TEMPLATE)
    (topdir / '.repo' / 'manifest.xml').write_text(MANIFEST_TEMPLATE)

    with chdir(topdir):
        yield topdir


#
# Helper functions
#


def write_config(content):
    # Write the configuration file MANIFEST_TOOL_CONFIG points at.
    path = Path(os.environ['MANIFEST_TOOL_CONFIG'])
    path.write_text(textwrap.dedent(content))
    return path


def write_manifest(path, content):
    # Write a manifest file, creating parent directories.
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content))
    return path


def _cmd(cmd, cwd=None, env=None):
    # Executes manifest-tool by invoking the `main()` function with the
    # provided command arguments.

    # ensure that cmd is a list of strings
    cmd = cmd.split() if isinstance(cmd, str) else cmd
    cmd = [str(c) for c in cmd]

    with chdir(cwd or Path.cwd()), update_env(env or {}):
        try:
            main.main(cmd)
        except SystemExit as e:
            if e.code:
                raise e


def cmd(cmd, cwd=None, stderr=None, env=None, stdin=None):
    # Same as _cmd(), but it captures and returns combined stdout and
    # stderr. Optionally stderr can be captured separately into given
    # stderr, and stdin can be replaced by a string.
    stdout_buf = io.StringIO()
    stderr_buf = stderr or stdout_buf
    with contextlib.redirect_stdout(stdout_buf), \
            contextlib.redirect_stderr(stderr_buf), \
            _replace_stdin(stdin):
        _cmd(cmd, cwd, env)
    return stdout_buf.getvalue()


def cmd_raises(cmd, expected_exception_type, stdout=None, cwd=None, env=None,
               stdin=None):
    # Similar to '_cmd' but an expected exception is caught.
    # The exception is returned together with stderr.
    # Optionally stdout is captured into given stdout (io.StringIO), and
    # stdin can be replaced by a string.
    stdout_buf = stdout or io.StringIO()
    stderr_buf = io.StringIO()
    with contextlib.redirect_stdout(stdout_buf), \
            contextlib.redirect_stderr(stderr_buf), \
            _replace_stdin(stdin), \
            pytest.raises(expected_exception_type) as exc_info:
        _cmd(cmd, cwd=cwd, env=env)
    return exc_info, stderr_buf.getvalue()


@contextlib.contextmanager
def _replace_stdin(content):
    if content is None:
        yield
        return
    old = sys.stdin
    sys.stdin = io.StringIO(content)
    try:
        yield
    finally:
        sys.stdin = old
