# Copyright (c) 2024, The manifest-tool Contributors
#
# SPDX-License-Identifier: Apache-2.0

# End to end tests which run manifest-tool's main() in-process.

import io
from pathlib import Path

from conftest import cmd, cmd_raises, write_config, write_manifest

import manifest_tool.version


def local_manifest(topdir, name='default.xml'):
    return Path(topdir) / '.repo' / 'local_manifests' / name


def test_version():
    assert manifest_tool.version.__version__ in cmd('--version')


def test_help():
    out = cmd('--help')
    assert '--fetch-url' in out
    assert '--envsubst-projects' in out


def test_config_templated_push_url(repo_workspace):
    write_config('''\
    fetch_url=https://mirror.example.com/${remote_name}
    push_url=ssh://${remote_name}/push
    ''')
    out = cmd([])
    assert 'default.xml' in out
    path = local_manifest(repo_workspace)

    content = path.read_text()
    assert ('<remote name="origin" fetch="https://mirror.example.com/origin" '
            'pushurl="ssh://origin/push" override="true"/>') in content
    assert ('<remote name="vendor" fetch="https://mirror.example.com/vendor" '
            'pushurl="ssh://vendor/push" override="true"/>') in content


def test_cli_fetch_url_wins(repo_workspace):
    write_config('''\
    fetch_url=https://example.com/${remote_name}.git
    ''')
    cmd(['--fetch-url=https://override.example/x.git'])
    content = local_manifest(repo_workspace).read_text()
    assert content.count('fetch="https://override.example/x.git"') == 2
    assert 'example.com/origin.git' not in content


def test_cli_only(repo_workspace):
    cmd(['--fetch-url', 'https://mirror/${remote_name}',
         '--review-url', 'https://review/${remote_name}',
         '--review-protocol', 'gerrit', '--override'])
    content = local_manifest(repo_workspace).read_text()
    assert ('<remote name="origin" fetch="https://mirror/origin" '
            'review="https://review/origin" reviewprotocol="gerrit" '
            'override="true"/>') in content


def test_idempotent(repo_workspace):
    write_config('fetch_url=https://mirror/${remote_name}\n')
    cmd([])
    first = local_manifest(repo_workspace).read_bytes()
    cmd([])
    assert local_manifest(repo_workspace).read_bytes() == first


def test_from_subdirectory(repo_workspace):
    subdir = repo_workspace / 'apps' / 'app'
    subdir.mkdir(parents=True)
    cmd(['--fetch-url', 'https://mirror'], cwd=subdir)
    assert local_manifest(repo_workspace).is_file()


def test_explicit_manifest_files(repo_workspace):
    other = write_manifest('elsewhere/other.xml', '''\
    <manifest>
      <remote name="other" fetch="https://other.example.com" />
    </manifest>
    ''')
    cmd(['--fetch-url', 'https://mirror/${remote_name}', other])
    assert not local_manifest(repo_workspace).exists()
    content = local_manifest(repo_workspace, 'other.xml').read_text()
    assert 'fetch="https://mirror/other"' in content


def test_explicit_manifest_files_same_name(repo_workspace):
    manifest = '''\
    <manifest>
      <remote name="other" fetch="https://other.example.com" />
    </manifest>
    '''
    first = write_manifest('a/default.xml', manifest)
    second = write_manifest('b/default.xml', manifest)
    exc_info, stderr = cmd_raises(['--fetch-url', 'https://mirror',
                                   first, second], SystemExit)
    assert exc_info.value.code == 1
    assert 'would both write local manifest default.xml' in stderr
    assert not local_manifest(repo_workspace).exists()


def test_malformed_config(repo_workspace):
    write_config('''\
    fetch_url=https://example.com
    badline
    ''')
    exc_info, stderr = cmd_raises([], SystemExit)
    assert exc_info.value.code == 1
    assert 'FATAL ERROR: malformed configuration' in stderr
    assert not local_manifest(repo_workspace).exists()


def test_config_not_utf8(repo_workspace):
    write_config('').write_bytes(b'fetch_url=\xff\xfe\n')
    exc_info, stderr = cmd_raises([], SystemExit)
    assert exc_info.value.code == 1
    assert 'FATAL ERROR: malformed configuration' in stderr
    assert 'UTF-8' in stderr
    assert 'internal error' not in stderr
    assert not local_manifest(repo_workspace).exists()


def test_fetch_required(repo_workspace):
    write_config('push_url=ssh://${remote_name}/push\n')
    exc_info, stderr = cmd_raises([], SystemExit)
    assert exc_info.value.code == 1
    assert 'FATAL ERROR: fetch URL required' in stderr
    assert 'origin' in stderr
    assert not local_manifest(repo_workspace).exists()


def test_substitution_error(repo_workspace):
    exc_info, stderr = cmd_raises(['--fetch-url', '${project_name}'],
                                  SystemExit)
    assert exc_info.value.code == 1
    assert 'FATAL ERROR: substitution failed' in stderr
    assert 'project_name' in stderr


def test_malformed_manifest(repo_workspace):
    write_manifest('.repo/manifests/default.xml', '<manifest>')
    exc_info, stderr = cmd_raises(['--fetch-url', 'f'], SystemExit)
    assert exc_info.value.code == 1
    assert 'FATAL ERROR: malformed manifest' in stderr


def test_bad_review_protocol_option(repo_workspace):
    # argparse rejects it before anything else happens.
    exc_info, _ = cmd_raises(['--fetch-url', 'f', '--review-protocol', 'x'],
                             SystemExit)
    assert exc_info.value.code == 2


def test_not_in_workspace():
    exc_info, stderr = cmd_raises(['--fetch-url', 'f'], SystemExit)
    assert exc_info.value.code == 1
    assert 'repo workspace' in stderr


def test_no_manifests(repo_workspace):
    (repo_workspace / '.repo' / 'manifests' / 'default.xml').unlink()
    stderr = io.StringIO()
    cmd(['--fetch-url', 'f'], stderr=stderr)
    assert 'nothing to do' in stderr.getvalue()


def test_envsubst_projects_file(repo_workspace, tmp_path):
    template = tmp_path / 'template.txt'
    template.write_text('project=${project_name} remote=${remote_name}\n')
    stderr = io.StringIO()
    out = cmd(['--envsubst-projects', template], stderr=stderr)
    assert out == ('project=app remote=origin\n'
                   'project=lib remote=vendor\n')
    # Bulk mode never writes local manifests.
    assert not local_manifest(repo_workspace).exists()


def test_envsubst_projects_stdin(repo_workspace):
    write_manifest('.repo/manifest.xml', '''\
    <manifest>
      <remote name="origin" fetch="https://example.com" />
      <project name="app" remote="origin" />
    </manifest>
    ''')
    out = cmd(['--envsubst-projects', '-'],
              stdin='project=${project_name} remote=${remote_name}\n')
    assert out == 'project=app remote=origin\n'


def test_envsubst_projects_unknown_variable(repo_workspace):
    exc_info, stderr = cmd_raises(['--envsubst-projects', '-'], SystemExit,
                                  stdin='${push_url}\n')
    assert exc_info.value.code == 1
    assert 'FATAL ERROR: substitution failed' in stderr
    assert 'push_url' in stderr


def test_envsubst_projects_missing_template(repo_workspace):
    exc_info, stderr = cmd_raises(['--envsubst-projects', 'nope.txt'],
                                  SystemExit)
    assert exc_info.value.code == 1
    assert 'FATAL ERROR: I/O error' in stderr


def test_envsubst_projects_template_not_utf8(repo_workspace, tmp_path):
    template = tmp_path / 'template.txt'
    template.write_bytes(b'${project_name} \xff\n')
    exc_info, stderr = cmd_raises(['--envsubst-projects', template],
                                  SystemExit)
    assert exc_info.value.code == 1
    assert 'FATAL ERROR: I/O error' in stderr
    assert 'internal error' not in stderr
