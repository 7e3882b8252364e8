#!/usr/bin/env python3

# Copyright (c) 2024, The manifest-tool Contributors
#
# SPDX-License-Identifier: Apache-2.0

'''manifest-tool main module

Nothing in here is public API.
'''

import argparse
import logging
import os
import sys
import tempfile
import textwrap
import traceback

import colorama

from manifest_tool import log
from manifest_tool import configuration as config
from manifest_tool.configuration import MalformedConfig
from manifest_tool.local_manifest import generate_all, manifest_files
from manifest_tool.manifest import Manifest, MalformedManifest, \
    ReviewProtocol
from manifest_tool.overlay import FetchRequired, Overrides
from manifest_tool.substitution import SubstitutionError
from manifest_tool.templating import DEFAULT_MANIFEST, STDIN, \
    read_template, render_projects
from manifest_tool.util import RepoNotFound, repo_dir, repo_topdir
from manifest_tool.version import __version__

DESCRIPTION = '''\
Generate repo local manifests which override the remotes of the
upstream manifests in .repo/manifests.

For each upstream manifest, a file of the same name is written to
.repo/local_manifests. It redefines every upstream remote using
fetch_url, push_url, review_url and review_protocol values from the
configuration file and the command line options below, which take
precedence. Values may refer to the remote being rewritten as
${remote_name}.

With --envsubst-projects, a template is instead rendered once for
every project in .repo/manifest.xml and written to standard output.
The template may use ${project_name}, ${remote_name}, ${fetch_url} and
${push_url}.
'''

EPILOG = '''\
The configuration file is config.env in the manifest-tool directory
of the per-user configuration directory (on Linux,
$XDG_CONFIG_HOME/manifest-tool/config.env). Set MANIFEST_TOOL_CONFIG
to use another file. It contains one key=value line per option, e.g.:

    fetch_url=https://mirror.example.com/${remote_name}
    push_url=ssh://review.example.com:29418
'''

class ManifestToolApp:
    # The manifest-tool 'application' object.
    #
    # Keeping run state here instead of in globals makes it possible
    # to white-box test multiple main() invocations from the same
    # Python process.

    def __init__(self):
        self.config_text = None     # configuration file contents
        self.parser = None          # an argparse.ArgumentParser
        self.args = None            # parsed argparse.Namespace

    def run(self, argv):
        # Run the command-line application with argument list 'argv'.
        self.parser = self.make_parser()
        self.args = self.parser.parse_args(args=argv)

        # Set up logging verbosity before doing anything else, so
        # verbose messages about configuration handling work properly.
        log.set_verbosity(self.args.verbose)
        setup_logging(self.args.verbose)
        log.dbg('args namespace:', self.args, level=log.VERBOSE_EXTREME)

        try:
            # Read the configuration file exactly once. Its contents
            # are passed explicitly to everything that needs them.
            self.config_text = config.read_config()

            if self.args.envsubst_projects is not None:
                self.render_projects()
            else:
                self.generate()
        except KeyboardInterrupt:
            sys.exit(0)
        except BrokenPipeError:
            sys.exit(0)
        except RepoNotFound as rnf:
            log.die(f'{rnf}; run this from inside a repo workspace')
        except MalformedManifest as mm:
            self.die_with('malformed manifest:', mm)
        except MalformedConfig as mc:
            self.die_with('malformed configuration:', mc)
        except SubstitutionError as se:
            self.die_with('substitution failed:', se)
        except FetchRequired as fr:
            self.die_with('fetch URL required:', fr)
        except OSError as ose:
            self.die_with('I/O error:', ose)
        except UnicodeDecodeError as ude:
            # A template which is not UTF-8.
            self.die_with('I/O error:', ude)

    def die_with(self, *args):
        # Print a traceback too if we're very verbose.
        if self.args.verbose >= log.VERBOSE_EXTREME:
            log.err(*args, fatal=True)
            traceback.print_exc()
            sys.exit(1)
        log.die(*args)

    def make_parser(self):
        parser = argparse.ArgumentParser(
            prog='manifest-tool',
            description=DESCRIPTION,
            epilog=EPILOG,
            formatter_class=argparse.RawDescriptionHelpFormatter)

        parser.add_argument('--push-url',
                            help='push URL for every remote')
        parser.add_argument('--fetch-url',
                            help='fetch URL for every remote')
        parser.add_argument('--review-url',
                            help='review URL for every remote')
        parser.add_argument('--review-protocol',
                            choices=[p.value for p in ReviewProtocol],
                            help='review protocol for every remote')
        parser.add_argument('--override', action='store_true',
                            help='''allow overriding duplicates; local
                            manifest remotes are always marked as
                            overrides''')
        parser.add_argument('--envsubst-projects', metavar='FILE',
                            help=f'''render FILE for all projects to
                            stdout ("{STDIN}" reads standard input)''')
        parser.add_argument('-v', '--verbose', default=0, action='count',
                            help='''Display verbose output. May be given
                            multiple times to increase verbosity.''')
        parser.add_argument('-V', '--version', action='version',
                            version=f'manifest-tool version: v{__version__}',
                            help='print the program version and exit')
        parser.add_argument('manifest_files', nargs='*', metavar='MANIFEST',
                            help='''upstream manifest files to generate
                            local manifests for (default: all files in
                            .repo/manifests); their file names must
                            be unique''')

        return parser

    def overrides(self):
        args = self.args
        return Overrides(push_url=args.push_url,
                         fetch_url=args.fetch_url,
                         review_url=args.review_url,
                         review_protocol=args.review_protocol)

    def generate(self):
        # Write local manifests.
        repodir = repo_dir()

        if self.args.manifest_files:
            sources = self.args.manifest_files
            check_unique_names(sources)
        else:
            sources = manifest_files(repodir)
        if not sources:
            log.wrn(f'no upstream manifests found in {repodir}; '
                    'nothing to do')
            return

        paths = generate_all(sources, self.config_text, self.overrides(),
                             repodir=repodir)
        for path in paths:
            log.inf(f'wrote {path}', colorize=True)

    def render_projects(self):
        # Bulk template mode. Standard output gets only the rendered
        # template text.
        template = read_template(self.args.envsubst_projects)
        manifest = Manifest.from_file(
            os.path.join(repo_topdir(), DEFAULT_MANIFEST))
        render_projects(manifest, template, sys.stdout)
        sys.stdout.flush()

def check_unique_names(sources):
    # Local manifests are named after their upstream manifest, so two
    # sources with the same file name would write the same file.
    seen = {}
    for source in sources:
        name = os.path.basename(source)
        if name in seen:
            log.die(f'{seen[name]} and {source} would both write '
                    f'local manifest {name}')
        seen[name] = source

def setup_logging(verbose):
    # Library modules log to their own loggers at DEBUG level. Show
    # those messages on stderr at high verbosity.
    logger = logging.getLogger('manifest_tool')
    if verbose >= log.VERBOSE_VERY:
        if not logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter('%(name)s: %(message)s'))
            logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.WARNING)

def dump_traceback():
    # Save the current exception to a file and return its path.
    fd, name = tempfile.mkstemp(prefix='manifest-tool-exc-', suffix='.txt')
    os.close(fd)        # traceback has no use for the fd
    with open(name, 'w') as f:
        traceback.print_exc(file=f)
    return name

def main(argv=None):
    # Makes ANSI color escapes work on Windows, and strips them when
    # stdout/stderr isn't a terminal
    colorama.init()

    app = ManifestToolApp()
    try:
        app.run(argv if argv is not None else sys.argv[1:])
    except Exception:
        # Anything not handled in ManifestToolApp.run() is a bug.
        log.die(textwrap.dedent(f'''\
        internal error; please report it.
          See {dump_traceback()} for a traceback.'''))

if __name__ == "__main__":
    main()
