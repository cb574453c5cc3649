"""
Command-line interface for Git Versioner.

Parses the command, builds the configuration, queries git once per target
directory and hands the resulting VersionRecord to the writers and
notifiers.
"""

import argparse
import os
import sys
from enum import IntEnum
from typing import Callable, Dict, Optional, Sequence

from loguru import logger

from . import __version__
from .config import Config, VALID_LOG_LEVELS, load_config
from .logging_config import create_console, setup_logging
from .notifiers import notify_appveyor, notify_teamcity
from .process import GitRunner
from .substitution import SUPPORTED_TOKENS, export_environment, format_version
from .version_info import get_version_info
from .writers import auto_update_assembly_info, restore_backup, update_project_files, write_info


class ExitCode(IntEnum):
    OK = 0
    ERROR = 1
    USAGE = 2
    GIT_NOT_FOUND = 3
    FILE_NOT_FOUND = 4


EPILOG = (
    'Supported replacement strings (case sensitive): '
    + ' '.join(SUPPORTED_TOKENS)
    + '. Use --version semver for major.minor.revision-branch+commit '
    '(the -master branch suffix is dropped).'
)


def _add_global_options(parser: argparse.ArgumentParser, default) -> None:
    """Options accepted both before and after the command name."""
    parser.add_argument('--no-utf', '--no-utf8', dest='no_utf8', action='store_true', default=default,
                        help='Read and write files as ASCII instead of UTF-8')
    parser.add_argument('--log-level', choices=VALID_LOG_LEVELS + [level.lower() for level in VALID_LOG_LEVELS],
                        default=default, help='Logging level (default: INFO)')
    parser.add_argument('--git-path', default=default, help='Path to the git executable (default: search PATH)')
    parser.add_argument('--timeout', type=float, default=default,
                        help='Seconds to wait for each git call before killing it (default: 1)')
    parser.add_argument('--work-dir', default=default,
                        help='Repository directory for print/project/build commands (default: current directory)')


def _add_file_arguments(parser: argparse.ArgumentParser, help_text: str) -> None:
    parser.add_argument('path', nargs='?', help=help_text)
    parser.add_argument('-f', '--file', help=help_text)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all commands."""
    parser = argparse.ArgumentParser(
        prog='git-versioner',
        description='Write git version information into files and report it to CI servers',
        epilog=EPILOG,
    )
    parser.add_argument('-V', '--program-version', action='version', version=f'%(prog)s {__version__}')
    _add_global_options(parser, None)

    common = argparse.ArgumentParser(add_help=False)
    _add_global_options(common, argparse.SUPPRESS)

    subparsers = parser.add_subparsers(dest='command', metavar='command')

    write = subparsers.add_parser('write', aliases=['w'], parents=[common],
                                  help='Write version information to a file and keep a backup')
    _add_file_arguments(write, 'File to rewrite')
    write.add_argument('--no-append', dest='append', action='store_false',
                       help='Do not append an AssemblyInformationalVersion line')

    restore = subparsers.add_parser('restore', aliases=['r'], parents=[common],
                                    help='Restore a file from its .gwbackup copy')
    _add_file_arguments(restore, 'File to restore')

    auto = subparsers.add_parser('auto', aliases=['a'], parents=[common],
                                 help='Update version attributes in an AssemblyInfo file')
    _add_file_arguments(auto, 'AssemblyInfo file (default: Properties/AssemblyInfo.cs)')

    subparsers.add_parser('project', aliases=['o'], parents=[common],
                          help='Update versions in all *.csproj and *.vbproj files')

    subparsers.add_parser('print', aliases=['p'], parents=[common],
                          help='Print version information and export GV-* environment variables')

    for name, alias, target in (('build-appveyor', 'ba', 'AppVeyor'), ('build-teamcity', 'bt', 'TeamCity')):
        ci = subparsers.add_parser(name, aliases=[alias], parents=[common],
                                   help=f'Send the build version to {target}')
        ci.add_argument('-v', '--version', help='Version format with $Token$ placeholders, or "semver"')

    return parser


COMMAND_ALIASES = {
    'w': 'write',
    'r': 'restore',
    'a': 'auto',
    'o': 'project',
    'p': 'print',
    'ba': 'build-appveyor',
    'bt': 'build-teamcity',
}


def _target_file(args: argparse.Namespace) -> Optional[str]:
    return args.file or args.path


def _file_not_found(path: str) -> ExitCode:
    logger.error(f'❌ Unable to find file {path}')
    return ExitCode.FILE_NOT_FOUND


def cmd_write(args: argparse.Namespace, config: Config, git: GitRunner) -> ExitCode:
    path = _target_file(args)
    if not os.path.isfile(path):
        return _file_not_found(path)

    record = get_version_info(os.path.dirname(os.path.abspath(path)), git)
    export_environment(record)
    try:
        written = write_info(path, record, encoding=config.encoding,
                             append=args.append, errors=config.encoding_errors)
    except FileNotFoundError:
        return _file_not_found(path)

    notify_teamcity(record)
    return ExitCode.OK if written else ExitCode.ERROR


def cmd_restore(args: argparse.Namespace, config: Config, git: GitRunner) -> ExitCode:
    restore_backup(_target_file(args))
    return ExitCode.OK


def cmd_auto(args: argparse.Namespace, config: Config, git: GitRunner) -> ExitCode:
    path = _target_file(args) or os.path.join(config.work_dir, 'Properties', 'AssemblyInfo.cs')
    if not os.path.isfile(path):
        return _file_not_found(path)

    record = get_version_info(os.path.dirname(os.path.abspath(path)), git)
    try:
        written = auto_update_assembly_info(path, record, config.work_dir,
                                            encoding=config.encoding, errors=config.encoding_errors)
    except FileNotFoundError:
        return _file_not_found(path)

    notify_teamcity(record)
    return ExitCode.OK if written else ExitCode.ERROR


def cmd_project(args: argparse.Namespace, config: Config, git: GitRunner) -> ExitCode:
    updated = update_project_files(config.work_dir, lambda project_dir: get_version_info(project_dir, git))
    logger.info(f'Updated {updated} project file(s)')
    return ExitCode.OK


def cmd_print(args: argparse.Namespace, config: Config, git: GitRunner) -> ExitCode:
    record = get_version_info(config.work_dir, git)
    for name, value in export_environment(record).items():
        logger.debug(f'{name} = {value}')
    print(format_version(record), flush=True)
    return ExitCode.OK


def cmd_build_appveyor(args: argparse.Namespace, config: Config, git: GitRunner) -> ExitCode:
    record = get_version_info(config.work_dir, git)
    notify_appveyor(record, config.version_format or None, api_url=config.appveyor_api_url)
    return ExitCode.OK


def cmd_build_teamcity(args: argparse.Namespace, config: Config, git: GitRunner) -> ExitCode:
    record = get_version_info(config.work_dir, git)
    notify_teamcity(record, config.version_format or None)
    return ExitCode.OK


COMMANDS: Dict[str, Callable[[argparse.Namespace, Config, GitRunner], ExitCode]] = {
    'write': cmd_write,
    'restore': cmd_restore,
    'auto': cmd_auto,
    'project': cmd_project,
    'print': cmd_print,
    'build-appveyor': cmd_build_appveyor,
    'build-teamcity': cmd_build_teamcity,
}

FILE_REQUIRED = ('write', 'restore')


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the application."""
    console = create_console()
    setup_logging(console=console)

    parser = build_parser()
    args = parser.parse_args(argv)
    command = COMMAND_ALIASES.get(args.command, args.command)

    if args.log_level:
        setup_logging(args.log_level.upper(), console=console)

    if not command:
        parser.print_help()
        return ExitCode.USAGE

    if command in FILE_REQUIRED and not _target_file(args):
        logger.error(f'❌ The {command} command needs a file (use --file)')
        parser.print_help()
        return ExitCode.USAGE

    config = load_config(args)
    if config is None:
        return ExitCode.ERROR
    setup_logging(config.log_level, console=console)

    logger.debug(f'git-versioner {__version__}')

    if not config.git_path:
        logger.error('❌ Unable to find Git binary!')
        logger.info('💡 Install git, add it to PATH or use --git-path')
        return ExitCode.GIT_NOT_FOUND

    git = GitRunner(config.git_path, timeout=config.git_timeout)
    try:
        exit_code = COMMANDS[command](args, config, git)
    except KeyboardInterrupt:
        logger.info('Interrupted, exiting')
        return ExitCode.ERROR

    logger.debug('Finished!')
    return exit_code


if __name__ == '__main__':
    sys.exit(main())
