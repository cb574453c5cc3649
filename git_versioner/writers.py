"""
File rewriting for Git Versioner.

Writes version information into text files (with a .gwbackup copy that
restore_backup() puts back), C# AssemblyInfo files and SDK-style
.csproj/.vbproj project files.
"""

import os
import re
import shutil
import xml.etree.ElementTree as ET
from typing import Callable, List, Optional

from loguru import logger

from .substitution import (
    FULL_VERSION_WITH_BRANCH_FORMAT,
    INFORMATIONAL_VERSION_LINE,
    INFORMATIONAL_VERSION_MARKER,
    numeric_version,
    replace_tokens,
)
from .utils import search_for_files
from .version_info import VersionRecord

BACKUP_SUFFIX = '.gwbackup'
DEFAULT_ASSEMBLY_INFO = os.path.join('Properties', 'AssemblyInfo.cs')
PROJECT_PATTERNS = ('*.csproj', '*.vbproj')
PROJECT_VERSION_ELEMENTS = ('Version', 'AssemblyVersion', 'FileVersion')


def backup_path(path: str) -> str:
    """Return the sidecar backup path for path."""
    return path + BACKUP_SUFFIX


def _line_ending(lines: List[str]) -> str:
    for line in lines:
        if line.endswith('\r\n'):
            return '\r\n'
        if line.endswith('\n'):
            return '\n'
    return os.linesep


def write_info(path: str, record: VersionRecord, encoding: str = 'utf-8',
               append: bool = True, errors: str = 'strict') -> bool:
    """
    Expand version tokens in a file, keeping a backup of the original.

    The original is copied to <path>.gwbackup, then every line of the backup
    has its tokens replaced and the result is written to path. When append is
    set and no line mentions AssemblyInformationalVersion, an informational
    version attribute line is added at the end.

    Args:
        path: File to rewrite
        record: Version information to insert
        encoding: Text encoding used to read and write the file
        append: Add the informational version line if missing
        errors: Codec error handling ('replace' for ASCII mode)

    Returns:
        bool: True if the file was rewritten, False if rewriting failed

    Raises:
        FileNotFoundError: If path does not exist
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Unable to find file {path}")

    backup = backup_path(path)
    try:
        shutil.copyfile(path, backup)
        logger.info(f'Reading {path}...')
        with open(backup, 'r', encoding=encoding, errors=errors, newline='') as f:
            lines = f.readlines()

        logger.info('Replacing...')
        output = [replace_tokens(line, record) for line in lines]

        if append and not any(INFORMATIONAL_VERSION_MARKER in line for line in lines):
            logger.info(f'Appending {INFORMATIONAL_VERSION_MARKER}...')
            newline = _line_ending(lines)
            if output and not output[-1].endswith(('\n', '\r')):
                output[-1] += newline
            output.append(replace_tokens(INFORMATIONAL_VERSION_LINE, record) + newline)

        with open(path, 'w', encoding=encoding, errors=errors, newline='') as f:
            f.writelines(output)
    except (OSError, UnicodeError) as e:
        logger.error(f"Error: '{e}' in '{type(e).__name__}'")
        return False

    return True


def restore_backup(path: str) -> bool:
    """
    Put back the file saved by write_info() and remove the backup.

    A missing backup is not an error; there is simply nothing to restore.

    Returns:
        bool: True if the file was restored
    """
    logger.info(f'Restoring {path}...')
    backup = backup_path(path)
    if not os.path.isfile(backup):
        logger.debug(f'No backup found at {backup}, nothing to restore')
        return False

    try:
        shutil.copyfile(backup, path)
        os.remove(backup)
    except OSError as e:
        logger.error(f'Unable to restore backup {backup}')
        logger.error(f"Error: '{e}' in '{type(e).__name__}'")
        return False

    return True


def auto_update_assembly_info(path: Optional[str], record: VersionRecord, work_dir: str,
                              encoding: str = 'utf-8', errors: str = 'strict') -> bool:
    """
    Rewrite the version attributes of a C# AssemblyInfo file in place.

    AssemblyVersion and AssemblyFileVersion get major.minor.patch.commits,
    AssemblyInformationalVersion gets branch:major.minor.patch-commits-hash.

    Args:
        path: AssemblyInfo file, defaults to Properties/AssemblyInfo.cs in work_dir
        record: Version information to insert
        work_dir: Directory the default path is relative to
        encoding: Text encoding used to read and write the file
        errors: Codec error handling

    Returns:
        bool: True if the file was rewritten, False if writing failed

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = path or os.path.join(work_dir, DEFAULT_ASSEMBLY_INFO)
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Unable to find file {path}")

    number = numeric_version(record)
    informational = replace_tokens(FULL_VERSION_WITH_BRANCH_FORMAT, record)
    replacements = (
        ('AssemblyVersion', number),
        ('AssemblyInformationalVersion', informational),
        ('AssemblyFileVersion', number),
    )

    try:
        with open(path, 'r', encoding=encoding, errors=errors, newline='') as f:
            contents = f.read()
        for attribute, value in replacements:
            contents = re.sub(
                rf'{attribute}\("[^"]*"\)',
                lambda _m, a=attribute, v=value: f'{a}("{v}")',
                contents,
            )
        with open(path, 'w', encoding=encoding, errors=errors, newline='') as f:
            f.write(contents)
    except (OSError, UnicodeError) as e:
        logger.error(f'Unable to write to file: {path}')
        logger.error(f"Error: '{e}' in '{type(e).__name__}'")
        return False

    logger.info(f'✅ Updated {path} to {number}')
    return True


def _is_sdk_project(root: ET.Element) -> bool:
    # Legacy MSBuild projects use the msbuild/2003 namespace and keep versions in AssemblyInfo
    if root.tag != 'Project':
        return False
    return (
        'Sdk' in root.attrib
        or root.find('PropertyGroup/TargetFramework') is not None
        or root.find('PropertyGroup/TargetFrameworks') is not None
    )


def update_project_file(path: str, record: VersionRecord) -> bool:
    """
    Set Version, AssemblyVersion and FileVersion in every PropertyGroup of an
    SDK-style project file, creating the elements when absent.

    Returns:
        bool: True if the project was rewritten
    """
    try:
        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
        tree = ET.parse(path, parser=parser)
    except (OSError, ET.ParseError) as e:
        logger.error(f'Unable to read project {path}: {e}')
        return False

    root = tree.getroot()
    if not _is_sdk_project(root):
        logger.info(f'Skipping {path}: not an SDK-style project')
        return False

    number = numeric_version(record)
    for group in root.findall('PropertyGroup'):
        for name in PROJECT_VERSION_ELEMENTS:
            element = group.find(name)
            if element is None:
                element = ET.SubElement(group, name)
            element.text = number

    try:
        with open(path, 'rb') as f:
            has_declaration = f.read(8).lstrip(b'\xef\xbb\xbf').startswith(b'<?xml')
        tree.write(path, encoding='utf-8', xml_declaration=has_declaration)
    except OSError as e:
        logger.error(f'Unable to write project {path}: {e}')
        return False

    logger.info(f'✅ Updated {path} to {number}')
    return True


def update_project_files(root: str, record_for: Callable[[str], VersionRecord]) -> int:
    """
    Update every .csproj and .vbproj below root.

    Args:
        root: Directory to search recursively
        record_for: Returns the VersionRecord for a project's directory

    Returns:
        int: Number of project files rewritten
    """
    projects = search_for_files(root, PROJECT_PATTERNS)
    if not projects:
        logger.warning(f'No project files found under {root}')
        return 0

    updated = 0
    for project in projects:
        logger.info(f'Processing {project}')
        record = record_for(os.path.dirname(os.path.abspath(project)))
        if update_project_file(project, record):
            updated += 1
    return updated
