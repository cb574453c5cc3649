"""
Utility functions for Git Versioner.

Contains platform checks, git executable discovery, file search and the
fault-tolerant integer conversion used by the version parser.
"""

import glob
import os
import shutil
from typing import Iterable, List, Optional

from loguru import logger

GIT_UNINSTALL_KEYS = (
    r'SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall\Git_is1',
    r'SOFTWARE\Wow6432Node\Microsoft\Windows\CurrentVersion\Uninstall\Git_is1',
)


def is_windows() -> bool:
    """Check if running on Windows operating system."""
    return os.name == 'nt'


def git_executable_name() -> str:
    """Return the platform specific name of the git executable."""
    return 'git.exe' if is_windows() else 'git'


def parse_int(text, default: int = 0) -> int:
    """
    Convert text to an int, returning a default instead of raising.

    Args:
        text: Value to convert (usually a fragment of git output)
        default: Value returned when conversion is not possible

    Returns:
        int: Parsed value or default
    """
    if text is None:
        return default
    text = str(text).strip()
    # int() would also take '1_0', '+3' and non-ASCII digits
    if not (text.isascii() and text.isdigit()):
        return default
    return int(text)


def _git_from_registry() -> Optional[str]:
    """Look up the Git for Windows install location in the uninstall registry keys."""
    try:
        import winreg
    except ImportError:
        return None

    for key_path in GIT_UNINSTALL_KEYS:
        try:
            with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, key_path) as key:
                location, _ = winreg.QueryValueEx(key, 'InstallLocation')
        except OSError:
            continue
        if isinstance(location, str):
            candidate = os.path.join(location, 'bin', git_executable_name())
            if os.path.isfile(candidate):
                return candidate
    return None


def _program_files_dirs() -> List[str]:
    """Return candidate Program Files directories, 64-bit first."""
    dirs = []
    for env_key in ('ProgramFiles', 'ProgramW6432', 'ProgramFiles(x86)'):
        value = os.environ.get(env_key)
        if value and value not in dirs:
            dirs.append(value)
    if not dirs:
        dirs.append('C:\\Program Files')
    return dirs


def _git_from_program_files(program_dirs: Iterable[str]) -> Optional[str]:
    """Search Program Files style folders for git*/bin/git.exe."""
    for program_dir in program_dirs:
        for git_dir in sorted(glob.glob(os.path.join(program_dir, 'git*'))):
            candidate = os.path.join(git_dir, 'bin', git_executable_name())
            if os.path.isfile(candidate):
                return candidate
    return None


def find_git_binary(git_path: str = '') -> Optional[str]:
    """
    Locate the git executable.

    Search order:
    1. Explicit path (from --git-path or GV_GIT_PATH)
    2. PATH environment variable
    3. Windows only: Git for Windows uninstall registry key
    4. Windows only: Program Files directories

    Args:
        git_path: Explicitly configured git executable (optional)

    Returns:
        str: Full path to git, or None if it could not be found
    """
    if git_path:
        resolved = shutil.which(git_path)
        if resolved:
            return resolved
        logger.warning(f'Configured git executable not found: {git_path}')
        return None

    resolved = shutil.which(git_executable_name())
    if resolved:
        return resolved

    if is_windows():
        resolved = _git_from_registry() or _git_from_program_files(_program_files_dirs())
        if resolved:
            logger.debug(f'Found git outside PATH: {resolved}')
            return resolved

    return None


def search_for_files(root: str, patterns: Iterable[str]) -> List[str]:
    """
    Recursively find files below root matching any of the glob patterns.

    Args:
        root: Directory to search
        patterns: Filename patterns such as '*.csproj'

    Returns:
        list: Sorted list of matching file paths
    """
    found = set()
    base = glob.escape(root)
    for pattern in patterns:
        found.update(glob.glob(os.path.join(base, '**', pattern), recursive=True))
    return sorted(path for path in found if os.path.isfile(path))
