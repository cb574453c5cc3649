"""
Token substitution for Git Versioner.

Expands $Token$ placeholders in text using a VersionRecord. Replacement is
plain literal string replacement; unknown $...$ sequences are left alone.
"""

import os
from typing import Dict, MutableMapping, Optional

from .version_info import VersionRecord

SEMVER_KEYWORD = 'semver'
SEMVER_FORMAT = '$MajorVersion$.$MinorVersion$.$Revision$-$Branch$+$Commit$'
# Builds from the main integration branch get a plain semantic version
SEMVER_MASTER_BRANCH = 'master'
SEMVER_MASTER_FORMAT = '$MajorVersion$.$MinorVersion$.$Revision$+$Commit$'

FULL_VERSION_FORMAT = '$MajorVersion$.$MinorVersion$.$Revision$-$Commit$-$ShortHash$'
FULL_VERSION_WITH_BRANCH_FORMAT = '$Branch$:$MajorVersion$.$MinorVersion$.$Revision$-$Commit$-$ShortHash$'
DEFAULT_BUILD_FORMAT = '$Branch$-$MajorVersion$.$MinorVersion$.$Revision$-$Commit$-$ShortHash$'
INFORMATIONAL_VERSION_MARKER = 'AssemblyInformationalVersion'
INFORMATIONAL_VERSION_LINE = f'[assembly: {INFORMATIONAL_VERSION_MARKER}("{FULL_VERSION_WITH_BRANCH_FORMAT}")]'

ENV_PREFIX = 'GV-'


def token_values(record: VersionRecord) -> Dict[str, str]:
    """Map every supported token to its rendered value."""
    return {
        '$MajorVersion$': str(record.major),
        '$MinorVersion$': str(record.minor),
        '$Revision$': str(record.patch),
        '$Commit$': str(record.commit_count),
        '$ShortHash$': record.short_hash,
        '$LongHash$': record.long_hash,
        '$Branch$': record.branch,
        '$TotalCommits$': str(record.total_commits),
        '$CommitsInCurrentBranch$': str(record.commits_in_current_branch),
    }


SUPPORTED_TOKENS = tuple(token_values(VersionRecord()))


def replace_tokens(text: str, record: VersionRecord) -> str:
    """
    Replace every supported token in text.

    Args:
        text: Template or file line
        record: Version information to insert

    Returns:
        str: Text with tokens expanded
    """
    for token, value in token_values(record).items():
        text = text.replace(token, value)
    return text


def is_semver_keyword(template: Optional[str]) -> bool:
    return template is not None and template.strip().lower() == SEMVER_KEYWORD


def substitute(template: str, record: VersionRecord) -> str:
    """
    Expand a version format.

    The keyword "semver" (any case, surrounding whitespace ignored) stands for
    SEMVER_FORMAT. Builds on master drop the branch part and read e.g. 1.2.3+7
    instead of 1.2.3-master+7; other branch names are kept whole.

    Args:
        template: Format string with $Token$ placeholders, or "semver"
        record: Version information to insert

    Returns:
        str: Expanded version string
    """
    if is_semver_keyword(template):
        if record.branch == SEMVER_MASTER_BRANCH:
            return replace_tokens(SEMVER_MASTER_FORMAT, record)
        return replace_tokens(SEMVER_FORMAT, record)
    return replace_tokens(template, record)


def format_version(record: VersionRecord) -> str:
    """Render the record as major.minor.patch-commits-hash."""
    return replace_tokens(FULL_VERSION_FORMAT, record)


def numeric_version(record: VersionRecord) -> str:
    """Render the four part numeric version used in assembly and project files."""
    return f'{record.major}.{record.minor}.{record.patch}.{record.commit_count}'


def environment_variables(record: VersionRecord) -> Dict[str, str]:
    """Build the GV-* environment variables describing the record."""
    values = {
        'FullVersionWithBranch': replace_tokens(FULL_VERSION_WITH_BRANCH_FORMAT, record),
        'FullVersion': format_version(record),
        'SemVer': substitute(SEMVER_KEYWORD, record),
        'Branch': record.branch,
        'MajorVersion': str(record.major),
        'MinorVersion': str(record.minor),
        'Revision': str(record.patch),
        'Commit': str(record.commit_count),
        'ShortHash': record.short_hash,
        'LongHash': record.long_hash,
    }
    return {f'{ENV_PREFIX}{name}': value for name, value in values.items()}


def export_environment(record: VersionRecord,
                       environ: Optional[MutableMapping[str, str]] = None) -> Dict[str, str]:
    """
    Set the GV-* variables in environ (os.environ by default).

    Child processes started afterwards inherit them.

    Returns:
        dict: The variables that were set
    """
    target = os.environ if environ is None else environ
    variables = environment_variables(record)
    target.update(variables)
    return variables
