"""
Version information derived from a git repository.

Turns `git describe --long --tags --always` output into a VersionRecord and
fills in branch, hashes and commit counts from a few extra git queries.
"""

from dataclasses import dataclass, replace
from typing import Callable, Optional

from loguru import logger

from .utils import parse_int

DESCRIBE_ARGS = ('describe', '--long', '--tags', '--always')
BRANCH_ARGS = ('rev-parse', '--abbrev-ref', 'HEAD')
DESCRIBE_ALL_ARGS = ('describe', '--all')
LONG_HASH_ARGS = ('rev-parse', 'HEAD')
TOTAL_COMMITS_ARGS = ('rev-list', '--count', 'HEAD')
BRANCH_COMMITS_ARGS = ('rev-list', '--count', '--first-parent', 'HEAD')

# Removed from ref names in this order
REF_NOISE = ('refs', 'remotes', 'remote', 'origin', 'heads', 'heads/')
DETACHED_BRANCH = 'detached'


@dataclass(frozen=True)
class VersionRecord:
    """Version information for the current HEAD of a repository."""
    major: int = 0
    minor: int = 0
    patch: int = 0
    commit_count: int = 0
    total_commits: int = 0
    commits_in_current_branch: int = 0
    short_hash: str = ''
    long_hash: str = ''
    branch: str = ''

    def is_untagged(self) -> bool:
        """True when no version component and no commit count could be parsed."""
        return self.major == 0 and self.minor == 0 and self.patch == 0 and self.commit_count == 0


def normalize_branch(raw_ref: str) -> str:
    """
    Clean a ref name into a label safe for version strings and file names.

    `refs/remotes/origin/feature/x` becomes `feature-x`.

    Args:
        raw_ref: Branch or ref name as printed by git

    Returns:
        str: Label without slashes or leading dashes
    """
    branch = (raw_ref or '').strip()
    for noise in REF_NOISE:
        branch = branch.replace(noise, '')
    while '//' in branch:
        branch = branch.replace('//', '/')
    return branch.replace('/', '-').lstrip('-')


def _parse_major(text: str) -> int:
    text = text.strip().lower()
    if text.startswith('v'):
        text = text[1:]
    return parse_int(text)


def parse_describe(describe_output: str,
                   total_commits: Optional[Callable[[], int]] = None) -> VersionRecord:
    """
    Parse `git describe --long --tags --always` output.

    Expected form is `<tag>-<count>-g<hash>` where the tag is
    `[v]major[.minor[.patch]]`. Anything that does not parse becomes 0, so
    this never raises. Output without a tag (a bare hash) is taken as the
    short hash.

    Args:
        describe_output: Raw describe output
        total_commits: Called to get the repository commit count when no
            version component and no commit count were found

    Returns:
        VersionRecord: Parsed record without branch or long hash
    """
    text = (describe_output or '').strip()
    parts = text.rsplit('-', 2)

    if len(parts) < 3:
        record = VersionRecord(short_hash=text)
    else:
        tag, count, short_hash = parts
        numbers = tag.split('.')
        record = VersionRecord(
            major=_parse_major(numbers[0]),
            minor=parse_int(numbers[1]) if len(numbers) > 1 else 0,
            patch=parse_int(numbers[2]) if len(numbers) > 2 else 0,
            commit_count=parse_int(count),
            short_hash=short_hash[1:] if short_hash.startswith('g') else short_hash,
        )

    if total_commits is not None and record.is_untagged():
        record = replace(record, commit_count=total_commits())

    return record


def resolve_branch(git, work_dir: str) -> str:
    """Return the normalized current branch, resolving a detached HEAD."""
    branch = git.run(work_dir, *BRANCH_ARGS).strip()
    if branch != 'HEAD':
        return normalize_branch(branch)

    # describe --all gives e.g. heads/main, remotes/origin/main or tags/v1.0
    described = git.run(work_dir, *DESCRIBE_ALL_ARGS).strip()
    logger.debug(f'Detached HEAD, describe --all reports: {described or "nothing"}')
    branch = normalize_branch(described)
    if not branch or branch == 'HEAD':
        return DETACHED_BRANCH
    return branch


def get_version_info(work_dir: str, git) -> VersionRecord:
    """
    Query git in work_dir and build the complete VersionRecord.

    Args:
        work_dir: Directory inside the repository
        git: GitRunner (or anything with a compatible run(work_dir, *args))

    Returns:
        VersionRecord: Fully populated record
    """
    logger.debug(f'Getting version info for {work_dir}')

    def count(*args) -> int:
        return parse_int(git.run(work_dir, *args))

    describe = git.run(work_dir, *DESCRIBE_ARGS)
    if not describe.strip():
        logger.warning(f'Possible error, git output follows:\n {describe!r}')

    total = count(*TOTAL_COMMITS_ARGS)
    record = parse_describe(describe, total_commits=lambda: total)
    record = replace(
        record,
        total_commits=total,
        commits_in_current_branch=count(*BRANCH_COMMITS_ARGS),
        branch=resolve_branch(git, work_dir),
        long_hash=git.run(work_dir, *LONG_HASH_ARGS).strip(),
    )

    logger.debug(f'Version info: {record}')
    return record
