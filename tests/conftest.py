"""
Pytest configuration and shared fixtures for test suite.

Provides a fake git runner with canned output, version records and
temporary directories.
"""

import pytest
from unittest.mock import MagicMock

from git_versioner.version_info import VersionRecord

DESCRIBE = ('describe', '--long', '--tags', '--always')
ABBREV_REF = ('rev-parse', '--abbrev-ref', 'HEAD')
DESCRIBE_ALL = ('describe', '--all')
LONG_HASH = ('rev-parse', 'HEAD')
TOTAL_COMMITS = ('rev-list', '--count', 'HEAD')
BRANCH_COMMITS = ('rev-list', '--count', '--first-parent', 'HEAD')

LONG_SHA = '0a52e4b9d2c6f1e8a7b3c4d5e6f708192a3b4c5d'


class FakeGit:
    """Stands in for GitRunner, answering from a dict keyed by argument tuples."""

    def __init__(self, responses=None):
        self.responses = {
            DESCRIBE: '1.7.6-235-g0a52e4b\n',
            ABBREV_REF: 'master\n',
            LONG_HASH: LONG_SHA + '\n',
            TOTAL_COMMITS: '512\n',
            BRANCH_COMMITS: '300\n',
        }
        self.responses.update(responses or {})
        self.calls = []

    def run(self, work_dir, *args):
        self.calls.append((work_dir, args))
        return self.responses.get(args, '')


@pytest.fixture
def fake_git():
    """Fake git runner for a repository tagged 1.7.6 on master."""
    return FakeGit()


@pytest.fixture
def make_fake_git():
    """Factory for fake git runners with custom responses."""
    return FakeGit


@pytest.fixture
def record():
    """A typical version record on a feature branch."""
    return VersionRecord(
        major=1,
        minor=2,
        patch=3,
        commit_count=7,
        total_commits=120,
        commits_in_current_branch=95,
        short_hash='abc1234',
        long_hash='abc1234def5678abc1234def5678abc1234def56',
        branch='feature-login',
    )


@pytest.fixture
def master_record(record):
    """The same record built on master."""
    from dataclasses import replace
    return replace(record, branch='master')


@pytest.fixture
def temp_dir(tmp_path):
    """Temporary directory as a string path."""
    return str(tmp_path)


@pytest.fixture
def mock_config(tmp_path):
    """Create a mock Config object with sensible defaults."""
    config = MagicMock()
    config.work_dir = str(tmp_path)
    config.encoding = 'utf-8'
    config.encoding_errors = 'strict'
    config.git_path = '/usr/bin/git'
    config.git_timeout = 1.0
    config.log_level = 'INFO'
    config.version_format = ''
    config.appveyor_api_url = ''
    return config
