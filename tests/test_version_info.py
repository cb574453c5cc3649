"""
Tests for version_info.py module.

Tests describe parsing, branch normalization and assembling the full
version record from git queries.
"""

import pytest

from git_versioner.version_info import (
    DETACHED_BRANCH,
    VersionRecord,
    get_version_info,
    normalize_branch,
    parse_describe,
    resolve_branch,
)
from conftest import ABBREV_REF, DESCRIBE, DESCRIBE_ALL, LONG_SHA


class TestParseDescribe:
    """Test parsing git describe output."""

    @pytest.mark.parametrize('output, expected', [
        ('1.7.6-235-g0a52e4b', (1, 7, 6, 235, '0a52e4b')),
        ('10.20.30-0-gdeadbee', (10, 20, 30, 0, 'deadbee')),
        ('0.1.0-3-gabcdef0\n', (0, 1, 0, 3, 'abcdef0')),
    ])
    def test_well_formed(self, output, expected):
        """Test major.minor.patch-count-ghash."""
        r = parse_describe(output)
        assert (r.major, r.minor, r.patch, r.commit_count, r.short_hash) == expected

    def test_v_prefix_and_two_components(self):
        """Test leading v is stripped and a missing patch is 0."""
        r = parse_describe('v2.1-5-gabc1234')
        assert (r.major, r.minor, r.patch, r.commit_count) == (2, 1, 0, 5)
        assert r.short_hash == 'abc1234'

    def test_uppercase_v_prefix(self):
        r = parse_describe('V3.0.1-2-gabc1234')
        assert (r.major, r.minor, r.patch) == (3, 0, 1)

    def test_major_only(self):
        """Test a bare major version tag."""
        r = parse_describe('4-12-gabc1234')
        assert (r.major, r.minor, r.patch, r.commit_count) == (4, 0, 0, 12)

    def test_extra_dot_segments_ignored(self):
        r = parse_describe('1.2.3.4-1-gabc1234')
        assert (r.major, r.minor, r.patch, r.commit_count) == (1, 2, 3, 1)

    def test_bare_hash(self):
        """Test output without tags is taken as the short hash."""
        r = parse_describe('abc1234')
        assert (r.major, r.minor, r.patch, r.commit_count) == (0, 0, 0, 0)
        assert r.short_hash == 'abc1234'

    def test_bare_hash_is_trimmed(self):
        assert parse_describe('  abc1234 \n').short_hash == 'abc1234'

    def test_non_numeric_components_become_zero(self):
        """Test each component falls back to 0 on its own."""
        r = parse_describe('release.x.3-7-gabc1234')
        assert (r.major, r.minor, r.patch, r.commit_count) == (0, 0, 3, 7)

    def test_non_numeric_commit_count(self):
        r = parse_describe('1.2.3-lots-gabc1234')
        assert r.commit_count == 0
        assert r.major == 1

    def test_tag_containing_dashes(self):
        """Test the count and hash are taken from the end of the output."""
        r = parse_describe('1.2.0-rc1-4-gabc1234')
        assert r.commit_count == 4
        assert r.short_hash == 'abc1234'
        assert (r.major, r.minor) == (1, 2)

    @pytest.mark.parametrize('output', ['', None, '\n'])
    def test_empty_output(self, output):
        """Test empty output never raises and yields a zero record."""
        r = parse_describe(output)
        assert r == VersionRecord()

    def test_fallback_to_total_commits_without_tags(self):
        """Test a tagless repository still gets a growing build number."""
        r = parse_describe('abc1234', total_commits=lambda: 42)
        assert r.commit_count == 42
        assert r.short_hash == 'abc1234'

    def test_fallback_for_zero_state_describe(self):
        r = parse_describe('0.0.0-0-gabc1234', total_commits=lambda: 17)
        assert r.commit_count == 17

    def test_no_fallback_when_tagged(self):
        """Test the total commit count is not consulted for tagged output."""
        def fail():
            raise AssertionError('should not be called')

        r = parse_describe('1.0.0-0-gabc1234', total_commits=fail)
        assert r.commit_count == 0

    def test_no_fallback_without_provider(self):
        assert parse_describe('abc1234').commit_count == 0


class TestNormalizeBranch:
    """Test ref name normalization."""

    def test_full_remote_ref(self):
        assert normalize_branch('refs/remotes/origin/heads/feature//x') == 'feature-x'

    @pytest.mark.parametrize('raw, expected', [
        ('master', 'master'),
        ('feature/login', 'feature-login'),
        ('heads/main', 'main'),
        ('remotes/origin/release/1.0', 'release-1.0'),
        ('refs/heads/bugfix/a/b', 'bugfix-a-b'),
        ('tags/v1.0', 'tags-v1.0'),
        ('  develop\n', 'develop'),
        ('', ''),
    ])
    def test_examples(self, raw, expected):
        assert normalize_branch(raw) == expected

    def test_no_slashes_or_leading_dash(self):
        result = normalize_branch('///refs/remote/origin//x/y')
        assert '/' not in result
        assert not result.startswith('-')

    def test_none(self):
        assert normalize_branch(None) == ''


class TestResolveBranch:
    """Test branch lookup including detached HEAD."""

    def test_normal_branch(self, make_fake_git):
        git = make_fake_git({ABBREV_REF: 'feature/x\n'})
        assert resolve_branch(git, '/repo') == 'feature-x'

    def test_detached_head_uses_describe_all(self, make_fake_git):
        git = make_fake_git({ABBREV_REF: 'HEAD\n', DESCRIBE_ALL: 'remotes/origin/release/2.0\n'})
        assert resolve_branch(git, '/repo') == 'release-2.0'
        assert ('/repo', DESCRIBE_ALL) in git.calls

    def test_detached_head_without_description(self, make_fake_git):
        git = make_fake_git({ABBREV_REF: 'HEAD\n', DESCRIBE_ALL: ''})
        assert resolve_branch(git, '/repo') == DETACHED_BRANCH


class TestGetVersionInfo:
    """Test assembling the record from git."""

    def test_full_record(self, fake_git):
        r = get_version_info('/repo', fake_git)
        assert r == VersionRecord(
            major=1,
            minor=7,
            patch=6,
            commit_count=235,
            total_commits=512,
            commits_in_current_branch=300,
            short_hash='0a52e4b',
            long_hash=LONG_SHA,
            branch='master',
        )
        assert all(work_dir == '/repo' for work_dir, _ in fake_git.calls)

    def test_untagged_repository(self, make_fake_git):
        git = make_fake_git({DESCRIBE: '0a52e4b\n'})
        r = get_version_info('/repo', git)
        assert r.commit_count == 512
        assert r.short_hash == '0a52e4b'

    def test_git_returns_nothing(self, make_fake_git):
        """Test a failing git yields a zero record instead of an error."""
        git = make_fake_git()
        git.responses = {}
        r = get_version_info('/repo', git)
        assert (r.major, r.commit_count, r.short_hash, r.long_hash) == (0, 0, '', '')
        assert r.branch == ''

    def test_record_is_immutable(self, fake_git):
        r = get_version_info('/repo', fake_git)
        with pytest.raises(AttributeError):
            r.major = 5
