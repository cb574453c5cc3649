"""
Git Versioner

Extracts version information from a git repository and injects it into
source and project files during a build. Can also report the computed
version to CI services (TeamCity, AppVeyor).
"""

from ._version import __version__

__author__ = "git-versioner contributors"
__description__ = "Inject git version information into source files during builds"
