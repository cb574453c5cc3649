"""
External process execution for Git Versioner.

Every external call (git, appveyor) goes through run_process() so that the
wait is bounded and a hung child is killed instead of stalling the build.
"""

import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from loguru import logger

DEFAULT_TIMEOUT = 1.0
KILL_GRACE_TIMEOUT = 1.0


class GitNotFoundError(Exception):
    """Raised when the git executable cannot be located."""


@dataclass(frozen=True)
class ProcessResult:
    """Captured outcome of an external process."""
    stdout: str
    returncode: Optional[int]
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


def run_process(executable: str, args: Sequence[str], work_dir: Optional[str] = None,
                timeout: float = DEFAULT_TIMEOUT) -> ProcessResult:
    """
    Run an executable and capture its standard output.

    The child gets `timeout` seconds to finish. If it is still running after
    that it is killed and whatever it printed so far is returned.

    Args:
        executable: Program to run
        args: Arguments passed to the program
        work_dir: Working directory for the child process
        timeout: Seconds to wait before killing the process

    Returns:
        ProcessResult: Captured stdout, return code and timeout flag

    Raises:
        FileNotFoundError: If the executable does not exist
    """
    cmd = [executable, *args]
    logger.debug(f"Running: {' '.join(cmd)} (cwd={work_dir})")

    proc = subprocess.Popen(
        cmd,
        cwd=work_dir,
        stdout=subprocess.PIPE,
        stderr=subprocess.DEVNULL,
        stdin=subprocess.DEVNULL,
        text=True,
        encoding='utf-8',
        errors='replace',
    )
    try:
        stdout, _ = proc.communicate(timeout=timeout)
        return ProcessResult(stdout=stdout or '', returncode=proc.returncode)
    except subprocess.TimeoutExpired:
        logger.warning(f"⏱️  {' '.join(cmd)} did not finish within {timeout}s, killing it")
        proc.kill()
        try:
            stdout, _ = proc.communicate(timeout=KILL_GRACE_TIMEOUT)
        except subprocess.TimeoutExpired:
            # A grandchild still holds the pipe open
            logger.warning(f"Output of {' '.join(cmd)} still open after kill, discarding it")
            stdout = ''
        return ProcessResult(stdout=stdout or '', returncode=proc.returncode, timed_out=True)


class GitRunner:
    """Runs git subcommands in a working directory."""

    def __init__(self, git_path: str, timeout: float = DEFAULT_TIMEOUT):
        if not git_path:
            raise GitNotFoundError('Unable to find Git binary!')
        self.git_path = git_path
        self.timeout = timeout

    def run(self, work_dir: str, *args: str) -> str:
        """
        Run `git <args>` in work_dir and return its stdout.

        Failures to start git are logged and yield an empty string, which the
        version parser treats as missing data.
        """
        try:
            result = run_process(self.git_path, args, work_dir=work_dir, timeout=self.timeout)
        except OSError as e:
            logger.error(f"Failed to run git {' '.join(args)}: {e}")
            return ''
        if result.returncode not in (0, None):
            logger.debug(f"git {' '.join(args)} exited with {result.returncode}")
        return result.stdout
