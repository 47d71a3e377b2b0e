"""Runs git commands and collapses every outcome into ``(success, lines)``."""

import os
import subprocess
import sys
from typing import List, Optional, Sequence, Tuple

import git

from git_worktree_keeper.constants import COMMAND_TIMEOUT_SECONDS
from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)

CommandOutput = Tuple[bool, List[str]]

GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


class CommandRunner:
    """Executes the git command line tool in a given working directory."""

    def __init__(self, executable: str = "git", timeout: float = COMMAND_TIMEOUT_SECONDS):
        """Initialize the runner.

        Args:
            executable: Name or path of the git executable
            timeout: Seconds after which a running command is killed
        """
        self.executable = executable
        self.timeout = timeout

    def run(self, working_dir: str, args: Sequence[str], timeout: Optional[float] = None) -> CommandOutput:
        """Run ``git <args>`` in ``working_dir``.

        Args:
            working_dir: Directory to run the command in
            args: Arguments passed to git
            timeout: Override of the runner's timeout for this call

        Returns:
            Tuple of (success, lines). Lines are stdout on success, stderr on
            failure, or a single line describing why git could not be started.
        """
        command = [self.executable, *args]
        display = " ".join(command)

        if not os.path.isdir(working_dir):
            logger.error(f"Cannot run '{display}': {working_dir} is not a directory")
            return False, [f"Working directory does not exist: {working_dir}"]

        timeout = timeout or self.timeout
        try:
            if sys.platform == "win32":
                status, stdout, stderr = _execute_with_deadline(working_dir, command, timeout)
            else:
                status, stdout, stderr = git.Git(working_dir).execute(
                    command,
                    with_extended_output=True,
                    with_exceptions=False,
                    kill_after_timeout=timeout,
                    env=GIT_ENV,
                )
        except git.exc.GitCommandNotFound as e:
            logger.error(f"Failed to execute '{display}': {e}")
            return False, [f"Could not run {self.executable}: {e}"]
        except Exception as e:
            logger.error(f"Failed to execute '{display}': {e}")
            return False, [str(e) or "Unknown error"]

        if status == 0:
            logger.debug(f"'{display}' in {working_dir} succeeded")
            return True, _split_lines(stdout)

        error_lines = _split_lines(stderr)
        if not error_lines:
            error_lines = [f"{display} failed with exit code {status}"]
        logger.warning(f"'{display}' failed (exit {status}): {' '.join(error_lines)}")
        return False, error_lines


def _split_lines(output) -> List[str]:
    if not output:
        return []
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="replace")
    return output.splitlines()


def _execute_with_deadline(working_dir: str, command: List[str], timeout: float):
    """Run ``command`` through a process handle and kill it after ``timeout`` seconds.

    GitPython refuses ``kill_after_timeout`` on Windows, so the deadline is
    enforced here instead.
    """
    handle = git.Git(working_dir).execute(command, as_process=True, env=GIT_ENV)
    process = handle.proc
    try:
        stdout, stderr = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        process.kill()
        process.communicate()
        message = f'Timeout: the command "{" ".join(command)}" did not complete in {timeout:g} secs.'
        return process.returncode or -1, b"", message
    return process.returncode, stdout, stderr
