"""
Shell command execution for MySQL Dump Adapter.

All shell escaping happens here: builders render arguments with quote() or
command() and hand the finished string to CommandRunner.run().
"""

import logging
import os
import shlex
import shutil
import subprocess
from typing import Any, Optional

from .exceptions import CommandFailedError
from .models import Priority


def quote(value: Any) -> str:
    """Escape a single value for use as one shell word."""
    return shlex.quote(str(value))


def command(program: str, *args: Any) -> str:
    """Render a program invocation with every argument escaped."""
    return ' '.join([program] + [quote(arg) for arg in args])


def _lower_priority() -> None:
    os.nice(CommandRunner.LOW_PRIORITY_NICENESS)


class CommandRunner:
    """Runs shell command strings and returns their stdout."""

    SHELL = '/bin/bash'
    LOW_PRIORITY_NICENESS = 10

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def set_logger(self, logger: logging.Logger) -> None:
        self.logger = logger

    def which(self, program: str) -> Optional[str]:
        """Resolve a program on PATH."""
        return shutil.which(program)

    def run(
        self,
        command: str,
        cwd: Optional[str] = None,
        priority: Priority = Priority.NORMAL
    ) -> str:
        """
        Run a command through bash and wait for it.

        Args:
            command: Complete, already escaped command string.
            cwd: Working directory for the command.
            priority: Priority.LOW raises the niceness of the child process.

        Returns:
            Captured stdout.

        Raises:
            CommandFailedError: If the command exits non-zero or cannot start.
        """
        preexec_fn = None
        if priority is Priority.LOW and hasattr(os, 'nice'):
            preexec_fn = _lower_priority

        try:
            result = subprocess.run(
                command,
                shell=True,
                executable=self.SHELL,
                cwd=cwd,
                capture_output=True,
                text=True,
                preexec_fn=preexec_fn,
            )
        except OSError as e:
            raise CommandFailedError(None, str(e)) from e

        if result.stderr:
            self.logger.debug(result.stderr.rstrip())

        if result.returncode != 0:
            raise CommandFailedError(result.returncode, result.stderr)

        return result.stdout
