"""Exceptions raised by the MySQL Dump Adapter."""

from typing import Iterable, Optional


class DumpAdapterError(Exception):
    """Base class for all adapter errors."""


class InvalidArgumentError(DumpAdapterError, ValueError):
    """Malformed input, e.g. a bad connection config or database name."""


class DomainError(DumpAdapterError, ValueError):
    """Unknown option key or unknown named connection."""


class UnusableError(DumpAdapterError, RuntimeError):
    """One or more required external tools are missing from PATH."""

    def __init__(self, owner: str, missing_tools: Iterable[str]):
        self.owner = owner
        self.missing_tools = list(missing_tools)
        tools = '", "'.join(self.missing_tools)
        super().__init__(
            f'{owner} is not usable in this environment because the "{tools}" '
            f'shell function(s) are not available.'
        )


class OperationError(DumpAdapterError, RuntimeError):
    """An export or import could not be completed."""


class InvalidFormatError(OperationError):
    """Archive extension or contents are not what the strategy expects."""


class CommandFailedError(OperationError):
    """An external command exited with a non-zero status.

    The command line itself is not kept, it carries credentials.
    """

    def __init__(self, returncode: Optional[int], stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or "no error output"
        if returncode is None:
            super().__init__(f"Command could not be started: {detail}")
        else:
            super().__init__(f"Command exited with status {returncode}: {detail}")
