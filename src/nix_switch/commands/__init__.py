"""External command execution utilities."""

from .runner import (
    CommandError,
    CommandFailedError,
    CommandNotFoundError,
    CommandResult,
    CommandRunner,
)

__all__ = [
    "CommandRunner",
    "CommandResult",
    "CommandError",
    "CommandFailedError",
    "CommandNotFoundError",
]
