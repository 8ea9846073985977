"""Error taxonomy for terminal operations.

Every error is raised inside the core and converted to a text result by
the controller; none of them may escape a tool call.
"""

from __future__ import annotations


class ITermMCPError(Exception):
    """Base class for all iterm-mcp failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidFormat(ITermMCPError):
    """The terminal identifier does not have the canonical shape."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Invalid terminal ID format: {identifier}")
        self.identifier = identifier


class SessionNotFound(ITermMCPError):
    """The script ran but the addressed window or tab does not exist."""

    def __init__(self, identifier: str, sentinel: str = "") -> None:
        super().__init__(f"Terminal {identifier} not found in iTerm")
        self.identifier = identifier
        self.sentinel = sentinel


class AutomationError(ITermMCPError):
    """osascript could not be started, timed out, or exited non-zero."""

    def __init__(self, message: str, detail: str = "", returncode: int | None = None) -> None:
        super().__init__(message)
        self.detail = detail
        self.returncode = returncode

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message


class UsageError(ITermMCPError):
    """The caller supplied an unusable combination of arguments."""
