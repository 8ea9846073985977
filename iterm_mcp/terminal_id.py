"""Terminal identifiers.

An identifier is ``iterm-<windowId>-<tabIndex>``: the iTerm window id plus
the 1-based tab position inside that window. Nothing is stored server-side,
so any process holding the string can address the tab, including a freshly
restarted server.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import InvalidFormat

ID_PREFIX = "iterm"
ID_FORMAT = f"{ID_PREFIX}-<windowId>-<tabIndex>"

_ID_PATTERN = re.compile(rf"{ID_PREFIX}-([0-9]+)-([0-9]+)")
_DIGITS = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class TerminalAddress:
    """Location of a tab inside iTerm."""
    window_id: str
    tab_index: int

    def __post_init__(self) -> None:
        if not _DIGITS.fullmatch(self.window_id) or self.tab_index < 1:
            raise InvalidFormat(f"{ID_PREFIX}-{self.window_id}-{self.tab_index}")

    @property
    def terminal_id(self) -> str:
        return encode(self.window_id, self.tab_index)


def decode(identifier: str) -> TerminalAddress:
    """Parse an identifier; raises InvalidFormat for any other shape."""
    match = _ID_PATTERN.fullmatch(identifier) if isinstance(identifier, str) else None
    if not match:
        raise InvalidFormat(str(identifier))
    return TerminalAddress(window_id=match.group(1), tab_index=int(match.group(2)))


def encode(window_id: str, tab_index: int) -> str:
    return f"{ID_PREFIX}-{window_id}-{tab_index}"
