from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

_WINDOW_MATCH = re.compile(r'\(\(id of aWindow\) as string\) = "([0-9]+)"')
_TAB_CHECK = re.compile(r"\(count of tabs\) >= ([0-9]+)")
_WRITE_LITERAL = re.compile(r'write text "((?:[^"\\]|\\.)*)"')


def unescape_applescript(literal: str) -> str:
    """Inverse of the AppleScript string-literal escaping."""
    return re.sub(r"\\(.)", r"\1", literal)


class FakeRunner:
    """Records every script and answers with a canned result."""

    def __init__(self, result: str | Callable[[str], str] = "") -> None:
        self.result = result
        self.scripts: list[str] = []

    def __call__(self, script: str) -> str:
        self.scripts.append(script)
        if callable(self.result):
            return self.result(script)
        return self.result

    @property
    def calls(self) -> int:
        return len(self.scripts)


@dataclass
class FakeITerm:
    """Enough of iTerm2 to answer the synthesized scripts."""

    next_window_id: int = 100
    windows: dict[str, list[list[str]]] = field(default_factory=dict)
    scripts: list[str] = field(default_factory=list)

    def __call__(self, script: str) -> str:
        self.scripts.append(script)
        if "create window with default profile" in script:
            window_id = str(self.next_window_id)
            self.next_window_id += 1
            self.windows[window_id] = [[]]
            return f"{window_id}|1|session-{window_id}"
        if "set terminalIds" in script:
            ids = [
                f"iterm-{window_id}-{index}"
                for window_id, tabs in self.windows.items()
                for index in range(1, len(tabs) + 1)
            ]
            total = sum(len(tabs) for tabs in self.windows.values())
            return "\n".join([f"Windows: {len(self.windows)}, Total tabs: {total}", *ids])

        window_id = _WINDOW_MATCH.search(script).group(1)
        if window_id not in self.windows:
            return "Window not found"
        if "close aWindow" in script:
            del self.windows[window_id]
            return "Closed"

        tab_index = int(_TAB_CHECK.search(script).group(1))
        tabs = self.windows[window_id]
        if tab_index > len(tabs):
            return "Tab not found"
        buffer = tabs[tab_index - 1]

        if "newline NO" in script:
            return "Sent"
        written = _WRITE_LITERAL.search(script)
        if written:
            command = unescape_applescript(written.group(1))
            if command == "clear":
                buffer.clear()
                return "Cleared"
            buffer.append(f"$ {command}")
            if command.startswith("echo "):
                buffer.append(command[len("echo "):])
            return "Command executed"
        if "set output to contents" in script:
            return "\n".join(buffer)
        raise AssertionError(f"unexpected script: {script}")


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def fake_iterm() -> FakeITerm:
    return FakeITerm()

