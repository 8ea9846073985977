"""Terminal operations exposed as MCP tools.

Each public method of :class:`ITermController` decodes the caller's
terminal ID, synthesizes a script, runs it, and turns the outcome into the
text returned to the client. Failures are converted to text here and never
propagate out of an operation.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from . import applescript
from .config import DEFAULT_APP
from .errors import (
    AutomationError,
    InvalidFormat,
    ITermMCPError,
    SessionNotFound,
    UsageError,
)
from .osascript import Runner, run_osascript
from .terminal_id import ID_FORMAT, TerminalAddress, decode

logger = logging.getLogger(__name__)

MAX_REPEAT = 100
# Paragraph breaks as the host counts them: CRLF, CR or LF only.
_PARAGRAPH_BREAK = re.compile(r"\r\n|\r|\n")
NO_OUTPUT = "No output available"
STATUS_UNAVAILABLE = "Could not get iTerm status"


def tail_lines(text: str, lines: Optional[int]) -> str:
    """Keep the last ``lines`` lines of ``text``; shorter text is returned unchanged."""
    if lines is None:
        return text
    split = _PARAGRAPH_BREAK.split(text)
    if len(split) <= lines:
        return text
    return "\n".join(split[-lines:])


def format_error(action: str, terminal_id: str, error: ITermMCPError) -> str:
    """Text reported to the client for a failed operation."""
    if isinstance(error, InvalidFormat):
        return f"Invalid terminal ID format: {terminal_id}. Expected format: {ID_FORMAT}"
    if isinstance(error, SessionNotFound):
        return error.message
    if isinstance(error, UsageError):
        return f"Error: {error.message}"
    # AutomationError detail stays in the server log.
    return f"Failed to {action}: {error.message} (see server log)"


class ITermController:
    """Stateless iTerm2 driver; every call re-derives its target from the terminal ID."""

    def __init__(self, run: Optional[Runner] = None, app_name: str = DEFAULT_APP):
        self._run = run or run_osascript
        self.app_name = app_name

    def _execute(self, script: str) -> str:
        logger.debug("Running AppleScript:\n%s", script)
        return self._run(script)

    def _execute_in_pane(self, terminal_id: str, script: str) -> str:
        """Run a pane-addressed script, mapping the not-found sentinels to SessionNotFound."""
        result = self._execute(script)
        if result in applescript.NOT_FOUND_SENTINELS:
            raise SessionNotFound(terminal_id, result)
        return result

    def _fail(self, action: str, terminal_id: str, error: ITermMCPError) -> str:
        if isinstance(error, AutomationError):
            logger.error("Failed to %s for %s: %s", action, terminal_id or "iTerm", error)
        elif isinstance(error, SessionNotFound):
            logger.info("Failed to %s for %s: %s (%s)", action, terminal_id, error.message, error.sentinel)
        else:
            logger.info("Failed to %s for %s: %s", action, terminal_id, error.message)
        return format_error(action, terminal_id, error)

    # === LIFECYCLE ===

    def open_terminal(self) -> str:
        try:
            result = self._execute(applescript.open_terminal_script(self.app_name))
            address = _parse_open_result(result)
        except ITermMCPError as e:
            return self._fail("open terminal", "", e)

        terminal_id = address.terminal_id
        logger.info("Opened %s", terminal_id)
        return (
            f"Terminal opened with ID: {terminal_id} "
            f"(window: {address.window_id}, tab: {address.tab_index})"
        )

    def close_terminal(self, terminal_id: str) -> str:
        try:
            address = decode(terminal_id)
            result = self._execute(applescript.close_terminal_script(address, self.app_name))
        except ITermMCPError as e:
            return self._fail("close terminal", terminal_id, e)

        if result == applescript.WINDOW_NOT_FOUND:
            return f"Terminal {terminal_id} was not found in iTerm; nothing to close"
        logger.info("Closed %s", terminal_id)
        return f"Terminal {terminal_id} closed"

    def list_terminals(self) -> str:
        try:
            result = self._execute(applescript.list_terminals_script(self.app_name))
        except AutomationError as e:
            logger.error("Failed to list terminals: %s", e)
            result = STATUS_UNAVAILABLE

        status, _, ids = result.partition("\n")
        return f"iTerm status: {status}\nTerminals:\n{ids.strip() or 'None'}"

    # === I/O ===

    def execute_command(self, terminal_id: str, command: str) -> str:
        try:
            address = decode(terminal_id)
            self._execute_in_pane(
                terminal_id, applescript.execute_command_script(address, command, self.app_name)
            )
        except ITermMCPError as e:
            return self._fail("execute command", terminal_id, e)
        return f"Command executed in {terminal_id}: {command}"

    def read_output(self, terminal_id: str, lines: Optional[int] = None) -> str:
        try:
            address = decode(terminal_id)
            if lines is not None and lines <= 0:
                raise UsageError("lines must be a positive integer")
            output = self._execute_in_pane(
                terminal_id, applescript.read_output_script(address, lines, self.app_name)
            )
        except ITermMCPError as e:
            return self._fail("read output", terminal_id, e)
        # The host splits paragraphs on CR as well; re-apply on the trimmed text.
        return tail_lines(output, lines) or NO_OUTPUT

    def clear_terminal(self, terminal_id: str) -> str:
        try:
            address = decode(terminal_id)
            self._execute_in_pane(
                terminal_id, applescript.clear_terminal_script(address, self.app_name)
            )
        except ITermMCPError as e:
            return self._fail("clear terminal", terminal_id, e)
        return f"Terminal {terminal_id} cleared"

    def send_keys(
        self,
        terminal_id: str,
        keys: Optional[str] = None,
        text: Optional[str] = None,
        repeat: int = 1,
    ) -> str:
        """Send a named key or raw text without a trailing newline.

        ``text`` wins when both are given. A ``keys`` value missing from
        the key table is sent as literal text.
        """
        try:
            address = decode(terminal_id)
            if not text and not keys:
                raise UsageError("no keys or text specified")
            if not 1 <= repeat <= MAX_REPEAT:
                raise UsageError(f"repeat must be between 1 and {MAX_REPEAT}")

            if text:
                payload, sent = text, f"text: {text}"
            else:
                sequence = applescript.lookup_key(keys)
                if sequence is not None:
                    payload, sent = sequence, f"key: {applescript.normalize_key_name(keys)}"
                else:
                    payload, sent = keys, f"text: {keys}"

            self._execute_in_pane(
                terminal_id, applescript.send_text_script(address, payload * repeat, self.app_name)
            )
        except ITermMCPError as e:
            return self._fail("send keys", terminal_id, e)

        suffix = f" (x{repeat})" if repeat > 1 else ""
        return f"Sent {sent} to {terminal_id}{suffix}"


def _parse_open_result(result: str) -> TerminalAddress:
    """Parse ``windowId|tabIndex|sessionId`` from the open script."""
    parts = result.split("|")
    if len(parts) != 3 or not parts[1].isdigit():
        raise AutomationError("Unexpected response from iTerm", detail=result)
    try:
        return TerminalAddress(window_id=parts[0], tab_index=int(parts[1]))
    except InvalidFormat:
        raise AutomationError("Unexpected response from iTerm", detail=result)
