"""AppleScript templates for driving iTerm2.

Each operation has one template function returning complete script text.
Every value interpolated into a string literal goes through
:func:`escape_applescript` or :func:`applescript_string` first; window ids
and tab indexes come from a validated :class:`TerminalAddress`.
"""

from __future__ import annotations

import textwrap
from types import MappingProxyType
from typing import Mapping, Optional

from .config import DEFAULT_APP
from .terminal_id import ID_PREFIX, TerminalAddress

# Sentinels returned by the pane-locating scripts.
WINDOW_NOT_FOUND = "Window not found"
TAB_NOT_FOUND = "Tab not found"
NOT_FOUND_SENTINELS = frozenset({WINDOW_NOT_FOUND, TAB_NOT_FOUND})

CLEAR_COMMAND = "clear"

# Editors built on Electron report this generic process name from System
# Events; activating it by name would not reach the editor.
GENERIC_PROCESS_NAMES = ("Electron",)


def control_code(letter: str) -> int:
    """Control-key code for ``letter``: a=1 ... z=26."""
    if len(letter) != 1 or not "a" <= letter.lower() <= "z":
        raise ValueError(f"Not a control-key letter: {letter!r}")
    return ord(letter.lower()) - ord("a") + 1


def _build_key_sequences() -> dict[str, str]:
    keys = {
        # Special keys
        "tab": "\t", "shift-tab": "\x1b[Z",
        "enter": "\r", "return": "\r",
        "escape": "\x1b", "esc": "\x1b",
        "backspace": "\x7f", "delete": "\x1b[3~",
        "space": " ",
        # Arrow keys
        "up": "\x1b[A", "down": "\x1b[B", "right": "\x1b[C", "left": "\x1b[D",
        # Navigation
        "home": "\x1b[H", "end": "\x1b[F",
        "pageup": "\x1b[5~", "pagedown": "\x1b[6~",
        "insert": "\x1b[2~",
        # Function keys
        "f1": "\x1bOP", "f2": "\x1bOQ", "f3": "\x1bOR", "f4": "\x1bOS",
        "f5": "\x1b[15~", "f6": "\x1b[17~", "f7": "\x1b[18~", "f8": "\x1b[19~",
        "f9": "\x1b[20~", "f10": "\x1b[21~", "f11": "\x1b[23~", "f12": "\x1b[24~",
    }
    for code in range(ord("a"), ord("z") + 1):
        letter = chr(code)
        keys[f"ctrl-{letter}"] = chr(control_code(letter))
    return keys


# Key name to control sequence mapping for send-keys
KEY_SEQUENCES: Mapping[str, str] = MappingProxyType(_build_key_sequences())


def normalize_key_name(name: str) -> str:
    """Lower-case a key name; ``ctrl+c`` is accepted as ``ctrl-c``."""
    return name.strip().lower().replace("+", "-")


def lookup_key(name: str) -> Optional[str]:
    """Case-insensitive key lookup; None if the name is not a known key."""
    return KEY_SEQUENCES.get(normalize_key_name(name))


# =============================================================================
# ESCAPING
# =============================================================================

def escape_applescript(text: str) -> str:
    """Escape text for an AppleScript double-quoted string literal.

    Backslashes are doubled before quotes are escaped; the other order
    would double the backslashes inserted for the quotes.
    """
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _is_control(ch: str) -> bool:
    return ord(ch) < 32 or ord(ch) == 127


def applescript_string(text: str) -> str:
    """Render ``text`` as an AppleScript string expression.

    Printable runs become quoted literals; each control byte becomes
    ``(ASCII character N)`` since a literal cannot carry it reliably.
    """
    parts: list[str] = []
    run: list[str] = []
    for ch in text:
        if _is_control(ch):
            if run:
                parts.append(f'"{escape_applescript("".join(run))}"')
                run = []
            parts.append(f"(ASCII character {ord(ch)})")
        else:
            run.append(ch)
    if run:
        parts.append(f'"{escape_applescript("".join(run))}"')
    return " & ".join(parts) if parts else '""'


# =============================================================================
# TEMPLATES
# =============================================================================

def _pane_script(address: TerminalAddress, body: str, app: str) -> str:
    """Locate the addressed tab and run ``body`` inside its current session.

    ``body`` is inserted verbatim, since it may hold a multi-line string
    literal, and must end with a ``return``. A missing window or tab
    returns one of the not-found sentinels instead.
    """
    return f'''
tell application "{escape_applescript(app)}"
    repeat with aWindow in windows
        if ((id of aWindow) as string) = "{address.window_id}" then
            tell aWindow
                if (count of tabs) >= {address.tab_index} then
                    tell current session of tab {address.tab_index}
{body.strip()}
                    end tell
                else
                    return "{TAB_NOT_FOUND}"
                end if
            end tell
        end if
    end repeat
end tell
return "{WINDOW_NOT_FOUND}"
'''


def open_terminal_script(app: str = DEFAULT_APP) -> str:
    """Create a window with the default profile and hand focus back.

    Returns ``windowId|tabIndex|sessionId``.
    """
    app_name = escape_applescript(app)
    generic = ", ".join(f'"{escape_applescript(n)}"' for n in GENERIC_PROCESS_NAMES)
    return f'''
-- Remember who had focus
tell application "System Events"
    set frontProcess to first application process whose frontmost is true
    set originalApp to name of frontProcess
    set originalPid to unix id of frontProcess
end tell

set originalWindowId to missing value
if originalApp is "{app_name}" then
    tell application "{app_name}"
        if (count of windows) > 0 then set originalWindowId to id of current window
    end tell
end if

tell application "{app_name}"
    set newWindow to (create window with default profile)
    set newWindowId to id of newWindow
    tell current session of current tab of newWindow
        set sessionId to id
    end tell
end tell

-- Restore focus
if originalApp is "{app_name}" then
    if originalWindowId is not missing value then
        tell application "{app_name}"
            repeat with aWindow in windows
                if id of aWindow is originalWindowId then
                    select aWindow
                    exit repeat
                end if
            end repeat
        end tell
    end if
else if originalApp is in {{{generic}}} then
    tell application "System Events"
        set frontmost of (first application process whose unix id is originalPid) to true
    end tell
else
    tell application originalApp to activate
end if

return (newWindowId as string) & "|1|" & sessionId
'''


def execute_command_script(address: TerminalAddress, command: str, app: str = DEFAULT_APP) -> str:
    body = f'write text "{escape_applescript(command)}"\nreturn "Command executed"'
    return _pane_script(address, body, app)


def clear_terminal_script(address: TerminalAddress, app: str = DEFAULT_APP) -> str:
    body = f'write text "{CLEAR_COMMAND}"\nreturn "Cleared"'
    return _pane_script(address, body, app)


def read_output_script(address: TerminalAddress, lines: Optional[int] = None, app: str = DEFAULT_APP) -> str:
    """Read the session contents, keeping only the last ``lines`` paragraphs if given."""
    body = "set output to contents\n"
    if lines is not None:
        body += textwrap.dedent(f'''\
            set outputLines to paragraphs of output
            set lineCount to count of outputLines
            if lineCount > {int(lines)} then
                set startLine to lineCount - {int(lines)} + 1
                set output to items startLine thru lineCount of outputLines
                set AppleScript's text item delimiters to linefeed
                set output to output as string
                set AppleScript's text item delimiters to ""
            end if
        ''')
    body += "return output\n"
    return _pane_script(address, body, app)


def send_text_script(address: TerminalAddress, text: str, app: str = DEFAULT_APP) -> str:
    """Write ``text`` to the session without the trailing newline ``write text`` adds."""
    body = f'write text {applescript_string(text)} newline NO\nreturn "Sent"'
    return _pane_script(address, body, app)


def close_terminal_script(address: TerminalAddress, app: str = DEFAULT_APP) -> str:
    """Close the whole window holding the addressed tab."""
    return f'''
tell application "{escape_applescript(app)}"
    repeat with aWindow in windows
        if ((id of aWindow) as string) = "{address.window_id}" then
            close aWindow
            return "Closed"
        end if
    end repeat
end tell
return "{WINDOW_NOT_FOUND}"
'''


def list_terminals_script(app: str = DEFAULT_APP) -> str:
    """Status line followed by one terminal identifier per tab."""
    return f'''
tell application "{escape_applescript(app)}"
    set windowCount to count of windows
    set totalTabs to 0
    set terminalIds to {{}}
    repeat with aWindow in windows
        set windowId to (id of aWindow) as string
        set tabCount to count of tabs of aWindow
        set totalTabs to totalTabs + tabCount
        repeat with tabIndex from 1 to tabCount
            set end of terminalIds to "{ID_PREFIX}-" & windowId & "-" & tabIndex
        end repeat
    end repeat
end tell
set AppleScript's text item delimiters to linefeed
set idText to terminalIds as string
set AppleScript's text item delimiters to ""
return "Windows: " & windowCount & ", Total tabs: " & totalTabs & linefeed & idText
'''
