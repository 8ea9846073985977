from __future__ import annotations

import string

import pytest

from iterm_mcp import applescript
from iterm_mcp.applescript import (
    KEY_SEQUENCES,
    applescript_string,
    control_code,
    escape_applescript,
    lookup_key,
)
from iterm_mcp.terminal_id import TerminalAddress

from conftest import unescape_applescript

ADDRESS = TerminalAddress(window_id="100", tab_index=2)


class TestEscaping:
    def test_quotes_and_backslashes(self) -> None:
        original = 'He said "hi"\\n'
        escaped = escape_applescript(original)
        assert escaped == 'He said \\"hi\\"\\\\n'
        assert unescape_applescript(escaped) == original

    def test_backslashes_are_doubled_before_quotes(self) -> None:
        assert escape_applescript('\\"') == '\\\\\\"'

    def test_no_shell_escaping(self) -> None:
        assert escape_applescript("echo '$HOME' `date`") == "echo '$HOME' `date`"

    @pytest.mark.parametrize("text", ["", "plain", '"', "\\", '\\\\""', 'a "b" \\c\\ "'])
    def test_round_trip(self, text: str) -> None:
        assert unescape_applescript(escape_applescript(text)) == text


class TestKeyTable:
    @pytest.mark.parametrize("letter", list(string.ascii_lowercase))
    def test_control_code_is_alphabet_position(self, letter: str) -> None:
        assert control_code(letter) == string.ascii_lowercase.index(letter) + 1
        assert KEY_SEQUENCES[f"ctrl-{letter}"] == chr(control_code(letter))

    @pytest.mark.parametrize("bad", ["", "ab", "1", "-"])
    def test_control_code_rejects_non_letters(self, bad: str) -> None:
        with pytest.raises(ValueError):
            control_code(bad)

    def test_lookup_is_case_insensitive(self) -> None:
        assert lookup_key("CTRL-C") == lookup_key("ctrl-c") == "\x03"
        assert lookup_key("Ctrl+C") == "\x03"
        assert lookup_key(" Escape ") == "\x1b"

    def test_unknown_key(self) -> None:
        assert lookup_key("hello") is None

    def test_table_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            KEY_SEQUENCES["tab"] = "x"  # type: ignore[index]

    def test_expected_entries(self) -> None:
        for name in ["tab", "shift-tab", "enter", "escape", "up", "down", "left", "right"]:
            assert name in KEY_SEQUENCES
        for n in range(1, 13):
            assert KEY_SEQUENCES[f"f{n}"].startswith("\x1b")

    @pytest.mark.parametrize("name", sorted(KEY_SEQUENCES))
    def test_every_entry_renders(self, name: str) -> None:
        expression = applescript_string(KEY_SEQUENCES[name])
        assert expression
        assert "\x1b" not in expression
        assert all(ord(ch) >= 32 for ch in expression)


class TestStringExpression:
    def test_printable_text_is_a_single_literal(self) -> None:
        assert applescript_string('say "hi"') == '"say \\"hi\\""'

    def test_control_bytes_use_ascii_character(self) -> None:
        assert applescript_string("\x03") == "(ASCII character 3)"
        assert applescript_string("\x1b[A") == '(ASCII character 27) & "[A"'
        assert applescript_string("a\tb") == '"a" & (ASCII character 9) & "b"'

    def test_empty(self) -> None:
        assert applescript_string("") == '""'

    def test_non_ascii_stays_literal(self) -> None:
        assert applescript_string("héllo ✓") == '"héllo ✓"'


class TestTemplates:
    def test_pane_scripts_locate_window_and_tab(self) -> None:
        scripts = [
            applescript.execute_command_script(ADDRESS, "ls"),
            applescript.clear_terminal_script(ADDRESS),
            applescript.read_output_script(ADDRESS),
            applescript.send_text_script(ADDRESS, "q"),
        ]
        for script in scripts:
            assert 'tell application "iTerm2"' in script
            assert '((id of aWindow) as string) = "100"' in script
            assert "(count of tabs) >= 2" in script
            assert "tell current session of tab 2" in script
            assert 'return "Tab not found"' in script
            assert 'return "Window not found"' in script

    def test_execute_command_escapes_once(self) -> None:
        script = applescript.execute_command_script(ADDRESS, 'echo "a\\b"')
        assert 'write text "echo \\"a\\\\b\\""' in script
        assert "newline NO" not in script

    def test_multiline_command_is_not_reindented(self) -> None:
        script = applescript.execute_command_script(ADDRESS, "for i in 1 2; do\n  echo $i\ndone")
        assert 'write text "for i in 1 2; do\n  echo $i\ndone"' in script

    def test_clear_writes_clear(self) -> None:
        assert 'write text "clear"' in applescript.clear_terminal_script(ADDRESS)

    def test_read_output_without_lines_returns_everything(self) -> None:
        script = applescript.read_output_script(ADDRESS)
        assert "set output to contents" in script
        assert "paragraphs of output" not in script

    def test_read_output_truncates_to_last_lines(self) -> None:
        script = applescript.read_output_script(ADDRESS, lines=5)
        assert "if lineCount > 5 then" in script
        assert "set startLine to lineCount - 5 + 1" in script
        assert script.index("set output to contents") < script.index("return output")

    def test_send_text_suppresses_newline(self) -> None:
        script = applescript.send_text_script(ADDRESS, "\x03")
        assert "write text (ASCII character 3) newline NO" in script

    def test_close_addresses_window_only(self) -> None:
        script = applescript.close_terminal_script(ADDRESS)
        assert '((id of aWindow) as string) = "100"' in script
        assert "close aWindow" in script
        assert "count of tabs" not in script

    def test_list_builds_identifiers(self) -> None:
        script = applescript.list_terminals_script()
        assert 'set end of terminalIds to "iterm-" & windowId & "-" & tabIndex' in script
        assert '"Windows: " & windowCount & ", Total tabs: " & totalTabs' in script

    def test_open_restores_focus(self) -> None:
        script = applescript.open_terminal_script()
        assert "create window with default profile" in script
        assert "set originalApp to name of frontProcess" in script
        assert 'else if originalApp is in {"Electron"} then' in script
        assert "whose unix id is originalPid" in script
        assert "tell application originalApp to activate" in script
        assert script.rstrip().endswith('return (newWindowId as string) & "|1|" & sessionId')

    def test_app_name_is_configurable(self) -> None:
        assert 'tell application "iTerm"' in applescript.list_terminals_script(app="iTerm")
        assert 'tell application "iTerm"' in applescript.open_terminal_script(app="iTerm")
        assert 'tell application "iTerm"' in applescript.close_terminal_script(ADDRESS, app="iTerm")
