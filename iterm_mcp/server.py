"""iTerm2 MCP Server - drive iTerm2 terminals from an MCP client."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .config import Settings
from .logging import configure_logging
from .osascript import make_runner
from .terminal_id import ID_FORMAT
from .terminals import MAX_REPEAT, ITermController

logger = logging.getLogger(__name__)

server = Server("iterm-mcp")

# Replaced by configure() at startup; no per-terminal state lives here.
controller = ITermController()


def configure(settings: Settings) -> ITermController:
    """Rebuild the module controller from ``settings``."""
    global controller
    controller = ITermController(
        run=make_runner(timeout=settings.timeout, executable=settings.osascript),
        app_name=settings.app_name,
    )
    return controller


TERMINAL_ID_PARAM = {
    "terminalId": {"type": "string", "description": f"ID of the terminal ({ID_FORMAT})"},
}


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List all iTerm control tools."""
    return [
        Tool(
            name="open-terminal",
            description="Open a new iTerm window and return its terminal ID",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="execute-command",
            description="Execute a command in a specific terminal (does not wait for it to finish)",
            inputSchema={
                "type": "object",
                "properties": {
                    **TERMINAL_ID_PARAM,
                    "command": {"type": "string", "description": "Command to execute"},
                },
                "required": ["terminalId", "command"],
            },
        ),
        Tool(
            name="read-output",
            description="Read the visible output of a specific terminal",
            inputSchema={
                "type": "object",
                "properties": {
                    **TERMINAL_ID_PARAM,
                    "lines": {"type": "integer", "description": "Number of trailing lines to read (default: all)"},
                },
                "required": ["terminalId"],
            },
        ),
        Tool(
            name="clear-terminal",
            description="Clear the screen of a specific terminal",
            inputSchema={
                "type": "object",
                "properties": {**TERMINAL_ID_PARAM},
                "required": ["terminalId"],
            },
        ),
        Tool(
            name="close-terminal",
            description="Close the iTerm window holding a specific terminal",
            inputSchema={
                "type": "object",
                "properties": {**TERMINAL_ID_PARAM},
                "required": ["terminalId"],
            },
        ),
        Tool(
            name="list-terminals",
            description="List every iTerm tab as a terminal ID, with window and tab counts",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="send-keys",
            description=(
                "Send special keys (ctrl-c, tab, escape, up, f1, ...) or raw text to a terminal "
                "without pressing enter. Useful for TUI programs. 'text' wins if both are given."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    **TERMINAL_ID_PARAM,
                    "keys": {"type": "string", "description": "Key name: ctrl-c, ctrl-d, tab, shift-tab, enter, escape, up, down, left, right, f1-f12, etc."},
                    "text": {"type": "string", "description": "Literal text to type"},
                    "repeat": {"type": "integer", "description": "Send it N times", "default": 1, "minimum": 1, "maximum": MAX_REPEAT},
                },
                "required": ["terminalId"],
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Execute an iTerm control tool."""
    arguments = arguments or {}
    ctl = controller
    try:
        if name == "open-terminal":
            text = await asyncio.to_thread(ctl.open_terminal)

        elif name == "execute-command":
            text = await asyncio.to_thread(ctl.execute_command, arguments["terminalId"], arguments["command"])

        elif name == "read-output":
            lines = arguments.get("lines")
            text = await asyncio.to_thread(
                ctl.read_output, arguments["terminalId"], int(lines) if lines is not None else None
            )

        elif name == "clear-terminal":
            text = await asyncio.to_thread(ctl.clear_terminal, arguments["terminalId"])

        elif name == "close-terminal":
            text = await asyncio.to_thread(ctl.close_terminal, arguments["terminalId"])

        elif name == "list-terminals":
            text = await asyncio.to_thread(ctl.list_terminals)

        elif name == "send-keys":
            repeat = arguments.get("repeat")
            text = await asyncio.to_thread(
                ctl.send_keys,
                arguments["terminalId"],
                arguments.get("keys"),
                arguments.get("text"),
                int(repeat) if repeat is not None else 1,
            )

        else:
            text = f"Unknown tool: {name}"
    except Exception:
        logger.exception("Tool %s failed", name)
        text = f"Failed to run {name}: unexpected server error (see server log)"

    return [TextContent(type="text", text=text)]


async def main(settings: Optional[Settings] = None):
    """Run the MCP server."""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level, log_file=settings.log_file)
    configure(settings)
    logger.info("iTerm2 MCP Server running on stdio (app: %s)", settings.app_name)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="iterm-mcp", description="iTerm2 MCP server (stdio)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR (env: ITERM_MCP_LOG_LEVEL)")
    parser.add_argument("--log-file", help="Also log to this file (env: ITERM_MCP_LOG_FILE)")
    parser.add_argument("--timeout", type=float, help="osascript timeout in seconds (env: ITERM_MCP_TIMEOUT)")
    parser.add_argument("--app", dest="app_name", help="iTerm application name (env: ITERM_MCP_APP)")
    return parser.parse_args(argv)


def cli(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    settings = Settings.from_env().override(
        log_level=args.log_level.upper() if args.log_level else None,
        log_file=args.log_file,
        timeout=args.timeout if args.timeout and args.timeout > 0 else None,
        app_name=args.app_name,
    )
    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        return 0
    except Exception:
        logger.exception("Fatal error in main()")
        return 1
    return 0
