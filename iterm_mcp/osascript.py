"""Run AppleScript through the osascript interpreter."""

from __future__ import annotations

import logging
import subprocess
from typing import Callable, Optional

from .config import DEFAULT_OSASCRIPT, DEFAULT_TIMEOUT
from .errors import AutomationError

logger = logging.getLogger(__name__)

# Anything that turns script text into trimmed stdout; tests substitute a fake.
Runner = Callable[[str], str]


def run_osascript(
    script: str,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    executable: str = DEFAULT_OSASCRIPT,
) -> str:
    """Execute ``script`` and return its stdout with surrounding whitespace removed.

    The script is fed on stdin (``osascript -``), so like a quoted heredoc it
    reaches the interpreter verbatim and needs no shell escaping. Warnings on
    stderr with a zero exit status are logged, not raised.

    Raises:
        AutomationError: the interpreter is missing, timed out, or exited non-zero.
    """
    try:
        result = subprocess.run(
            [executable, "-"],
            input=script,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.error("AppleScript timed out after %ss", timeout)
        raise AutomationError("AppleScript timed out", detail=f"no result after {timeout}s")
    except OSError as e:
        logger.error("Could not start %s: %s", executable, e)
        raise AutomationError(f"Could not start {executable}", detail=str(e))

    stderr = result.stderr.strip()
    if result.returncode != 0:
        logger.error("AppleScript failed (exit %d): %s", result.returncode, stderr)
        raise AutomationError(
            "AppleScript execution failed", detail=stderr, returncode=result.returncode
        )
    if stderr:
        logger.warning("iTerm AppleScript warning: %s", stderr)

    return result.stdout.strip()


def make_runner(timeout: Optional[float] = DEFAULT_TIMEOUT, executable: str = DEFAULT_OSASCRIPT) -> Runner:
    """Bind timeout and interpreter path into a single-argument runner."""

    def run(script: str) -> str:
        return run_osascript(script, timeout=timeout, executable=executable)

    return run
