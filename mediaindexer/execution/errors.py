"""
External tool errors.

All errors are non-fatal to the daemon. They indicate that one tool
invocation failed; the file being processed is retried on the next pass.
"""

from typing import List, Optional


class ToolError(Exception):
    """
    Base exception for external tool failures.

    Raised by ToolResult.raise_for_status() when a tool exits non-zero.
    """

    def __init__(
        self,
        tool: str,
        message: str,
        returncode: Optional[int] = None,
        command: Optional[List[str]] = None,
    ):
        self.tool = tool
        self.returncode = returncode
        self.command = command or []
        super().__init__(f"[{tool}] {message}")


class ToolNotFoundError(ToolError):
    """Tool binary is not installed or not in PATH."""

    def __init__(self, tool: str):
        super().__init__(tool, "not found in PATH")


class ToolTimeoutError(ToolError):
    """Tool did not exit within the configured timeout and was killed."""

    def __init__(self, tool: str, timeout: float, command: Optional[List[str]] = None):
        self.timeout = timeout
        super().__init__(tool, f"timed out after {timeout:g}s", command=command)
