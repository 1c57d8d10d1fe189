"""
External tool execution.

Everything that spawns a process goes through ToolRunner. FFmpegTools and
BmxTools build the command lines for the individual tools.
"""

from .bmx import BmxTools
from .errors import ToolError, ToolNotFoundError, ToolTimeoutError
from .ffmpeg import FFmpegTools
from .tools import ToolResult, ToolRunner, find_tool

__all__ = [
    "BmxTools",
    "FFmpegTools",
    "ToolError",
    "ToolNotFoundError",
    "ToolResult",
    "ToolRunner",
    "ToolTimeoutError",
    "find_tool",
]
