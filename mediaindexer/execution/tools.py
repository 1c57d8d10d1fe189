"""
External tool runner.

Every artifact is produced by shelling out to an external tool (ffmpeg,
ffprobe, bmxtranswrap, mxf2raw) and write-in-progress detection asks lsof.
This module is the only place that spawns processes.

Design rules:
- One blocking subprocess per invocation
- Hard timeout per invocation; the child is killed when it expires
- stdout is either captured or streamed straight into a file
- Tool failure never raises; callers use ToolResult.raise_for_status()
- Binary lookup is cached per runner
"""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .errors import ToolError, ToolNotFoundError, ToolTimeoutError

logger = logging.getLogger(__name__)


# Searched after PATH, in order
COMMON_TOOL_DIRS = [
    "/usr/local/bin",
    "/usr/bin",
    "/opt/homebrew/bin",
]


def find_tool(name: str) -> Optional[str]:
    """Find a tool binary in PATH or in common install locations."""
    tool_path = shutil.which(name)
    if tool_path:
        return tool_path

    for directory in COMMON_TOOL_DIRS:
        candidate = os.path.join(directory, name)
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate

    return None


@dataclass
class ToolResult:
    """Outcome of a single tool invocation."""

    command: List[str]
    returncode: Optional[int]
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    not_found: bool = False
    timeout: Optional[float] = None

    @property
    def tool(self) -> str:
        return os.path.basename(self.command[0]) if self.command else "unknown"

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out and not self.not_found

    @property
    def output(self) -> str:
        """stdout and stderr combined, for tools that report on either."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    def failure_reason(self) -> str:
        """Human-readable reason; empty string if the run succeeded."""
        if self.not_found:
            return f"{self.tool} not found"
        if self.timed_out:
            return f"{self.tool} timed out after {self.timeout:g}s"
        if self.returncode != 0:
            tail = self.stderr.strip().splitlines()[-1:] if self.stderr else []
            reason = f"{self.tool} exited with code {self.returncode}"
            if tail:
                reason += f": {tail[0][:200]}"
            return reason
        return ""

    def raise_for_status(self) -> None:
        """Raise the matching ToolError if the run did not succeed."""
        if self.not_found:
            raise ToolNotFoundError(self.tool)
        if self.timed_out:
            raise ToolTimeoutError(self.tool, self.timeout or 0, command=self.command)
        if self.returncode != 0:
            raise ToolError(
                self.tool,
                self.failure_reason(),
                returncode=self.returncode,
                command=self.command,
            )


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


class ToolRunner:
    """
    Runs external tools with a timeout.

    Args:
        timeout: Default per-invocation timeout in seconds.
            None or 0 disables the timeout.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout or None
        self._paths: Dict[str, Optional[str]] = {}

    def which(self, name: str) -> Optional[str]:
        """Resolve (and cache) the absolute path of a tool."""
        if name not in self._paths:
            self._paths[name] = find_tool(name)
        return self._paths[name]

    def available(self, name: str) -> bool:
        return self.which(name) is not None

    def run(
        self,
        name: str,
        args: Sequence[str],
        stdout_path: Optional[Path] = None,
        timeout: Optional[float] = None,
    ) -> ToolResult:
        """
        Run a tool to completion.

        Args:
            name: Tool name, resolved through which()
            args: Arguments after the binary
            stdout_path: If set, stdout is written to this file instead of
                being captured
            timeout: Overrides the runner default for this call

        Returns:
            ToolResult describing the run
        """
        effective_timeout = timeout if timeout is not None else self.timeout
        tool_path = self.which(name)

        if tool_path is None:
            return ToolResult(command=[name, *args], returncode=None, not_found=True)

        cmd = [tool_path, *args]
        logger.debug(f"Executing: {' '.join(cmd)}")

        try:
            if stdout_path is not None:
                with open(stdout_path, "wb") as out:
                    completed = subprocess.run(
                        cmd,
                        stdin=subprocess.DEVNULL,
                        stdout=out,
                        stderr=subprocess.PIPE,
                        timeout=effective_timeout,
                    )
            else:
                completed = subprocess.run(
                    cmd,
                    stdin=subprocess.DEVNULL,
                    capture_output=True,
                    timeout=effective_timeout,
                )
        except subprocess.TimeoutExpired as e:
            logger.warning(f"{name} timed out after {effective_timeout}s")
            result = ToolResult(
                command=cmd,
                returncode=None,
                stdout=_decode(e.stdout) if isinstance(e.stdout, bytes) else "",
                stderr=_decode(e.stderr) if isinstance(e.stderr, bytes) else "",
                timed_out=True,
                timeout=effective_timeout,
            )
        except FileNotFoundError:
            # Binary vanished between lookup and exec
            self._paths.pop(name, None)
            result = ToolResult(command=cmd, returncode=None, not_found=True)
        except OSError as e:
            logger.error(f"Could not start {name}: {e}")
            result = ToolResult(command=cmd, returncode=None, stderr=str(e))
        else:
            result = ToolResult(
                command=cmd,
                returncode=completed.returncode,
                stdout=_decode(completed.stdout) if stdout_path is None else "",
                stderr=_decode(completed.stderr),
            )
            logger.debug(f"{name} exited with code {completed.returncode}")

        return result
