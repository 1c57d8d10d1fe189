"""
Readiness checks - external tool availability at startup.

Principles:
- Explicit: every check returns pass, fail or warn with a clear message
- Honest: no silent failures, no auto-fixing
"""

from .checks import (
    CheckResult,
    CheckStatus,
    OPTIONAL_TOOLS,
    REQUIRED_TOOLS,
    check_tool,
    is_ready,
    run_all_checks,
)

__all__ = [
    "CheckResult",
    "CheckStatus",
    "OPTIONAL_TOOLS",
    "REQUIRED_TOOLS",
    "check_tool",
    "is_ready",
    "run_all_checks",
]
