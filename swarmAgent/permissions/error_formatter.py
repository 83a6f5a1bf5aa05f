"""Denial messages returned to the model in place of tool output."""

from __future__ import annotations

from typing import Iterable, Optional

from .config import NOT_IN_ALLOWED_LIST

_VERBS = {
    "Read": "read",
    "Write": "write to",
    "Edit": "edit",
    "MultiEdit": "edit",
    "Glob": "access directory",
    "Grep": "search in",
}


def _bullet(patterns: Iterable[str]) -> str:
    return "\n".join(f"  - {p}" for p in patterns)


def _policy_info(
    subject: str,
    matching_pattern: Optional[str],
    allowed: list,
    denied: list,
) -> str:
    if matching_pattern and matching_pattern != NOT_IN_ALLOWED_LIST:
        return f"Blocked by policy: {matching_pattern}"
    if matching_pattern == NOT_IN_ALLOWED_LIST and allowed:
        return f"{subject.capitalize()} not in allowed list. Allowed {subject} patterns:\n{_bullet(allowed)}"
    if denied:
        return f"Denied {subject} patterns:\n{_bullet(denied)}"
    if allowed:
        return f"Allowed {subject} patterns (not matched):\n{_bullet(allowed)}"
    return f"No {subject} policy configured"


def _reminder(action: str, kind: str, workaround: str) -> str:
    return (
        "\n\n<system-reminder>\n"
        f"PERMISSION DENIED: You do not have permission to {action}.\n\n"
        f"This is an UNRECOVERABLE error set by user policy. You MUST stop trying to {kind} matching this pattern.\n\n"
        "Policy explanation:\n"
        f"- This policy blocks ALL {kind.split(' ', 1)[-1]} matching the pattern, not just this one\n"
        f"- Do not retry with other {kind.split(' ', 1)[-1]} matching this pattern - they will also be denied\n"
        f"- Do not try to work around this restriction by {workaround}\n\n"
        "You should inform the user that you cannot proceed due to permission restrictions.\n"
        "</system-reminder>\n"
    )


def permission_denied(
    path: str,
    tool_name: str,
    allowed_patterns: Iterable[str] = (),
    denied_patterns: Iterable[str] = (),
    matching_pattern: Optional[str] = None,
) -> str:
    """Build the denial text for a path-bearing tool call."""
    verb = _VERBS.get(str(tool_name), "access")
    info = _policy_info("path", matching_pattern, list(allowed_patterns), list(denied_patterns))
    reminder = _reminder(
        f"{verb} '{path}'",
        "access files",
        "using different tool arguments",
    )
    return f"Permission denied: Cannot {verb} '{path}'\n{info}{reminder}"


def command_permission_denied(
    command: str,
    tool_name: str,
    allowed_patterns: Iterable = (),
    denied_patterns: Iterable = (),
    matching_pattern: Optional[str] = None,
) -> str:
    """Build the denial text for a command-bearing tool call."""
    allowed = [getattr(p, "pattern", p) for p in allowed_patterns]
    denied = [getattr(p, "pattern", p) for p in denied_patterns]
    info = _policy_info("command", matching_pattern, allowed, denied)
    reminder = _reminder(
        f"execute command '{command}'",
        "execute commands",
        "modifying the command slightly",
    )
    return f"Permission denied: Cannot execute command '{command}'\n{info}{reminder}"
