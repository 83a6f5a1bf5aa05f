"""Check tool-call arguments against an agent's permission policy."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from . import error_formatter
from .config import PermissionConfig

LOGGER = logging.getLogger(__name__)

COMMAND_TOOLS = frozenset({"Bash"})
DIRECTORY_SEARCH_TOOLS = frozenset({"Glob", "Grep"})


class PermissionValidator:
    """Gate path- and command-bearing tool calls.

    ``check`` returns None when the call may proceed, or the denial text that
    must be returned to the model instead of running the tool.
    """

    def __init__(self, config: PermissionConfig):
        self.config = config

    def check(self, tool_name: str, args: Dict[str, Any]) -> Optional[str]:
        if not isinstance(args, dict):
            return None

        if tool_name in COMMAND_TOOLS:
            command = args.get("command")
            if command and not self.config.command_allowed(command):
                LOGGER.info(f"✗ Command denied for {tool_name}: {command}")
                return error_formatter.command_permission_denied(
                    command=command,
                    tool_name=tool_name,
                    allowed_patterns=self.config.allowed_commands,
                    denied_patterns=self.config.denied_commands,
                    matching_pattern=self.config.find_blocking_command_pattern(command),
                )

        directory_search = tool_name in DIRECTORY_SEARCH_TOOLS
        for path in extract_paths(tool_name, args):
            if self.config.allowed(path, directory_search=directory_search):
                continue
            absolute = self.config.to_absolute(path)
            LOGGER.info(f"✗ Path denied for {tool_name}: {absolute}")
            return error_formatter.permission_denied(
                path=absolute,
                tool_name=tool_name,
                allowed_patterns=self.config.allowed_patterns,
                denied_patterns=self.config.denied_patterns,
                matching_pattern=self.config.find_blocking_pattern(path, directory_search=directory_search),
            )

        return None


def extract_paths(tool_name: str, args: Dict[str, Any]) -> List[str]:
    """Collect every path-like argument, de-duplicated in first-seen order."""
    paths: List[str] = []

    for key in ("file_path", "path"):
        value = args.get(key)
        if isinstance(value, str) and value:
            paths.append(value)

    if tool_name == "Glob":
        pattern = args.get("pattern")
        if isinstance(pattern, str) and pattern and not pattern.startswith("/"):
            base = _glob_base_directory(pattern)
            if base:
                paths.append(base)

    edits = args.get("edits")
    if isinstance(edits, list):
        for edit in edits:
            if isinstance(edit, dict) and edit.get("file_path"):
                paths.append(edit["file_path"])

    return list(dict.fromkeys(paths))


def _glob_base_directory(pattern: str) -> Optional[str]:
    first = pattern.split("/", 1)[0]
    if not first or any(ch in first for ch in "*?[{"):
        return None
    return first
