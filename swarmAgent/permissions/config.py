"""Per-agent path and command permission policy."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Tuple

from swarmAgent.utils.error_handler import ConfigurationError

from . import path_matcher

# Returned by find_blocking_* when nothing is denied but the allow-list misses
NOT_IN_ALLOWED_LIST = "(not in allowed list)"


@dataclass(frozen=True)
class PermissionConfig:
    """Immutable allow/deny policy for one agent.

    Denied patterns are always checked first and always win. An empty
    allow-list allows everything that is not denied.

    Build instances with :meth:`from_dict` so relative patterns are expanded
    against the agent's working directory.
    """

    base_directory: str
    allowed_patterns: Tuple[str, ...] = ()
    denied_patterns: Tuple[str, ...] = ()
    allowed_commands: Tuple["re.Pattern[str]", ...] = field(default=())
    denied_commands: Tuple["re.Pattern[str]", ...] = field(default=())

    @classmethod
    def from_dict(cls, config: Optional[Mapping[str, Any]], base_directory: str = ".") -> "PermissionConfig":
        """Build a policy from ``allowed_paths`` / ``denied_paths`` /
        ``allowed_commands`` / ``denied_commands`` lists.

        Raises:
            ConfigurationError: If a command pattern is not a valid regex
        """
        config = config or {}
        base = os.path.abspath(os.path.expanduser(str(base_directory)))

        return cls(
            base_directory=base,
            allowed_patterns=_expand_patterns(config.get("allowed_paths"), base),
            denied_patterns=_expand_patterns(config.get("denied_paths"), base),
            allowed_commands=_compile_regexes(config.get("allowed_commands")),
            denied_commands=_compile_regexes(config.get("denied_commands")),
        )

    # ========== Paths ==========

    def to_absolute(self, path: str) -> str:
        """Resolve ``path`` against the base directory; absolute paths pass through."""
        if path.startswith("/"):
            return path
        return os.path.normpath(os.path.join(self.base_directory, os.path.expanduser(path)))

    def allowed(self, path: str, directory_search: bool = False) -> bool:
        """Check whether ``path`` may be accessed.

        Args:
            path: Relative or absolute path
            directory_search: The path is a traversal root for a recursive
                tool (Glob/Grep). It is allowed when any allowed pattern lives
                below it, even if the directory itself is not a leaf match.
        """
        absolute = self.to_absolute(path)

        if self._matches_any(self.denied_patterns, absolute):
            return False

        if not self.allowed_patterns:
            return True

        if directory_search and self._allowed_as_search_base(absolute):
            return True

        return self._matches_any(self.allowed_patterns, absolute)

    def find_blocking_pattern(self, path: str, directory_search: bool = False) -> Optional[str]:
        """Return the denied pattern blocking ``path``, ``NOT_IN_ALLOWED_LIST``, or None."""
        absolute = self.to_absolute(path)

        for pattern in self.denied_patterns:
            if path_matcher.matches(pattern, absolute):
                return pattern

        if not self.allowed_patterns:
            return None

        if directory_search and self._allowed_as_search_base(absolute):
            return None

        if self._matches_any(self.allowed_patterns, absolute):
            return None

        return NOT_IN_ALLOWED_LIST

    # ========== Commands ==========

    def command_allowed(self, command: str) -> bool:
        if any(p.search(command) for p in self.denied_commands):
            return False
        if not self.allowed_commands:
            return True
        return any(p.search(command) for p in self.allowed_commands)

    def find_blocking_command_pattern(self, command: str) -> Optional[str]:
        """Return the denied regex source blocking ``command``, ``NOT_IN_ALLOWED_LIST``, or None."""
        for pattern in self.denied_commands:
            if pattern.search(command):
                return pattern.pattern

        if not self.allowed_commands:
            return None

        if any(p.search(command) for p in self.allowed_commands):
            return None

        return NOT_IN_ALLOWED_LIST

    @property
    def is_unrestricted(self) -> bool:
        return not (
            self.allowed_patterns or self.denied_patterns
            or self.allowed_commands or self.denied_commands
        )

    # ========== Internals ==========

    @staticmethod
    def _matches_any(patterns: Iterable[str], absolute: str) -> bool:
        return any(path_matcher.matches(p, absolute) for p in patterns)

    def _allowed_as_search_base(self, directory: str) -> bool:
        prefix = directory if directory.endswith("/") else directory + "/"
        return any(p.startswith(prefix) or p == directory for p in self.allowed_patterns)


def _expand_patterns(patterns: Optional[Iterable[str]], base: str) -> Tuple[str, ...]:
    if not patterns:
        return ()
    if isinstance(patterns, str):
        patterns = [patterns]
    expanded = []
    for pattern in patterns:
        pattern = str(pattern)
        expanded.append(pattern if pattern.startswith("/") else os.path.join(base, pattern))
    return tuple(expanded)


def _compile_regexes(patterns: Optional[Iterable[str]]) -> Tuple["re.Pattern[str]", ...]:
    if not patterns:
        return ()
    if isinstance(patterns, str):
        patterns = [patterns]
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(str(pattern)))
        except re.error as e:
            raise ConfigurationError(f"Invalid regex pattern '{pattern}': {e}") from e
    return tuple(compiled)
