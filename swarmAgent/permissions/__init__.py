"""Path and command permission policy for agent tool calls."""

from .config import NOT_IN_ALLOWED_LIST, PermissionConfig
from .error_formatter import command_permission_denied, permission_denied
from .path_matcher import matches
from .validator import PermissionValidator, extract_paths

__all__ = [
    "NOT_IN_ALLOWED_LIST",
    "PermissionConfig",
    "PermissionValidator",
    "command_permission_denied",
    "extract_paths",
    "matches",
    "permission_denied",
]
