"""Logging utilities for swarmAgent."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

ROOT_LOGGER_NAME = "swarmAgent"


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Setup logging configuration for swarmAgent.

    Args:
        level: Console logging level (default: INFO)
        log_dir: Directory for the session log file. Defaults to the
            configured ``SWARM_LOG_DIR``.

    Returns:
        Configured logger instance
    """
    if log_dir is None:
        from swarmAgent.config.settings import get_settings

        log_dir = Path(get_settings().observability.log_dir)

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"swarm_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)  # Capture all child logs
    logger.propagate = False

    logger.handlers = []

    # File handler (detailed logs)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))

    # Console handler (user-friendly)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(max(level, logging.WARNING))
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logger.info("=" * 80)
    logger.info("swarmAgent session started")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 80)

    return logger


def _truncate(text: str, limit: int = 500) -> str:
    if len(text) > limit:
        return text[:limit] + "... (truncated)"
    return text


def log_tool_call(logger: logging.Logger, agent_name: str, tool_name: str, args: Dict[str, Any]) -> None:
    """Log tool invocation.

    Args:
        logger: Logger instance
        agent_name: Agent issuing the call
        tool_name: Name of the tool being called
        args: Tool arguments
    """
    logger.info(f"[{agent_name}] Tool call: {tool_name}")
    logger.debug(f"  Arguments: {json.dumps(args, ensure_ascii=False, indent=2, default=str)}")


def log_tool_result(logger: logging.Logger, agent_name: str, tool_name: str, result: Any, success: bool = True) -> None:
    """Log tool execution result.

    Args:
        logger: Logger instance
        agent_name: Agent that issued the call
        tool_name: Name of the tool
        result: Tool execution result
        success: Whether the tool executed successfully
    """
    status = "✓ Success" if success else "✗ Failed"
    logger.info(f"[{agent_name}] Tool result: {tool_name} - {status}")
    logger.debug(f"  Result: {_truncate(str(result))}")


def log_hook_result(logger: logging.Logger, event: str, hook_name: str, action: str) -> None:
    """Log a hook that changed control flow."""
    logger.info(f"Hook {hook_name} on {event} → {action}")


def log_node_transition(logger: logging.Logger, node_name: str, phase: str, details: str = "") -> None:
    """Log workflow node start/stop.

    Args:
        logger: Logger instance
        node_name: Workflow node name
        phase: "start" or "stop"
        details: Extra detail appended to the line
    """
    logger.info(f"\n{'=' * 80}")
    logger.info(f"Node {phase}: {node_name}")
    if details:
        logger.info(f"  → {details}")
    logger.info(f"{'=' * 80}\n")


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Log error with context.

    Args:
        logger: Logger instance
        error: Exception instance
        context: Additional context about where the error occurred
    """
    logger.error(f"Error occurred: {type(error).__name__}: {str(error)}")
    if context:
        logger.error(f"  Context: {context}")
    logger.exception("Full traceback:", exc_info=error)
