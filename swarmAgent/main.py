"""swarmAgent CLI: run a YAML swarm (or workflow) on one prompt.

Usage:
    python main.py team.yml "Refactor the billing module"
    python main.py team.yml --prompt-file task.md --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from swarmAgent.config import get_settings, load_swarm_definition
from swarmAgent.utils import SwarmError, format_exception, setup_logging

LOGGER = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Run a swarm of delegating agents defined in YAML",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("config", type=str, help="Swarm YAML file")
    parser.add_argument("prompt", type=str, nargs="?", help="Task for the lead agent (or the start node)")
    parser.add_argument("--prompt-file", type=str, help="Read the task from a file")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--log-events", action="store_true", help="Print every event record to stderr")
    parser.add_argument("--log-level", type=str, help="Console/file log level (default: SWARM_LOG_LEVEL)")
    return parser.parse_args(argv)


async def async_main(args) -> int:
    if args.prompt_file:
        prompt = Path(args.prompt_file).read_text(encoding="utf-8")
    elif args.prompt:
        prompt = args.prompt
    else:
        prompt = sys.stdin.read()
    if not prompt.strip():
        print("Error: empty prompt", file=sys.stderr)
        return 2

    definition = load_swarm_definition(args.config)
    runner = definition.build()
    if args.log_events:
        runner.on_log(lambda record: print(json.dumps(record, ensure_ascii=False, default=str), file=sys.stderr))

    result = await runner.execute(prompt)

    if args.json:
        print(result.to_json(indent=2))
    elif result.success:
        print(result.content or "")
    else:
        print(f"Error: {format_exception(result.error)}", file=sys.stderr)
    return 0 if result.success else 1


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    level = getattr(logging, (args.log_level or settings.observability.log_level).upper(), logging.INFO)
    setup_logging(level=level)

    try:
        return asyncio.run(async_main(args))
    except SwarmError as e:
        LOGGER.error(f"✗ {format_exception(e)}")
        print(f"Error: {e.user_message}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
