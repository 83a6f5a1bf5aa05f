#!/usr/bin/env python3
"""swarmAgent - Main entry point.

Usage:
    python main.py examples/team.yml "Summarize the open issues"
"""

import sys

from swarmAgent.main import main

if __name__ == "__main__":
    sys.exit(main())
