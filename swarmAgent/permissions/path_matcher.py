"""Glob matching for permission patterns.

Patterns follow shell-glob rules with path awareness:

- ``*`` and ``?`` never match ``/``
- ``**/`` matches zero or more directories
- a trailing ``**`` matches everything below its directory
- ``[abc]`` / ``[!abc]`` character classes
- ``{a,b}`` alternation (may nest)

A leading ``!`` is ignored so negation-style patterns from other tools still
compare against the positive form.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import List


def matches(pattern: str, path: str) -> bool:
    """Return True when ``path`` matches the glob ``pattern`` in full."""
    if pattern.startswith("!"):
        pattern = pattern[1:]
    return compile_glob(pattern).fullmatch(path) is not None


@lru_cache(maxsize=1024)
def compile_glob(pattern: str) -> "re.Pattern[str]":
    return re.compile(translate(pattern), re.DOTALL)


def translate(pattern: str) -> str:
    """Translate a glob pattern into a regular expression source string."""
    out: List[str] = []
    i, n = 0, len(pattern)

    while i < n:
        c = pattern[i]

        if c == "*":
            if pattern.startswith("**/", i) and (i == 0 or pattern[i - 1] == "/"):
                out.append("(?:[^/]*/)*")
                i += 3
                continue
            if pattern.startswith("**", i) and i + 2 == n and (i == 0 or pattern[i - 1] == "/"):
                out.append(".*")
                i += 2
                continue
            # Collapse runs like "***" into a single segment wildcard
            while i < n and pattern[i] == "*":
                i += 1
            out.append("[^/]*")
            continue

        if c == "?":
            out.append("[^/]")
            i += 1
            continue

        if c == "[":
            end = _find_class_end(pattern, i)
            if end < 0:
                out.append(re.escape(c))
                i += 1
                continue
            body = pattern[i + 1:end]
            negate = body[:1] in ("!", "^")
            if negate:
                body = body[1:]
            body = body.replace("\\", "\\\\")
            out.append(f"[{'^/' if negate else ''}{body}]")
            i = end + 1
            continue

        if c == "{":
            end = _find_brace_end(pattern, i)
            if end < 0:
                out.append(re.escape(c))
                i += 1
                continue
            alternatives = _split_alternatives(pattern[i + 1:end])
            out.append("(?:" + "|".join(translate(alt) for alt in alternatives) + ")")
            i = end + 1
            continue

        if c == "\\" and i + 1 < n:
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue

        out.append(re.escape(c))
        i += 1

    return "".join(out)


def _find_class_end(pattern: str, start: int) -> int:
    j = start + 1
    if j < len(pattern) and pattern[j] in ("!", "^"):
        j += 1
    # A "]" right after the opening bracket is literal
    if j < len(pattern) and pattern[j] == "]":
        j += 1
    return pattern.find("]", j)


def _find_brace_end(pattern: str, start: int) -> int:
    depth = 0
    for j in range(start, len(pattern)):
        if pattern[j] == "{":
            depth += 1
        elif pattern[j] == "}":
            depth -= 1
            if depth == 0:
                return j
    return -1


def _split_alternatives(body: str) -> List[str]:
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    for ch in body:
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        current.append(ch)
    parts.append("".join(current))
    return parts
