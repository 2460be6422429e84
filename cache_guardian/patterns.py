"""
Redis glob patterns.

The guardian re-checks every scanned key against the key pattern, so the
check has to use the same dialect as SCAN MATCH: '*' and '?', character
classes with '^' negation and 'a-z' ranges, and backslash escapes both
inside and outside classes. fnmatch differs on the last two.
"""

import re
from typing import List, Pattern, Tuple


def _class_to_regex(pattern: str, i: int) -> Tuple[str, int]:
    """Translate a class starting just after '['; returns (regex, next index)"""
    n = len(pattern)
    negate = False
    if i < n and pattern[i] == "^":
        negate = True
        i += 1

    items: List[str] = []
    while i < n and pattern[i] != "]":
        char = pattern[i]
        if char == "\\" and i + 1 < n:
            items.append(re.escape(pattern[i + 1]))
            i += 2
        elif i + 2 < n and pattern[i + 1] == "-":
            start, end = sorted((char, pattern[i + 2]))
            items.append(f"{re.escape(start)}-{re.escape(end)}")
            i += 3
        else:
            items.append(re.escape(char))
            i += 1

    # Redis lets an unterminated class run to the end of the pattern
    if i < n:
        i += 1

    if not items:
        return ("." if negate else "(?!)"), i
    return f"[{'^' if negate else ''}{''.join(items)}]", i


def redis_glob_to_regex(pattern: str) -> str:
    parts: List[str] = []
    i, n = 0, len(pattern)
    while i < n:
        char = pattern[i]
        if char == "*":
            parts.append(".*")
            i += 1
        elif char == "?":
            parts.append(".")
            i += 1
        elif char == "[":
            regex, i = _class_to_regex(pattern, i + 1)
            parts.append(regex)
        elif char == "\\" and i + 1 < n:
            parts.append(re.escape(pattern[i + 1]))
            i += 2
        else:
            parts.append(re.escape(char))
            i += 1
    return "".join(parts)


def compile_key_pattern(pattern: str) -> Pattern[str]:
    """
    Compile a Redis glob into a regex to use with fullmatch().

    Example:
        matcher = compile_key_pattern("cache:[^s]*")
        matcher.fullmatch("cache:x1")   # match
        matcher.fullmatch("cache:s1")   # None
    """
    return re.compile(redis_glob_to_regex(pattern), re.DOTALL)
