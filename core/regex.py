"""
Tessera - Regular Expression Builder

Small helpers for composing regular expressions from named parts.

Usage:
    from core import regex

    date = regex.capture(r"\\d{4}", "year") + "-" + regex.capture(r"\\d{2}", "month")
    regex.match(date, "2024-05")  # {"year": "2024", "month": "05"}
"""

import re
from typing import Dict, Iterable, Pattern, Union

PatternLike = Union[str, Pattern[str]]


def match(pattern: PatternLike, subject: str) -> Dict[str, str]:
    """
    Match ``subject`` against ``pattern`` and return its named captures.

    Groups that did not participate or captured an empty string are left
    out. A subject that does not match yields an empty dict.
    """
    found = re.search(pattern, subject)
    if found is None:
        return {}
    return {name: value for name, value in found.groupdict().items() if value}


def capture(pattern: str, name: str) -> str:
    """Wrap ``pattern`` in a named capture group."""
    return f"(?P<{name}>{pattern})"


def optional(pattern: str) -> str:
    return f"(?:{pattern})?"


def one_or_more(pattern: str) -> str:
    return f"(?:{pattern})+"


def none_or_more(pattern: str) -> str:
    return f"(?:{pattern})*"


def any_of(*patterns: Union[str, Iterable[str]]) -> str:
    """
    Build an alternation of the given patterns.

    Accepts either several pattern arguments or a single list of them.
    """
    if len(patterns) == 1 and isinstance(patterns[0], (list, tuple)):
        patterns = tuple(patterns[0])
    return "(?:" + "|".join(patterns) + ")"
