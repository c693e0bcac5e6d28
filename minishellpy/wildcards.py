"""Expansion of ``*`` patterns against the names in a directory."""

from __future__ import annotations

import os
import re
from typing import Iterable


def contain_wildcard(text: str) -> bool:
    """Return True if ``text`` holds a ``*``."""
    return "*" in text


def _pattern_regex(pattern: str) -> "re.Pattern[str]":
    parts = (re.escape(piece) for piece in pattern.split("*"))
    return re.compile(".*".join(parts), re.DOTALL)


def match_wildcard_pattern(pattern: str, filename: str) -> bool:
    """Match ``filename`` against ``pattern``, where ``*`` stands for any run of characters."""
    return _pattern_regex(pattern).fullmatch(filename) is not None


def expand_wildcard(pattern: str, directory: str = ".") -> list[str]:
    """Return the names in ``directory`` that match ``pattern``, sorted.

    Like a raw directory read, the listing includes ``.``, ``..`` and hidden
    names. An unreadable directory yields no matches.
    """
    try:
        names = os.listdir(directory)
    except OSError:
        return []
    regex = _pattern_regex(pattern)
    return sorted(name for name in [".", "..", *names] if regex.fullmatch(name))


def expand_args(args: Iterable[str], directory: str = ".") -> list[str]:
    """Replace every argument holding ``*`` with its matches.

    An argument whose pattern matches nothing is dropped.
    """
    result: list[str] = []
    for arg in args:
        if contain_wildcard(arg):
            result.extend(expand_wildcard(arg, directory))
        else:
            result.append(arg)
    return result