"""Expansion of ``$NAME`` and ``$?`` inside words."""

from __future__ import annotations

import re
from typing import Optional, Protocol


class _Lookup(Protocol):
    def get(self, name: str) -> Optional[str]: ...


_DOLLAR_RE = re.compile(r"\$(\?|[A-Za-z_][A-Za-z0-9_]*)")


def expand_variables(value: str, env: _Lookup, exit_status: int) -> str:
    """Replace ``$?`` with the exit status and ``$NAME`` with its value in ``env``.

    Unknown variables expand to nothing; a ``$`` not followed by ``?``, a
    letter or an underscore is kept as is.
    """

    def replace(match: re.Match) -> str:
        name = match.group(1)
        if name == "?":
            return str(exit_status)
        found = env.get(name)
        return found if found is not None else ""

    return _DOLLAR_RE.sub(replace, value)