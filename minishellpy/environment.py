"""The shell's environment: an ordered list of ``NAME=value`` entries."""

from __future__ import annotations

from typing import Iterable, Iterator, Mapping, Optional


def split_words(text: str, delimiter: str) -> list[str]:
    """Split ``text`` on ``delimiter``, dropping the empty pieces."""
    return [piece for piece in text.split(delimiter) if piece]


class Environment:
    """Environment variables kept in insertion order, as ``NAME=value`` strings."""

    def __init__(self, entries: Iterable[str] = ()) -> None:
        self._entries: list[str] = list(entries)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "Environment":
        """Build an environment from a mapping such as ``os.environ``."""
        return cls(f"{name}={value}" for name, value in mapping.items())

    def _index(self, name: str) -> Optional[int]:
        prefix = name + "="
        return next(
            (pos for pos, entry in enumerate(self._entries) if entry.startswith(prefix)),
            None,
        )

    def get(self, name: str) -> Optional[str]:
        """Return the value of ``name``, or None if it is not set."""
        pos = self._index(name)
        if pos is None:
            return None
        return self._entries[pos][len(name) + 1 :]

    def set(self, name: str, value: str) -> None:
        """Replace the entry for ``name`` in place, or append a new one."""
        entry = f"{name}={value}"
        pos = self._index(name)
        if pos is None:
            self._entries.append(entry)
        else:
            self._entries[pos] = entry

    def unset(self, name: str) -> None:
        """Remove the entry for ``name``; nothing happens if it is not set."""
        pos = self._index(name)
        if pos is not None:
            del self._entries[pos]

    def entries(self) -> list[str]:
        """Return a copy of the ``NAME=value`` entries in order."""
        return list(self._entries)

    def as_dict(self) -> dict[str, str]:
        """Return the variables as a dict; the first entry for a name wins."""
        result: dict[str, str] = {}
        for entry in self._entries:
            name, sep, value = entry.partition("=")
            if sep and name not in result:
                result[name] = value
        return result

    def path_dirs(self) -> list[str]:
        """Return the non-empty directories listed in ``PATH``."""
        value = self.get("PATH")
        if value is None:
            return []
        return split_words(value, ":")

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._index(name) is not None