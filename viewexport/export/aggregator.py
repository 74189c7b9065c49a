"""Per-window coalescing of change notifications."""

from __future__ import annotations

from collections.abc import Iterator


class PendingSet:
    """Distinct resource names collected during one poll window.

    Insertion order is kept so a drain is reproducible, but callers must not
    rely on it for correctness.
    """

    def __init__(self) -> None:
        self._names: dict[str, None] = {}
        self.received = 0

    def add(self, name: str) -> None:
        self.received += 1
        self._names[name] = None

    def drain(self) -> list[str]:
        """Return every distinct name once and leave the set empty."""
        names = list(self._names)
        self._names.clear()
        return names

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))

    def __bool__(self) -> bool:
        return bool(self._names)
