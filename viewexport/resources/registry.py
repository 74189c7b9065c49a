"""Resource contract and the immutable name -> resource registry."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable


class ArtifactSink(Protocol):
    """Receiver of written artifact paths."""

    def emit(self, path: Path) -> None: ...


@runtime_checkable
class Resource(Protocol):
    """One exportable view.

    ``fetch`` writes the view's current state beneath ``output_dir``, emits
    the path of every file it wrote to ``sink`` exactly once in the order
    written, and returns the number of rows materialized. It must be safe to
    call repeatedly: each call fully supersedes the previous output.
    Failures are raised as :class:`viewexport.exceptions.FetchError`.
    """

    name: str

    async def fetch(self, conn: Any, output_dir: Path, sink: ArtifactSink) -> int: ...


class ResourceRegistry:
    """Read-only lookup of resources by name, built once at startup."""

    def __init__(self, resources: Iterable[Resource]) -> None:
        by_name: dict[str, Resource] = {}
        for resource in resources:
            if resource.name in by_name:
                raise ValueError(f"duplicate resource name: {resource.name}")
            by_name[resource.name] = resource
        self._resources = MappingProxyType(by_name)
        self._names = tuple(by_name)

    def all_names(self) -> tuple[str, ...]:
        """Every registered name in registration order."""
        return self._names

    def lookup(self, name: str) -> Resource | None:
        """Return the resource for ``name`` or None when it is not registered."""
        return self._resources.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._resources

    def __len__(self) -> int:
        return len(self._names)
