"""
Base types for code search.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol


@dataclass(slots=True)
class Parameter:
    """Declared parameter of a function or method."""

    name: str
    type: str | None = None


@dataclass(slots=True)
class CodeStructure:
    """Structural details extracted for a code chunk."""

    parameters: list[Parameter] = field(default_factory=list)
    return_type: str | None = None
    parent_class: str | None = None
    inherits_from: str | None = None
    calls: list[str] = field(default_factory=list)


@dataclass(slots=True)
class SearchHit:
    """A ranked search result."""

    score: float
    file: str
    start_line: int
    end_line: int
    kind: str
    qualified_name: str
    lines: int
    doc: str | None = None
    code: str | None = None
    structure: CodeStructure = field(default_factory=CodeStructure)


class SearchIndex(Protocol):
    """Contract for code search backends."""

    async def sync_index(
        self,
        paths: Sequence[Path],
        extensions: Sequence[str] | None = None,
        ignores: Sequence[str] | None = None,
    ) -> None:
        """Bring the index in line with the files under ``paths``."""

    async def query_index(self, query: str, top_k: int = 8) -> list[SearchHit]:
        """Return up to ``top_k`` hits ranked by relevance."""
