"""
Lexical code index for JavaScript and TypeScript sources.

Files are split into declaration chunks (classes, functions, arrow functions,
methods) plus one chunk per file. Queries are ranked by term overlap with a
chunk's name, doc comment and body, with name matches weighted highest.
"""

from __future__ import annotations

import asyncio
import fnmatch
import os
import re
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from ..core.exceptions import SearchError
from ..core.logging import get_logger
from .base import CodeStructure, Parameter, SearchHit

logger = get_logger(__name__)

_CLASS_RE = re.compile(
    r"^\s*(?:export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+(\w+)(?:\s+extends\s+([\w.]+))?"
)
_FUNCTION_RE = re.compile(
    r"^\s*(?:export\s+)?(?:default\s+)?(?:async\s+)?function\s*\*?\s*(\w+)\s*\(([^)]*)\)"
    r"(?:\s*:\s*([^{]+?))?\s*(?:\{|$)"
)
_ARROW_RE = re.compile(
    r"^\s*(?:export\s+)?(?:const|let|var)\s+(\w+)\s*(?::[^=]+)?=\s*(?:async\s+)?"
    r"(?:\(([^)]*)\)|(\w+))\s*(?::\s*([^=]+?))?\s*=>"
)
_METHOD_RE = re.compile(
    r"^\s+(?:(?:public|private|protected|static|async|get|set)\s+)*(\w+)\s*\(([^)]*)\)"
    r"(?:\s*:\s*([^{]+?))?\s*\{"
)
_CALL_RE = re.compile(r"\b([A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*)\s*\(")
_TOKEN_RE = re.compile(r"[A-Z]+(?![a-z])|[A-Za-z][a-z0-9]*|\d+")

_KEYWORDS = {
    "if", "for", "while", "switch", "catch", "function", "return", "typeof",
    "new", "await", "super", "constructor", "else", "do", "with", "import",
}

NAME_WEIGHT = 3.0
DOC_WEIGHT = 2.0
BODY_WEIGHT = 1.0


def tokenize(text: str) -> list[str]:
    """Split identifiers and prose into lowercase terms (camelCase aware)."""
    return [token.lower() for token in _TOKEN_RE.findall(text)]


@dataclass(slots=True)
class _Chunk:
    file: str
    start_line: int
    end_line: int
    kind: str
    qualified_name: str
    body: str
    doc: str | None = None
    structure: CodeStructure = field(default_factory=CodeStructure)
    name_terms: Counter = field(default_factory=Counter)
    doc_terms: Counter = field(default_factory=Counter)
    body_terms: Counter = field(default_factory=Counter)

    def index_terms(self) -> None:
        self.name_terms = Counter(tokenize(self.qualified_name))
        self.doc_terms = Counter(tokenize(self.doc or ""))
        self.body_terms = Counter(tokenize(self.body))


@dataclass(slots=True)
class _FileEntry:
    mtime_ns: int
    size: int
    chunks: list[_Chunk]


def _parse_parameters(raw: str | None) -> list[Parameter]:
    params = []
    for piece in (raw or "").split(","):
        piece = piece.strip()
        if not piece:
            continue
        name, _, type_hint = piece.partition(":")
        name = name.split("=")[0].strip().lstrip(".")
        type_hint = type_hint.split("=")[0].strip() or None
        if name:
            params.append(Parameter(name=name, type=type_hint))
    return params


def _block_end(lines: list[str], start: int) -> int:
    """Index of the line closing the brace block opened at or after ``start``."""
    depth = 0
    opened = False
    for index in range(start, len(lines)):
        for ch in lines[index]:
            if ch == "{":
                depth += 1
                opened = True
            elif ch == "}":
                depth -= 1
        if opened and depth <= 0:
            return index
        if not opened and index > start and lines[index].strip().endswith(";"):
            return index
    return start if not opened else len(lines) - 1


def _leading_doc(lines: list[str], start: int) -> str | None:
    collected: list[str] = []
    index = start - 1
    while index >= 0:
        stripped = lines[index].strip()
        if not stripped.startswith(("//", "/*", "*")):
            break
        text = stripped.lstrip("/*").rstrip("*/").strip()
        if text and not text.startswith("@"):
            collected.append(text)
        if stripped.startswith("/*"):
            break
        index -= 1
    if not collected:
        return None
    return " ".join(reversed(collected))


def _calls(body: str, own_name: str) -> list[str]:
    seen: list[str] = []
    for match in _CALL_RE.finditer(body):
        name = match.group(1)
        if name in _KEYWORDS or name == own_name or name in seen:
            continue
        seen.append(name)
    return seen[:10]


def chunk_source(source: str, display_path: str) -> list[_Chunk]:
    """Split one source file into declaration chunks plus a file chunk."""
    lines = source.splitlines()
    chunks: list[_Chunk] = []
    classes: list[tuple[str, int, int]] = []

    for index, line in enumerate(lines):
        kind = name = parent_class = None
        params = return_type = inherits = None

        if match := _CLASS_RE.match(line):
            kind, name, inherits = "class", match.group(1), match.group(2)
        elif match := _FUNCTION_RE.match(line):
            kind, name, params, return_type = "function", match.group(1), match.group(2), match.group(3)
        elif match := _ARROW_RE.match(line):
            kind, name = "function", match.group(1)
            params = match.group(2) if match.group(2) is not None else match.group(3)
            return_type = match.group(4)
        elif (match := _METHOD_RE.match(line)) and match.group(1) not in _KEYWORDS - {"constructor"}:
            parent_class = next((c[0] for c in reversed(classes) if c[1] < index <= c[2]), None)
            if parent_class is None:
                continue
            kind, name, params, return_type = "method", match.group(1), match.group(2), match.group(3)

        if kind is None or name is None:
            continue

        end = _block_end(lines, index)
        body = "\n".join(lines[index : end + 1])
        qualified = f"{parent_class}.{name}" if parent_class else name
        if kind == "class":
            classes.append((name, index, end))

        chunk = _Chunk(
            file=display_path,
            start_line=index + 1,
            end_line=end + 1,
            kind=kind,
            qualified_name=qualified,
            body=body,
            doc=_leading_doc(lines, index),
            structure=CodeStructure(
                parameters=_parse_parameters(params),
                return_type=return_type.strip() if return_type else None,
                parent_class=parent_class,
                inherits_from=inherits,
                calls=_calls(body, name) if kind != "class" else [],
            ),
        )
        chunks.append(chunk)

    chunks.append(
        _Chunk(
            file=display_path,
            start_line=1,
            end_line=max(len(lines), 1),
            kind="file",
            qualified_name=display_path,
            body=source,
        )
    )
    for chunk in chunks:
        chunk.index_terms()
    return chunks


def _is_ignored(path: Path, ignores: Sequence[str]) -> bool:
    for pattern in ignores:
        if any(fnmatch.fnmatch(part, pattern) for part in path.parts):
            return True
        if fnmatch.fnmatch(str(path), pattern):
            return True
    return False


class LexicalCodeIndex:
    """In-memory code index with incremental, mtime-based re-indexing."""

    def __init__(
        self,
        base_dir: Path,
        *,
        default_extensions: Sequence[str] = ("js", "ts"),
        default_ignores: Sequence[str] = ("node_modules",),
        max_file_bytes: int = 512000,
        snippet_lines: int = 12,
    ):
        self.base_dir = Path(base_dir).resolve()
        self.default_extensions = list(default_extensions)
        self.default_ignores = list(default_ignores)
        self.max_file_bytes = max_file_bytes
        self.snippet_lines = snippet_lines
        self._files: dict[Path, _FileEntry] = {}
        self._lock = asyncio.Lock()

    @property
    def file_count(self) -> int:
        return len(self._files)

    async def sync_index(
        self,
        paths: Sequence[Path],
        extensions: Sequence[str] | None = None,
        ignores: Sequence[str] | None = None,
    ) -> None:
        exts = {e.strip().lstrip(".").lower() for e in (extensions or self.default_extensions)}
        ignore_patterns = list(ignores if ignores is not None else self.default_ignores)
        async with self._lock:
            await asyncio.to_thread(self._sync, list(paths), exts, ignore_patterns)

    def _collect(self, roots: list[Path], exts: set[str], ignores: list[str]) -> list[Path]:
        found: list[Path] = []
        for root in roots:
            if not root.exists():
                raise SearchError(f"Search folder does not exist: {root}")
            if root.is_file():
                found.append(root.resolve())
                continue
            for dirpath, dirnames, filenames in os.walk(root):
                current = Path(dirpath)
                dirnames[:] = [d for d in dirnames if not _is_ignored(current / d, ignores)]
                for filename in filenames:
                    candidate = current / filename
                    if candidate.suffix.lstrip(".").lower() not in exts:
                        continue
                    if _is_ignored(candidate, ignores):
                        continue
                    found.append(candidate.resolve())
        return found

    def _display_path(self, path: Path) -> str:
        try:
            return str(path.relative_to(self.base_dir))
        except ValueError:
            return str(path)

    def _sync(self, roots: list[Path], exts: set[str], ignores: list[str]) -> None:
        files = self._collect(roots, exts, ignores)
        fresh: dict[Path, _FileEntry] = {}
        reindexed = 0
        for path in files:
            try:
                stat = path.stat()
            except OSError as exc:
                logger.debug(f"Skipping {path}: {exc}")
                continue
            if stat.st_size > self.max_file_bytes:
                logger.debug(f"Skipping {path}: {stat.st_size} bytes")
                continue

            cached = self._files.get(path)
            if cached and cached.mtime_ns == stat.st_mtime_ns and cached.size == stat.st_size:
                fresh[path] = cached
                continue

            try:
                source = path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                logger.debug(f"Skipping {path}: {exc}")
                continue
            fresh[path] = _FileEntry(
                mtime_ns=stat.st_mtime_ns,
                size=stat.st_size,
                chunks=chunk_source(source, self._display_path(path)),
            )
            reindexed += 1

        self._files = fresh
        logger.info(f"Code index synced: {len(fresh)} files ({reindexed} re-indexed)")

    async def query_index(self, query: str, top_k: int = 8) -> list[SearchHit]:
        terms = set(tokenize(query))
        if not terms:
            return []

        scored: list[tuple[float, _Chunk]] = []
        for entry in self._files.values():
            for chunk in entry.chunks:
                score = self._score(terms, chunk)
                if score > 0:
                    scored.append((score, chunk))

        scored.sort(key=lambda item: (-item[0], item[1].file, item[1].start_line))
        return [self._to_hit(score, chunk) for score, chunk in scored[: max(top_k, 0)]]

    @staticmethod
    def _score(terms: set[str], chunk: _Chunk) -> float:
        total = 0.0
        for term in terms:
            if term in chunk.name_terms:
                total += NAME_WEIGHT
            elif term in chunk.doc_terms:
                total += DOC_WEIGHT
            elif term in chunk.body_terms:
                total += BODY_WEIGHT
        if total == 0:
            return 0.0
        # File chunks rank below declarations with the same coverage.
        penalty = 0.5 if chunk.kind == "file" else 1.0
        return round(total * penalty / (NAME_WEIGHT * len(terms)), 3)

    def _to_hit(self, score: float, chunk: _Chunk) -> SearchHit:
        body_lines = chunk.body.splitlines()
        snippet = "\n".join(body_lines[: self.snippet_lines]) if body_lines else None
        return SearchHit(
            score=score,
            file=chunk.file,
            start_line=chunk.start_line,
            end_line=chunk.end_line,
            kind=chunk.kind,
            qualified_name=chunk.qualified_name,
            lines=chunk.end_line - chunk.start_line + 1,
            doc=chunk.doc,
            code=snippet,
            structure=chunk.structure,
        )
