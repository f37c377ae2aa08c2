"""In-memory cache of Go source files and their tree-sitter parses.

One SourceCache is built per augmentation run. Entries are populated on first
use and never retried once marked unusable, so a missing or broken file costs
one read and one diagnostic per run no matter how many frames point at it.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from tree_sitter import Node as TSNode  # type: ignore
from tree_sitter import Parser, Tree  # type: ignore

from ..diagnostics import PARSE_FAILED, READ_FAILED, Diagnostic, DiagnosticSink, LoggingSink
from ..settings import DEFAULT_SETTINGS, AugmentSettings
from .ast_utils import position
from .errors import SourceUnavailableError
from .languages import create_parser
from .line_index import build_line_offsets, offset_for_line

Reader = Callable[[str], bytes]


def read_source(path: str) -> bytes:
    return Path(path).read_bytes()


@dataclass
class SourceFileEntry:
    path: str
    raw: Optional[bytes] = None
    line_offsets: List[int] = field(default_factory=list)
    tree: Optional[Tree] = None
    # Non-empty once the entry is permanently unusable.
    error: str = ""

    @property
    def usable(self) -> bool:
        return not self.error and bool(self.raw)

    @property
    def root(self) -> TSNode:
        if self.tree is None:
            raise SourceUnavailableError(self.error or "not parsed", path=self.path)
        return self.tree.root_node

    def offset_for_line(self, line: int) -> Optional[int]:
        return offset_for_line(self.line_offsets, line)


class SourceCache:
    def __init__(
        self,
        settings: AugmentSettings = DEFAULT_SETTINGS,
        *,
        reader: Optional[Reader] = None,
        files: Optional[Mapping[str, bytes]] = None,
        parser: Optional[Parser] = None,
        sink: Optional[DiagnosticSink] = None,
    ) -> None:
        self.settings = settings
        self._reader = reader or read_source
        self._sink = sink or LoggingSink()
        self._parser = parser or create_parser(settings.grammar_dir)
        self._parser_lock = threading.Lock()
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._entries: Dict[str, SourceFileEntry] = {}
        self._reads = 0
        for path, data in (files or {}).items():
            self._entries[path] = self._checked(SourceFileEntry(path=path, raw=bytes(data)))

    def handles(self, path: str) -> bool:
        """Only Go sources are read; C and assembly frames carry nothing to decode."""
        return path.endswith(self.settings.source_suffix)

    def load(self, path: str) -> Tuple[Optional[bytes], bool]:
        """Return ``(raw_bytes, True)``, or ``(None, False)`` if the file is unusable."""
        if not self.handles(path):
            return None, False
        with self._lock_for(path):
            entry = self._entries.get(path)
            if entry is None:
                entry = self._read(path)
                self._entries[path] = entry
        if not entry.usable:
            return None, False
        return entry.raw, True

    def parsed(self, path: str) -> Optional[SourceFileEntry]:
        """Return the parsed entry for ``path``, parsing it at most once per run."""
        _, ok = self.load(path)
        if not ok:
            return None
        with self._lock_for(path):
            entry = self._entries.get(path)
            if entry is None:
                return None
            if entry.usable and entry.tree is None:
                self._parse(entry)
        return entry if entry.usable else None

    def invalidate(self, path: str) -> None:
        with self._lock_for(path):
            self._entries.pop(path, None)

    def clear(self) -> None:
        with self._guard:
            self._entries.clear()
            self._locks.clear()

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def reads(self) -> int:
        """Number of filesystem reads performed so far."""
        return self._reads

    @property
    def unusable_paths(self) -> FrozenSet[str]:
        return frozenset(p for p, e in list(self._entries.items()) if e.error)

    # Private stuff.

    def _lock_for(self, path: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(path, threading.Lock())

    def _read(self, path: str) -> SourceFileEntry:
        with self._guard:
            self._reads += 1
        try:
            data = self._reader(path)
        except (OSError, ValueError) as e:
            return self._unusable(SourceFileEntry(path=path), READ_FAILED, f"Failed to read: {e}")
        return self._checked(SourceFileEntry(path=path, raw=data))

    def _checked(self, entry: SourceFileEntry) -> SourceFileEntry:
        data = entry.raw or b""
        if not data:
            return self._unusable(entry, READ_FAILED, "empty file")
        if len(data) > self.settings.max_file_bytes:
            return self._unusable(
                entry, READ_FAILED, f"file is {len(data)} bytes, limit is {self.settings.max_file_bytes}"
            )
        return entry

    def _parse(self, entry: SourceFileEntry) -> None:
        try:
            with self._parser_lock:
                tree = self._parser.parse(entry.raw)
        except (ValueError, RuntimeError) as e:
            self._unusable(entry, PARSE_FAILED, f"Failed to parse: {e}")
            return
        if tree.root_node.has_error and not self.settings.allow_syntax_errors:
            line, col = _first_error_point(tree.root_node)
            self._unusable(entry, PARSE_FAILED, f"syntax error at {line}:{col}")
            return
        entry.tree = tree
        entry.line_offsets = build_line_offsets(entry.raw)

    def _unusable(self, entry: SourceFileEntry, kind: str, message: str) -> SourceFileEntry:
        entry.error = message
        entry.tree = None
        self._sink.emit(Diagnostic(kind=kind, path=entry.path, message=message, severity="warning"))
        return entry


def _first_error_point(root: TSNode) -> Tuple[int, int]:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return position(node)
        if node.has_error:
            stack.extend(reversed(node.children))
    return position(root)
