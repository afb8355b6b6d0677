"""Core data models shared by discovery, batching, indexing and retrieval."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

# Heuristic size of one token in characters; not a real tokenizer.
CHARS_PER_TOKEN = 4


def estimate_tokens(size_bytes: int) -> int:
    return math.ceil(size_bytes / CHARS_PER_TOKEN)


@dataclass(frozen=True)
class WorkspacePackage:
    name: str
    root_path: Path
    kind: str
    priority: float
    manifest_path: Optional[Path] = None
    dependency_count: int = 0
    typed: bool = False


@dataclass(frozen=True)
class FileRecord:
    path: Path
    size_bytes: int
    priority: float
    package: str = ""

    @property
    def estimated_tokens(self) -> int:
        return estimate_tokens(self.size_bytes)


@dataclass(frozen=True)
class Batch:
    id: int
    files: Tuple[FileRecord, ...]
    estimated_tokens: int
    priority: float

    def __len__(self) -> int:
        return len(self.files)


class DeclarationKind(Enum):
    """Closed set of declaration kinds the symbol indexer records.

    Each member carries two capability flags: ``documentable`` (the
    declaration can hold a docstring of its own) and ``is_member`` (it
    lives inside a class body).
    """

    FUNCTION = ("function", True, False)
    CLASS = ("class", True, False)
    INTERFACE = ("interface", True, False)
    TYPE_ALIAS = ("type", False, False)
    ENUM = ("enum", True, False)
    VARIABLE = ("variable", False, False)
    METHOD = ("method", True, True)
    PROPERTY = ("property", False, True)
    ACCESSOR = ("accessor", True, True)

    def __init__(self, label: str, documentable: bool, is_member: bool) -> None:
        self.label = label
        self.documentable = documentable
        self.is_member = is_member

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class SymbolLocation:
    file_path: str
    relative_path: str
    line: int
    column: int


@dataclass(frozen=True)
class SymbolUsage:
    file_path: str
    line: int
    column: int
    snippet: Optional[str] = None


@dataclass(frozen=True)
class SymbolDefinition:
    id: str
    name: str
    kind: DeclarationKind
    location: SymbolLocation
    usages: Tuple[SymbolUsage, ...] = ()
    container: Optional[str] = None
    exported: bool = False

    @property
    def qualname(self) -> str:
        return f"{self.container}.{self.name}" if self.container else self.name


@dataclass
class EmbeddedEntry:
    id: str
    embedding: List[float]
    display_name: str
    kind: str
    file_path: str
    relative_file_path: str


@dataclass
class RelatedEntry:
    id: str
    name: str
    kind: str
    file_path: str
    relative_file_path: str
    relationship_score: float


@dataclass
class AnalysisResult:
    packages: List[WorkspacePackage] = field(default_factory=list)
    batches: List[Batch] = field(default_factory=list)
    symbol_table: Mapping[str, SymbolDefinition] = field(default_factory=dict)

    @property
    def file_count(self) -> int:
        return sum(len(b.files) for b in self.batches)
