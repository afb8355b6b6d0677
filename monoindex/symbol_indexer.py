"""Build the cross-file symbol definition/usage table.

Indexing runs in two passes over a resolved :class:`~monoindex.project.SourceProject`:

1. **Definitions**: every file contributes its exported declarations, then
   its remaining top-level declarations, then the members of its top-level
   classes.  Ids are ``relative_path:line:column`` of the name token and the
   first occurrence of an id wins.
2. **Usages**: only once every definition is known, each one is located
   again in the project and its references are collected, minus the
   reference on the definition's own line.

The mutable :class:`SymbolTableBuilder` is frozen into a read-only
:class:`SymbolTable` when both passes are done.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .models import DeclarationKind, SymbolDefinition, SymbolLocation, SymbolUsage
from .project import DefinitionSite, ReferenceSite, SourceFile, SourceProject
from .syntax import (
    assignment_of,
    class_bases,
    decorator_names,
    last_dotted_part,
    node_text,
    unwrap_decorated,
)

logger = logging.getLogger(__name__)

SNIPPET_CONTEXT = 50

ENUM_BASES = {"Enum", "IntEnum", "StrEnum", "Flag", "IntFlag"}
INTERFACE_BASES = {"Protocol", "ABC", "TypedDict"}
TYPE_FACTORIES = {"TypeVar", "NewType", "ParamSpec", "TypeVarTuple"}
ACCESSOR_DECORATORS = {"property", "setter", "getter", "deleter", "cached_property"}

_WHITESPACE_RE = re.compile(r"\s+")


# ===================================================================
# Table
# ===================================================================

class SymbolTable(Mapping[str, SymbolDefinition]):
    """Read-only symbol table keyed by definition id, in insertion order."""

    def __init__(self, definitions: Mapping[str, SymbolDefinition]) -> None:
        self._definitions: Dict[str, SymbolDefinition] = dict(definitions)

    def __getitem__(self, key: str) -> SymbolDefinition:
        return self._definitions[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self) -> str:
        return f"SymbolTable({len(self)} definitions)"

    def by_name(self, name: str) -> List[SymbolDefinition]:
        """Definitions whose name or ``Class.member`` qualname equals ``name``."""
        return [d for d in self._definitions.values() if d.name == name or d.qualname == name]

    def usage_count(self, symbol_id: str) -> int:
        definition = self._definitions.get(symbol_id)
        return len(definition.usages) if definition is not None else 0


class SymbolTableBuilder:
    """Mutable accumulator used while indexing."""

    def __init__(self) -> None:
        self._definitions: Dict[str, SymbolDefinition] = {}

    def __contains__(self, symbol_id: object) -> bool:
        return symbol_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def add(self, definition: SymbolDefinition) -> bool:
        """Record ``definition`` unless its id is already present."""
        if definition.id in self._definitions:
            return False
        self._definitions[definition.id] = definition
        return True

    def definitions(self) -> List[SymbolDefinition]:
        return list(self._definitions.values())

    def set_usages(self, symbol_id: str, usages: List[SymbolUsage]) -> None:
        self._definitions[symbol_id] = replace(self._definitions[symbol_id], usages=tuple(usages))

    def freeze(self) -> SymbolTable:
        return SymbolTable(self._definitions)


# ===================================================================
# Classification helpers
# ===================================================================

def classify_declaration(declaration: Any, member: bool = False) -> DeclarationKind:
    """Map a declaration node to its :class:`DeclarationKind`."""
    actual = unwrap_decorated(declaration)

    if actual.type == "function_definition":
        if not member:
            return DeclarationKind.FUNCTION
        decorators = {last_dotted_part(d) for d in decorator_names(declaration)}
        if decorators & ACCESSOR_DECORATORS:
            return DeclarationKind.ACCESSOR
        return DeclarationKind.METHOD

    if actual.type == "class_definition":
        bases = {last_dotted_part(node_text(b).split("[", 1)[0].strip()) for b in class_bases(actual)}
        if bases & ENUM_BASES:
            return DeclarationKind.ENUM
        if bases & INTERFACE_BASES:
            return DeclarationKind.INTERFACE
        return DeclarationKind.CLASS

    if actual.type == "type_alias_statement":
        return DeclarationKind.TYPE_ALIAS

    if member:
        return DeclarationKind.PROPERTY

    assign = assignment_of(actual)
    if assign is not None:
        annotation = assign.child_by_field_name("type")
        if annotation is not None and last_dotted_part(node_text(annotation).strip()) == "TypeAlias":
            return DeclarationKind.TYPE_ALIAS
        value = assign.child_by_field_name("right")
        if value is not None and value.type == "call":
            func = value.child_by_field_name("function")
            if func is not None and last_dotted_part(node_text(func)) in TYPE_FACTORIES:
                return DeclarationKind.TYPE_ALIAS
    return DeclarationKind.VARIABLE


def is_private_member(name: str) -> bool:
    """Name-mangled members (``__x``) are private; dunders are not."""
    return name.startswith("__") and not name.endswith("__")


def usage_snippet(text: str, start: int, end: int, context: int = SNIPPET_CONTEXT) -> str:
    """Whitespace-collapsed excerpt around ``text[start:end]``."""
    lo = max(0, start - context)
    hi = min(len(text), end + context)
    snippet = _WHITESPACE_RE.sub(" ", text[lo:hi]).strip()
    if lo > 0:
        snippet = "..." + snippet
    if hi < len(text):
        snippet = snippet + "..."
    return snippet


# ===================================================================
# Indexer
# ===================================================================

class SymbolIndexer:
    """Two-pass definition/usage indexer over a resolved project."""

    def analyze_symbols(self, project: SourceProject, base_dir: Path) -> SymbolTable:
        """Index every registered file of ``project``.

        Paths in the result are relative to ``base_dir``.
        """
        base_dir = Path(base_dir).resolve()
        logger.info("Analyzing symbol references")
        builder = SymbolTableBuilder()

        for sf in project.source_files():
            self._collect_file(project, sf, builder, base_dir)
        logger.info("Collected %d symbol definitions", len(builder))

        for definition in builder.definitions():
            builder.set_usages(definition.id, self._find_usages(project, definition, base_dir))

        table = builder.freeze()
        total_usages = sum(len(d.usages) for d in table.values())
        logger.info("Found %d usages across %d symbols", total_usages, len(table))
        return table

    # ------------------------------------------------------------------
    # Pass 1: definitions
    # ------------------------------------------------------------------

    def _collect_file(
        self, project: SourceProject, sf: SourceFile, builder: SymbolTableBuilder, base_dir: Path
    ) -> None:
        definitions = project.top_level_definitions(sf)
        exported_names = project.exported_names(sf)
        exported_here = set()

        if exported_names is not None:
            for name in exported_names:
                site = project.resolve_export(sf, name)
                if site is None:
                    logger.debug("Cannot resolve exported name %r in %s", name, sf.path)
                    continue
                exported_here.add(name)
                self._add(builder, base_dir, site, name, classify_declaration(site.declaration), exported=True)
        else:
            for name, site in definitions:
                if name.startswith("_"):
                    continue
                exported_here.add(name)
                self._add(builder, base_dir, site, name, classify_declaration(site.declaration), exported=True)

        for name, site in definitions:
            if name in exported_here:
                continue
            self._add(builder, base_dir, site, name, classify_declaration(site.declaration), exported=False)

        for name, site in definitions:
            if unwrap_decorated(site.declaration).type != "class_definition":
                continue
            for member_name, member_site in project.class_members(sf, name):
                if is_private_member(member_name):
                    continue
                if unwrap_decorated(member_site.declaration).type == "class_definition":
                    continue
                self._add(
                    builder,
                    base_dir,
                    member_site,
                    member_name,
                    classify_declaration(member_site.declaration, member=True),
                    exported=name in exported_here,
                    container=name,
                )

    def _add(
        self,
        builder: SymbolTableBuilder,
        base_dir: Path,
        site: DefinitionSite,
        name: str,
        kind: DeclarationKind,
        exported: bool,
        container: Optional[str] = None,
    ) -> None:
        location = _location(site, base_dir)
        symbol_id = f"{location.relative_path}:{location.line}:{location.column}"
        # Keep the declared name: an aliased re-export still indexes the original.
        declared = node_text(site.name_node)
        added = builder.add(SymbolDefinition(
            id=symbol_id,
            name=declared,
            kind=kind,
            location=location,
            container=container,
            exported=exported,
        ))
        if added and declared != name:
            logger.debug("Export %r resolves to %s", name, symbol_id)

    # ------------------------------------------------------------------
    # Pass 2: usages
    # ------------------------------------------------------------------

    def _find_usages(
        self, project: SourceProject, definition: SymbolDefinition, base_dir: Path
    ) -> List[SymbolUsage]:
        location = definition.location
        sf = project.get_source_file(location.file_path)
        if sf is None:
            logger.warning("Source file for %s is no longer in the project", definition.id)
            return []

        node = project.node_at(sf, location.line, location.column)
        if node is None:
            logger.warning("Could not locate %s at %s", definition.name, definition.id)
            return []

        symbol = project.symbol_at(sf, node)
        if symbol is None:
            logger.warning("No symbol bound to %s at %s", definition.name, definition.id)
            return []

        usages: List[SymbolUsage] = []
        for ref in project.find_references(symbol):
            usage = _usage(ref, base_dir)
            if usage.file_path == location.relative_path and usage.line == location.line:
                continue
            usages.append(usage)
        return usages


def _relative(path: Path, base_dir: Path) -> str:
    try:
        return path.relative_to(base_dir).as_posix()
    except ValueError:
        return Path(os.path.relpath(path, base_dir)).as_posix()


def _location(site: DefinitionSite, base_dir: Path) -> SymbolLocation:
    sf = site.source_file
    point = site.name_node.start_point
    return SymbolLocation(
        file_path=str(sf.path),
        relative_path=_relative(sf.path, base_dir),
        line=point[0] + 1,
        column=sf.char_column(point) + 1,
    )


def _usage(ref: ReferenceSite, base_dir: Path) -> SymbolUsage:
    return SymbolUsage(
        file_path=_relative(ref.source_file.path, base_dir),
        line=ref.line,
        column=ref.column,
        snippet=usage_snippet(ref.source_file.text, ref.start_offset, ref.end_offset),
    )


def kind_counts(table: Mapping[str, SymbolDefinition]) -> List[Tuple[str, int]]:
    counts: Dict[str, int] = {}
    for definition in table.values():
        counts[definition.kind.label] = counts.get(definition.kind.label, 0) + 1
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))
