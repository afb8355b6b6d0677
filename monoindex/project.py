"""Project-wide Python syntax and name-resolution model.

A :class:`SourceProject` plays the part of the host toolchain: files are
registered, :meth:`SourceProject.resolve_dependencies` parses them with
tree-sitter and links their import graph, after which the project can answer
"which symbol does this identifier bind to" and "where is this symbol
referenced" across every registered file.

Resolution is static and module-scoped:

- top-level definitions, imports (absolute, relative, aliased, ``*``) and
  re-export chains are followed across files;
- ``module.name`` and ``Class.member`` attribute chains resolve, as do
  ``self.member`` / ``cls.member`` inside methods, including members
  inherited from project classes;
- function parameters and locals shadow module names.

Attribute access on arbitrary instances is not resolved.

A project handle is owned by one analysis run; nothing is cached at module
level apart from the tree-sitter parser itself.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union

from .errors import ProjectBuildError
from .syntax import (
    DEFINITION_TYPES,
    SCOPE_CONTAINERS,
    assignment_of,
    class_bases,
    definition_name,
    enclosing,
    get_parser,
    iter_nodes,
    node_text,
    owning_class,
    string_value,
    target_identifiers,
    unwrap_decorated,
)

logger = logging.getLogger(__name__)

_FUNCTION_SCOPES = ("function_definition", "lambda")


def _same(a: Any, b: Any) -> bool:
    return (
        a is not None
        and b is not None
        and a.start_byte == b.start_byte
        and a.end_byte == b.end_byte
        and a.type == b.type
    )


# ===================================================================
# Public value types
# ===================================================================

@dataclass(frozen=True)
class ProjectSymbol:
    """A module-level name or a member of a module-level class."""

    file_path: Path
    module: str
    qualname: str

    def __str__(self) -> str:
        return f"{self.module}.{self.qualname}" if self.module else self.qualname


@dataclass(frozen=True)
class ModuleRef:
    name: str


Target = Union[ProjectSymbol, ModuleRef]


@dataclass(frozen=True)
class DefinitionSite:
    source_file: "SourceFile"
    name_node: Any
    declaration: Any


@dataclass(frozen=True)
class ReferenceSite:
    source_file: "SourceFile"
    node: Any

    @property
    def line(self) -> int:
        return self.node.start_point[0] + 1

    @property
    def column(self) -> int:
        return self.source_file.char_column(self.node.start_point) + 1

    @property
    def start_offset(self) -> int:
        return self.source_file.char_offset(self.node.start_point)

    @property
    def end_offset(self) -> int:
        return self.source_file.char_offset(self.node.end_point)


# ===================================================================
# Source files
# ===================================================================

class SourceFile:
    """One registered file: path, module name, text and syntax tree."""

    def __init__(self, path: Path, module: str, is_package: bool) -> None:
        self.path = path
        self.module = module
        self.is_package = is_package
        self.source: bytes = b""
        self.text: str = ""
        self.tree: Any = None
        self._lines: List[bytes] = []
        self._line_char_starts: List[int] = []
        self._identifiers: Optional[Dict[Tuple[int, int], Any]] = None

    def __repr__(self) -> str:
        return f"SourceFile({str(self.path)!r}, module={self.module!r})"

    @property
    def root(self) -> Any:
        if self.tree is None:
            raise ProjectBuildError(f"{self.path} has not been parsed", path=self.path)
        return self.tree.root_node

    def load(self, parser: Any) -> None:
        self.source = self.path.read_bytes()
        self.text = self.source.decode("utf-8", errors="replace")
        self.tree = parser.parse(self.source)
        self._lines = self.source.split(b"\n")
        self._line_char_starts = []
        offset = 0
        for raw in self._lines:
            self._line_char_starts.append(offset)
            offset += len(raw.decode("utf-8", errors="replace")) + 1
        self._identifiers = None
        if self.tree.root_node.has_error:
            logger.debug("Syntax errors in %s, continuing with partial tree", self.path)

    # -- positions ------------------------------------------------------

    def char_column(self, point: Tuple[int, int]) -> int:
        row, byte_col = point[0], point[1]
        if row >= len(self._lines):
            return 0
        return len(self._lines[row][:byte_col].decode("utf-8", errors="replace"))

    def char_offset(self, point: Tuple[int, int]) -> int:
        row = point[0]
        if row >= len(self._line_char_starts):
            return len(self.text)
        return self._line_char_starts[row] + self.char_column(point)

    def point_for(self, line: int, column: int) -> Optional[Tuple[int, int]]:
        """Tree-sitter point for a 1-based line and character column."""
        row = line - 1
        if row < 0 or row >= len(self._lines) or column < 1:
            return None
        prefix = self._lines[row].decode("utf-8", errors="replace")[: column - 1]
        return (row, len(prefix.encode("utf-8")))

    def identifiers(self) -> Dict[Tuple[int, int], Any]:
        """Every identifier node keyed by its start point."""
        if self._identifiers is None:
            self._identifiers = {
                (n.start_point[0], n.start_point[1]): n
                for n in iter_nodes(self.root)
                if n.type == "identifier"
            }
        return self._identifiers


# ===================================================================
# Scopes
# ===================================================================

@dataclass
class _Binding:
    kind: str  # "definition" | "module" | "import"
    target: str  # defining module path key / module name
    name: Optional[str] = None
    site: Optional[DefinitionSite] = None


@dataclass
class _ModuleScope:
    source_file: SourceFile
    bindings: Dict[str, _Binding] = field(default_factory=dict)
    definitions: Dict[str, DefinitionSite] = field(default_factory=dict)
    star_imports: List[str] = field(default_factory=list)
    exports: Optional[List[str]] = None

    def bind(self, name: str, binding: _Binding) -> None:
        self.bindings.setdefault(name, binding)

    def define(self, name: str, site: DefinitionSite) -> None:
        """Record a module-level definition; an earlier import keeps the binding."""
        self.definitions.setdefault(name, site)
        self.bind(name, _Binding("definition", str(self.source_file.path), name, site))


@dataclass
class _ClassInfo:
    symbol: ProjectSymbol
    node: Any
    source_file: SourceFile
    members: Dict[str, DefinitionSite] = field(default_factory=dict)


# ===================================================================
# Project
# ===================================================================

class SourceProject:
    """Registered source files plus their resolved import graph."""

    def __init__(self) -> None:
        self._files: Dict[Path, SourceFile] = {}
        self._modules: Dict[str, SourceFile] = {}
        self._scopes: Dict[Path, _ModuleScope] = {}
        self._classes: Dict[ProjectSymbol, _ClassInfo] = {}
        self._class_nodes: Dict[Tuple[Path, int], ProjectSymbol] = {}
        self._locals: Dict[Tuple[Path, int], Set[str]] = {}
        self._references: Optional[Dict[ProjectSymbol, List[ReferenceSite]]] = None
        self._resolved = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_source_file(self, path: Path, source_root: Optional[Path] = None) -> Optional[SourceFile]:
        """Register ``path``; returns ``None`` when it is already registered."""
        path = Path(path).resolve()
        if path in self._files:
            return None
        module, is_package = module_name_for(path, Path(source_root).resolve() if source_root else path.parent)
        sf = SourceFile(path, module, is_package)
        self._files[path] = sf
        if module in self._modules:
            logger.debug("Module %s already provided by %s, %s only reachable by path",
                         module, self._modules[module].path, path)
        else:
            self._modules[module] = sf
        self._resolved = False
        return sf

    def source_files(self) -> List[SourceFile]:
        return list(self._files.values())

    def get_source_file(self, path: Union[str, Path]) -> Optional[SourceFile]:
        return self._files.get(Path(path).resolve())

    def get_module(self, module: str) -> Optional[SourceFile]:
        return self._modules.get(module)

    @property
    def is_resolved(self) -> bool:
        return self._resolved

    def __len__(self) -> int:
        return len(self._files)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def resolve_dependencies(self) -> None:
        """Parse every registered file and link module scopes.

        Raises:
            ProjectBuildError: the grammar is unavailable or a registered
                file cannot be read.
        """
        try:
            parser = get_parser()
        except ImportError as exc:
            raise ProjectBuildError(
                "tree-sitter Python grammar is not installed "
                "(pip install tree-sitter tree-sitter-python)",
                cause=exc,
            ) from exc

        for sf in self._files.values():
            try:
                sf.load(parser)
            except OSError as exc:
                raise ProjectBuildError(f"cannot read source file {sf.path}: {exc}", path=sf.path, cause=exc) from exc

        self._scopes.clear()
        self._classes.clear()
        self._class_nodes.clear()
        self._locals.clear()
        self._references = None
        for sf in self._files.values():
            scope = _ModuleScope(sf)
            self._collect_bindings(sf, sf.root, scope)
            self._scopes[sf.path] = scope
        self._resolved = True
        logger.debug("Resolved %d modules, %d classes", len(self._scopes), len(self._classes))

    def _require_resolved(self) -> None:
        if not self._resolved:
            raise ProjectBuildError("project dependencies are not resolved; call resolve_dependencies() first")

    def _collect_bindings(self, sf: SourceFile, container: Any, scope: _ModuleScope) -> None:
        for stmt in container.named_children:
            kind = stmt.type
            if kind in ("function_definition", "class_definition", "decorated_definition"):
                name_node = definition_name(stmt)
                if name_node is None:
                    continue
                name = node_text(name_node)
                site = DefinitionSite(sf, name_node, stmt)
                scope.define(name, site)
                actual = unwrap_decorated(stmt)
                if actual.type == "class_definition" and scope.definitions[name] is site:
                    self._register_class(sf, name, actual)
            elif kind == "expression_statement":
                self._collect_assignment(sf, stmt, scope)
            elif kind == "type_alias_statement":
                left = stmt.child_by_field_name("left")
                ident = next((n for n in iter_nodes(left) if n.type == "identifier"), None) if left is not None else None
                if ident is not None:
                    name = node_text(ident)
                    scope.define(name, DefinitionSite(sf, ident, stmt))
            elif kind == "import_statement":
                self._collect_import(stmt, scope)
            elif kind == "import_from_statement":
                self._collect_import_from(sf, stmt, scope)
            elif kind in SCOPE_CONTAINERS:
                self._collect_bindings(sf, stmt, scope)

    def _collect_assignment(self, sf: SourceFile, stmt: Any, scope: _ModuleScope) -> None:
        for child in stmt.named_children:
            if child.type == "augmented_assignment":
                left = child.child_by_field_name("left")
                if left is not None and node_text(left) == "__all__" and scope.exports is not None:
                    scope.exports.extend(_string_items(child.child_by_field_name("right")))
        assign = assignment_of(stmt)
        if assign is None:
            return
        for ident in target_identifiers(assign.child_by_field_name("left")):
            name = node_text(ident)
            if name == "__all__":
                if scope.exports is None:
                    scope.exports = _string_items(assign.child_by_field_name("right"))
                continue
            scope.define(name, DefinitionSite(sf, ident, stmt))

    @staticmethod
    def _collect_import(stmt: Any, scope: _ModuleScope) -> None:
        for item in stmt.children_by_field_name("name"):
            if item.type == "dotted_name":
                dotted = node_text(item)
                top = dotted.split(".", 1)[0]
                scope.bind(top, _Binding("module", top))
            elif item.type == "aliased_import":
                name_node = item.child_by_field_name("name")
                alias = item.child_by_field_name("alias")
                if name_node is not None and alias is not None:
                    scope.bind(node_text(alias), _Binding("module", node_text(name_node)))

    def _collect_import_from(self, sf: SourceFile, stmt: Any, scope: _ModuleScope) -> None:
        module = self._import_source(sf, stmt)
        if module is None:
            return
        if any(child.type == "wildcard_import" for child in stmt.children):
            scope.star_imports.append(module)
            return
        for item in stmt.children_by_field_name("name"):
            if item.type == "dotted_name":
                name = node_text(item)
                scope.bind(name, _Binding("import", module, name))
            elif item.type == "aliased_import":
                name_node = item.child_by_field_name("name")
                alias = item.child_by_field_name("alias")
                if name_node is not None and alias is not None:
                    scope.bind(node_text(alias), _Binding("import", module, node_text(name_node)))

    @staticmethod
    def _import_source(sf: SourceFile, stmt: Any) -> Optional[str]:
        module_node = stmt.child_by_field_name("module_name")
        if module_node is None:
            return None
        if module_node.type != "relative_import":
            return node_text(module_node)

        level = 0
        dotted = ""
        for child in module_node.children:
            if child.type == "import_prefix":
                level = node_text(child).count(".")
            elif child.type == "dotted_name":
                dotted = node_text(child)
        package = sf.module.split(".") if sf.is_package else sf.module.split(".")[:-1]
        if level - 1 > len(package):
            logger.debug("Relative import beyond top-level package in %s", sf.path)
            return None
        base = package[: len(package) - (level - 1)]
        parts = base + (dotted.split(".") if dotted else [])
        return ".".join(p for p in parts if p) or None

    def _register_class(self, sf: SourceFile, name: str, class_node: Any) -> None:
        symbol = ProjectSymbol(sf.path, sf.module, name)
        info = _ClassInfo(symbol, class_node, sf)
        body = class_node.child_by_field_name("body")
        for stmt in body.named_children if body is not None else []:
            member_name = definition_name(stmt)
            if member_name is not None:
                info.members.setdefault(node_text(member_name), DefinitionSite(sf, member_name, stmt))
                continue
            assign = assignment_of(stmt)
            if assign is not None:
                for ident in target_identifiers(assign.child_by_field_name("left")):
                    info.members.setdefault(node_text(ident), DefinitionSite(sf, ident, stmt))
        self._classes[symbol] = info
        self._class_nodes[(sf.path, class_node.start_byte)] = symbol

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def exported_names(self, sf: SourceFile) -> Optional[List[str]]:
        """Names listed in the module's ``__all__``, or ``None`` without one."""
        self._require_resolved()
        scope = self._scopes.get(sf.path)
        return list(scope.exports) if scope and scope.exports is not None else None

    def top_level_definitions(self, sf: SourceFile) -> List[Tuple[str, DefinitionSite]]:
        """Names defined (not imported) at module scope, first definition each.

        A definition shadowed by an earlier import of the same name (the
        ``try: import ... except ImportError: def ...`` fallback) is included.
        """
        self._require_resolved()
        return list(self._scopes[sf.path].definitions.items())

    def class_members(self, sf: SourceFile, class_name: str) -> List[Tuple[str, DefinitionSite]]:
        self._require_resolved()
        info = self._classes.get(ProjectSymbol(sf.path, sf.module, class_name))
        return list(info.members.items()) if info is not None else []

    def resolve_export(self, sf: SourceFile, name: str) -> Optional[DefinitionSite]:
        """Definition a module-level name of ``sf`` ultimately refers to."""
        self._require_resolved()
        target = self._lookup(self._scopes[sf.path], name, set())
        if isinstance(target, ProjectSymbol):
            return self.definition_of(target)
        return None

    def definition_of(self, symbol: ProjectSymbol) -> Optional[DefinitionSite]:
        self._require_resolved()
        if "." in symbol.qualname:
            owner, member = symbol.qualname.split(".", 1)
            info = self._classes.get(ProjectSymbol(symbol.file_path, symbol.module, owner))
            return info.members.get(member) if info else None
        scope = self._scopes.get(symbol.file_path)
        return scope.definitions.get(symbol.qualname) if scope else None

    def node_at(self, sf: SourceFile, line: int, column: int) -> Optional[Any]:
        """Identifier starting at the 1-based ``line``/``column``, if any."""
        self._require_resolved()
        point = sf.point_for(line, column)
        if point is None:
            return None
        return sf.identifiers().get(point)

    def symbol_at(self, sf: SourceFile, node: Any) -> Optional[ProjectSymbol]:
        """Symbol the identifier ``node`` is bound to, or ``None``."""
        self._require_resolved()
        if node is None or node.type != "identifier":
            return None
        return self._resolve_identifier(sf, node)

    def find_references(self, symbol: ProjectSymbol) -> List[ReferenceSite]:
        """Every identifier in the project bound to ``symbol``.

        Includes the definition site itself and names in import statements.
        """
        self._require_resolved()
        if self._references is None:
            self._references = self._build_reference_index()
        return list(self._references.get(symbol, ()))

    def _build_reference_index(self) -> Dict[ProjectSymbol, List[ReferenceSite]]:
        index: Dict[ProjectSymbol, List[ReferenceSite]] = defaultdict(list)
        count = 0
        for sf in self._files.values():
            for node in sf.identifiers().values():
                symbol = self._resolve_identifier(sf, node)
                if symbol is not None:
                    index[symbol].append(ReferenceSite(sf, node))
                    count += 1
        for sites in index.values():
            sites.sort(key=lambda s: s.node.start_byte)
        logger.debug("Indexed %d bound identifiers for %d symbols", count, len(index))
        return dict(index)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _lookup(self, scope: Optional[_ModuleScope], name: str, seen: Set[Tuple[str, str]],
                module: Optional[str] = None) -> Optional[Target]:
        """Resolve ``name`` at module scope, following import chains."""
        module = module if module is not None else (scope.source_file.module if scope else "")
        key = (module, name)
        if key in seen:
            logger.debug("Import cycle while resolving %s.%s", module, name)
            return None
        seen.add(key)

        submodule = f"{module}.{name}" if module else name
        if scope is None:
            return ModuleRef(submodule) if submodule in self._modules else None

        binding = scope.bindings.get(name)
        if binding is None:
            if submodule in self._modules:
                return ModuleRef(submodule)
            if not name.startswith("_"):
                for star in scope.star_imports:
                    found = self._lookup(self._scope_of(star), name, seen, module=star)
                    if found is not None:
                        return found
            return None

        if binding.kind == "definition":
            sf = scope.source_file
            return ProjectSymbol(sf.path, sf.module, name)
        if binding.kind == "module":
            return ModuleRef(binding.target)
        found = self._lookup(self._scope_of(binding.target), binding.name or name, seen, module=binding.target)
        if found is None and name in scope.definitions:
            # Import from outside the project; the local fallback definition stands in.
            sf = scope.source_file
            return ProjectSymbol(sf.path, sf.module, name)
        return found

    def _scope_of(self, module: str) -> Optional[_ModuleScope]:
        sf = self._modules.get(module)
        return self._scopes.get(sf.path) if sf is not None else None

    def _resolve_identifier(self, sf: SourceFile, node: Any) -> Optional[ProjectSymbol]:
        parent = node.parent
        if parent is None:
            return None

        scope = self._scopes.get(sf.path)
        site = scope.definitions.get(node_text(node)) if scope is not None else None
        if site is not None and _same(site.name_node, node):
            return ProjectSymbol(sf.path, sf.module, node_text(node))
        ptype = parent.type

        if ptype == "keyword_argument" and _same(parent.child_by_field_name("name"), node):
            return None

        if ptype == "attribute":
            if _same(parent.child_by_field_name("attribute"), node):
                base = self._resolve_expression(sf, parent.child_by_field_name("object"))
                target = self._member(base, node_text(node), set())
                return target if isinstance(target, ProjectSymbol) else None

        if ptype == "dotted_name":
            return self._resolve_import_name(sf, node, parent)

        if ptype == "aliased_import":
            return None

        if ptype in DEFINITION_TYPES and _same(parent.child_by_field_name("name"), node):
            owner = owning_class(parent)
            if owner is not None:
                return self._member_of_class_node(sf, owner, node_text(node))
            if enclosing(parent, _FUNCTION_SCOPES + ("class_definition",)) is not None:
                return None
            target = self._lookup(self._scopes.get(sf.path), node_text(node), set())
            return target if isinstance(target, ProjectSymbol) else None

        class_node = _class_body_target(node)
        if class_node is not None:
            return self._member_of_class_node(sf, class_node, node_text(node))

        target = self._resolve_name(sf, node)
        return target if isinstance(target, ProjectSymbol) else None

    def _resolve_import_name(self, sf: SourceFile, node: Any, dotted: Any) -> Optional[ProjectSymbol]:
        stmt = dotted.parent
        if stmt is not None and stmt.type == "aliased_import":
            if not _same(stmt.child_by_field_name("name"), dotted):
                return None
            stmt = stmt.parent
        if stmt is None or stmt.type != "import_from_statement":
            return None
        if _same(stmt.child_by_field_name("module_name"), dotted):
            return None
        module = self._import_source(sf, stmt)
        if module is None:
            return None
        target = self._lookup(self._scope_of(module), node_text(dotted), set(), module=module)
        return target if isinstance(target, ProjectSymbol) else None

    def _resolve_name(self, sf: SourceFile, node: Any) -> Optional[Target]:
        name = node_text(node)
        innermost = enclosing(node, _FUNCTION_SCOPES + ("class_definition",))
        if innermost is not None and innermost.type == "class_definition":
            member = self._member_of_class_node(sf, innermost, name)
            if member is not None:
                return member
        scope_node = node
        while True:
            func = enclosing(scope_node, _FUNCTION_SCOPES)
            if func is None:
                break
            if name in self._local_names(sf, func):
                return None
            scope_node = func
        return self._lookup(self._scopes.get(sf.path), name, set())

    def _resolve_expression(self, sf: SourceFile, expr: Any) -> Optional[Target]:
        if expr is None:
            return None
        if expr.type == "identifier":
            if node_text(expr) in ("self", "cls"):
                func = enclosing(expr, ("function_definition",))
                owner = owning_class(func) if func is not None else None
                if owner is not None:
                    return self._class_nodes.get((sf.path, owner.start_byte))
            return self._resolve_name(sf, expr)
        if expr.type == "attribute":
            base = self._resolve_expression(sf, expr.child_by_field_name("object"))
            attr = expr.child_by_field_name("attribute")
            return self._member(base, node_text(attr), set()) if attr is not None else None
        return None

    def _member(self, base: Optional[Target], name: str, seen: Set[ProjectSymbol]) -> Optional[Target]:
        if base is None:
            return None
        if isinstance(base, ModuleRef):
            return self._lookup(self._scope_of(base.name), name, set(), module=base.name)
        info = self._classes.get(base)
        if info is None or base in seen:
            return None
        seen.add(base)
        if name in info.members:
            return ProjectSymbol(base.file_path, base.module, f"{base.qualname}.{name}")
        for base_expr in class_bases(info.node):
            parent_cls = self._resolve_expression(info.source_file, base_expr)
            found = self._member(parent_cls, name, seen) if isinstance(parent_cls, ProjectSymbol) else None
            if found is not None:
                return found
        return None

    def _member_of_class_node(self, sf: SourceFile, class_node: Any, name: str) -> Optional[ProjectSymbol]:
        owner = self._class_nodes.get((sf.path, class_node.start_byte))
        if owner is None or name not in self._classes[owner].members:
            return None
        return ProjectSymbol(owner.file_path, owner.module, f"{owner.qualname}.{name}")

    def _local_names(self, sf: SourceFile, func: Any) -> Set[str]:
        key = (sf.path, func.start_byte)
        cached = self._locals.get(key)
        if cached is not None:
            return cached

        names: Set[str] = set()
        globals_: Set[str] = set()
        params = func.child_by_field_name("parameters")
        if params is not None:
            names.update(_parameter_names(params))

        body = func.child_by_field_name("body")
        stack = list(body.children) if body is not None and func.type == "function_definition" else []
        while stack:
            n = stack.pop()
            kind = n.type
            if kind in ("function_definition", "class_definition"):
                name_node = n.child_by_field_name("name")
                if name_node is not None:
                    names.add(node_text(name_node))
                continue
            if kind == "lambda":
                continue
            if kind in ("global_statement", "nonlocal_statement"):
                globals_.update(node_text(c) for c in n.named_children if c.type == "identifier")
                continue
            names.update(node_text(i) for i in _bound_identifiers(n))
            stack.extend(n.children)

        names -= globals_
        self._locals[key] = names
        return names


# ===================================================================
# Helpers
# ===================================================================

def module_name_for(path: Path, source_root: Path) -> Tuple[str, bool]:
    """Dotted module name of ``path`` relative to ``source_root``."""
    try:
        rel = path.relative_to(source_root)
    except ValueError:
        rel = Path(path.name)
    parts = list(rel.with_suffix("").parts)
    is_package = bool(parts) and parts[-1] == "__init__"
    if is_package:
        parts = parts[:-1]
    if not parts:
        parts = [source_root.name]
    return ".".join(parts), is_package


def _string_items(node: Any) -> List[str]:
    if node is None or node.type not in ("list", "tuple"):
        return []
    items = []
    for child in node.named_children:
        value = string_value(child)
        if value is not None:
            items.append(value)
    return items


def _class_body_target(node: Any) -> Optional[Any]:
    """Class whose body assigns ``node`` as a direct target, if any."""
    parent = node.parent
    if parent is None or parent.type != "assignment" or not _same(parent.child_by_field_name("left"), node):
        return None
    stmt = parent.parent
    block = stmt.parent if stmt is not None else None
    if block is None or block.type != "block":
        return None
    owner = block.parent
    return owner if owner is not None and owner.type == "class_definition" else None


def _parameter_names(params: Any) -> List[str]:
    names = []
    for p in params.named_children:
        if p.type == "identifier":
            names.append(node_text(p))
        elif p.type in ("default_parameter", "typed_default_parameter"):
            name_node = p.child_by_field_name("name")
            if name_node is not None:
                names.append(node_text(name_node))
        elif p.type in ("typed_parameter", "list_splat_pattern", "dictionary_splat_pattern"):
            ident = next((c for c in iter_nodes(p) if c.type == "identifier"), None)
            if ident is not None:
                names.append(node_text(ident))
    return names


def _bound_identifiers(node: Any) -> Iterable[Any]:
    """Identifiers a single statement/expression node binds in its scope."""
    kind = node.type
    if kind in ("assignment", "augmented_assignment", "for_statement", "for_in_clause"):
        return target_identifiers(node.child_by_field_name("left"))
    if kind == "named_expression":
        name_node = node.child_by_field_name("name")
        return [name_node] if name_node is not None else []
    if kind == "as_pattern":
        alias = node.child_by_field_name("alias")
        if alias is None:
            return []
        return [n for n in iter_nodes(alias) if n.type == "identifier"]
    if kind == "import_statement":
        found = []
        for item in node.children_by_field_name("name"):
            if item.type == "aliased_import":
                alias = item.child_by_field_name("alias")
                if alias is not None:
                    found.append(alias)
            elif item.named_children:
                found.append(item.named_children[0])
        return found
    if kind == "import_from_statement":
        found = []
        for item in node.children_by_field_name("name"):
            if item.type == "aliased_import":
                alias = item.child_by_field_name("alias")
                if alias is not None:
                    found.append(alias)
            elif item.named_children:
                found.append(item.named_children[-1])
        return found
    return []
