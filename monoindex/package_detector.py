"""Discover workspace packages by scanning for ``pyproject.toml`` manifests."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import toml

from .config import MANIFEST_NAME
from .errors import AnalysisError
from .models import WorkspacePackage
from .priority import PriorityPolicy

logger = logging.getLogger(__name__)

TYPE_CONFIG_FILES = ("mypy.ini", "pyrightconfig.json")
TYPE_CHECKERS = {"mypy", "pyright"}

_REQUIREMENT_NAME_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


class ManifestError(ValueError):
    """A ``pyproject.toml`` exists but cannot be parsed."""


def read_manifest(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = toml.load(f)
    except (ValueError, IndexError) as exc:
        raise ManifestError(f"malformed TOML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(f"unexpected manifest structure in {path}")
    return data


def manifest_name(manifest: Dict[str, Any]) -> Optional[str]:
    name = manifest.get("project", {}).get("name")
    if not name:
        name = manifest.get("tool", {}).get("poetry", {}).get("name")
    return str(name) if name else None


def declared_dependencies(manifest: Dict[str, Any]) -> List[str]:
    """Every requirement string the manifest declares, runtime and optional."""
    deps: List[str] = []
    project = manifest.get("project", {})
    deps.extend(project.get("dependencies", []) or [])
    for extra in (project.get("optional-dependencies", {}) or {}).values():
        deps.extend(extra or [])
    for group in (manifest.get("dependency-groups", {}) or {}).values():
        deps.extend(d for d in group or [] if isinstance(d, str))

    poetry = manifest.get("tool", {}).get("poetry", {})
    deps.extend(k for k in (poetry.get("dependencies", {}) or {}) if k.lower() != "python")
    deps.extend(poetry.get("dev-dependencies", {}) or {})
    for group in (poetry.get("group", {}) or {}).values():
        deps.extend((group or {}).get("dependencies", {}) or {})
    return [d for d in deps if isinstance(d, str)]


def _requirement_names(requirements: Iterable[str]) -> List[str]:
    names = []
    for req in requirements:
        m = _REQUIREMENT_NAME_RE.match(req)
        if m:
            names.append(m.group(1).lower())
    return names


def is_typed_package(package_dir: Path, manifest: Dict[str, Any], dependencies: List[str]) -> bool:
    tool = manifest.get("tool", {})
    if "mypy" in tool or "pyright" in tool:
        return True
    if TYPE_CHECKERS.intersection(_requirement_names(dependencies)):
        return True
    if any((package_dir / name).is_file() for name in TYPE_CONFIG_FILES):
        return True
    return any(package_dir.glob("*/py.typed")) or any(package_dir.glob("src/*/py.typed"))


class PackageDetector:
    """Discovers workspace packages within a monorepo.

    The workspace root and the immediate children of each candidate
    directory (``packages/``, ``apps/`` ...) are checked for a
    ``pyproject.toml``; every hit becomes a :class:`WorkspacePackage`.
    """

    def __init__(self, policy: Optional[PriorityPolicy] = None) -> None:
        self.policy = policy or PriorityPolicy()

    def discover_packages(self, workspace_dirs: List[str], base_dir: Path) -> List[WorkspacePackage]:
        """Return discovered packages sorted by priority, highest first.

        Raises:
            AnalysisError: a candidate directory exists but cannot be listed.
        """
        base_dir = Path(base_dir)
        logger.info("Discovering workspace packages in %s", base_dir)
        packages: List[WorkspacePackage] = []

        root_manifest = base_dir / MANIFEST_NAME
        if root_manifest.is_file():
            root_pkg = self._build_package(base_dir, root_manifest, "root", base_dir.resolve().name)
            if root_pkg is not None:
                packages.append(root_pkg)

        for dir_name in workspace_dirs:
            dir_path = base_dir / dir_name
            if not dir_path.is_dir():
                logger.debug("Workspace directory '%s' not found at %s, skipping", dir_name, dir_path)
                continue

            try:
                with os.scandir(dir_path) as it:
                    children = sorted(
                        (entry for entry in it if entry.is_dir()),
                        key=lambda e: e.name,
                    )
            except OSError as exc:
                raise AnalysisError(
                    f"could not read workspace directory '{dir_path}': {exc}",
                    path=dir_path,
                    cause=exc,
                ) from exc

            for child in children:
                package_path = Path(child.path)
                manifest_path = package_path / MANIFEST_NAME
                try:
                    has_manifest = manifest_path.is_file()
                except OSError as exc:
                    logger.warning("Cannot inspect %s: %s, skipping", package_path, exc)
                    continue
                if not has_manifest:
                    logger.debug("Skipping %s: no %s", package_path.relative_to(base_dir), MANIFEST_NAME)
                    continue
                pkg = self._build_package(package_path, manifest_path, dir_name, child.name)
                if pkg is not None:
                    packages.append(pkg)

        # sort() is stable: equal priorities keep discovery order.
        packages.sort(key=lambda p: p.priority, reverse=True)
        logger.info("Discovered %d packages", len(packages))
        return packages

    def _build_package(
        self,
        package_path: Path,
        manifest_path: Path,
        kind: str,
        fallback_name: str,
    ) -> Optional[WorkspacePackage]:
        try:
            manifest = read_manifest(manifest_path)
        except (OSError, ManifestError) as exc:
            logger.warning("Could not parse %s, skipping package: %s", manifest_path, exc)
            return None

        name = manifest_name(manifest) or fallback_name
        dependencies = declared_dependencies(manifest)
        typed = is_typed_package(package_path, manifest, dependencies)
        priority = self.policy.package_priority(name, kind, len(dependencies), typed)

        logger.info(
            "Found package %s (type: %s%s, priority: %g)",
            name, kind, ", typed" if typed else "", priority,
        )
        return WorkspacePackage(
            name=name,
            root_path=package_path,
            kind=kind,
            priority=priority,
            manifest_path=manifest_path,
            dependency_count=len(dependencies),
            typed=typed,
        )
