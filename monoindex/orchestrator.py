"""Orchestrator running discovery, batching, project build and indexing."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from .config import AnalysisConfig
from .file_batcher import FileBatcher
from .models import AnalysisResult, WorkspacePackage
from .package_detector import PackageDetector
from .priority import PriorityPolicy
from .project import SourceProject
from .symbol_indexer import SymbolIndexer, SymbolTable

logger = logging.getLogger(__name__)


class WorkspaceAnalyzer:
    """Coordinates package discovery, batching and symbol indexing."""

    def __init__(self, policy: Optional[PriorityPolicy] = None) -> None:
        self.policy = policy
        self.indexer = SymbolIndexer()

    def analyze(
        self,
        config: AnalysisConfig,
        base_dir: Path,
        project: Optional[SourceProject] = None,
    ) -> AnalysisResult:
        """Analyse the workspace at ``base_dir``.

        Raises:
            AnalysisError: a stage hit a structural failure; no partial
                result is returned.
        """
        base_dir = Path(base_dir)
        policy = self.policy or config.policy
        logger.info("Starting workspace analysis of %s", base_dir)

        packages = PackageDetector(policy).discover_packages(config.workspace_dirs, base_dir)
        if not packages:
            logger.warning("No packages found in workspace %s", base_dir)
            return AnalysisResult(symbol_table=SymbolTable({}))

        batcher = FileBatcher(policy)
        batches = batcher.create_batches(packages, config)

        project = project if project is not None else SourceProject()
        registered = self._register_files(project, batcher, packages, config)
        logger.info("Registered %d files in source project", registered)
        project.resolve_dependencies()

        symbol_table = self.indexer.analyze_symbols(project, base_dir)
        logger.info(
            "Analysis complete: %d packages, %d batches, %d symbols",
            len(packages), len(batches), len(symbol_table),
        )
        return AnalysisResult(packages=packages, batches=batches, symbol_table=symbol_table)

    @staticmethod
    def _register_files(
        project: SourceProject,
        batcher: FileBatcher,
        packages: Sequence[WorkspacePackage],
        config: AnalysisConfig,
    ) -> int:
        records = batcher.collect_files(packages, config.include_patterns, config.ignore_patterns)
        # Deepest package first so nested packages get their own source root.
        roots = sorted(
            ((pkg.root_path.resolve(), source_root_for(pkg)) for pkg in packages),
            key=lambda item: len(item[0].parts),
            reverse=True,
        )
        count = 0
        for record in records:
            path = record.path.resolve()
            source_root = next((src for root, src in roots if root in path.parents), None)
            if project.add_source_file(path, source_root) is not None:
                count += 1
        return count


def source_root_for(package: WorkspacePackage) -> Path:
    """``<package>/src`` when the package uses a src layout, else the package root."""
    src = package.root_path / "src"
    return src if src.is_dir() else package.root_path
