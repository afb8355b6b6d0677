"""monoindex: workspace discovery, batching and symbol indexing for Python monorepos."""

from __future__ import annotations

__version__ = "0.1.0"

from .config import AnalysisConfig, load_config
from .errors import AnalysisError, ConfigError, MonoindexError, ProjectBuildError
from .file_batcher import FileBatcher
from .models import (
    AnalysisResult,
    Batch,
    DeclarationKind,
    EmbeddedEntry,
    FileRecord,
    RelatedEntry,
    SymbolDefinition,
    SymbolLocation,
    SymbolUsage,
    WorkspacePackage,
)
from .orchestrator import WorkspaceAnalyzer
from .package_detector import PackageDetector
from .project import SourceProject
from .symbol_indexer import SymbolIndexer, SymbolTable
from .vector_store import InMemoryVectorStore, cosine_similarity

__all__ = [
    "__version__",
    "AnalysisConfig",
    "AnalysisError",
    "AnalysisResult",
    "Batch",
    "ConfigError",
    "DeclarationKind",
    "EmbeddedEntry",
    "FileBatcher",
    "FileRecord",
    "InMemoryVectorStore",
    "MonoindexError",
    "PackageDetector",
    "ProjectBuildError",
    "RelatedEntry",
    "SourceProject",
    "SymbolDefinition",
    "SymbolIndexer",
    "SymbolLocation",
    "SymbolTable",
    "SymbolUsage",
    "WorkspaceAnalyzer",
    "WorkspacePackage",
    "cosine_similarity",
    "load_config",
]
