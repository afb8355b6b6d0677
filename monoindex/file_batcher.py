"""Collect source files and pack them into token-bounded batches.

Files are scored by :class:`~monoindex.priority.PriorityPolicy`, sorted so the
most central code comes first, then greedily packed into batches that fit a
token budget.  A file too large for any batch is emitted on its own.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Set

from .config import AnalysisConfig
from .errors import AnalysisError
from .models import Batch, FileRecord, WorkspacePackage, estimate_tokens
from .patterns import PatternSet
from .priority import PriorityPolicy

logger = logging.getLogger(__name__)


def _raise_walk_error(exc: OSError) -> None:
    raise exc


class FileBatcher:
    """Responsible for collecting source files and organising them into batches."""

    def __init__(self, policy: Optional[PriorityPolicy] = None) -> None:
        self.policy = policy or PriorityPolicy()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_batches(self, packages: Sequence[WorkspacePackage], config: AnalysisConfig) -> List[Batch]:
        """Collect files for ``packages`` and pack them into batches.

        Raises:
            AnalysisError: a package tree cannot be enumerated.
        """
        logger.info("Creating token-aware batches (limit %d tokens)", config.max_tokens_per_batch)
        include = config.effective_include_patterns
        if config.target_paths:
            logger.info("Target paths override include patterns: %s", ", ".join(config.target_paths))

        files = self.collect_files(packages, include, config.ignore_patterns)
        files = sort_by_priority(files)
        logger.info("Found %d source files for processing", len(files))

        batches = pack_batches(files, config.max_tokens_per_batch)
        if batches:
            avg = sum(len(b) for b in batches) / len(batches)
            logger.info("Created %d batches (average %.1f files per batch)", len(batches), avg)
        return batches

    def collect_files(
        self,
        packages: Sequence[WorkspacePackage],
        include: Sequence[str],
        exclude: Sequence[str] = (),
    ) -> List[FileRecord]:
        """Enumerate matching files of every package, in collection order.

        Each file is collected once and owned by the deepest package whose
        root contains it, whichever package reached it first.
        """
        patterns = PatternSet(include, exclude)
        owners = sorted(
            ((pkg.root_path.resolve(), pkg) for pkg in packages),
            key=lambda item: len(item[0].parts),
            reverse=True,
        )
        seen: Set[Path] = set()
        records: List[FileRecord] = []

        for pkg in packages:
            try:
                candidates = list(self._walk(pkg.root_path, patterns))
            except OSError as exc:
                raise AnalysisError(
                    f"error enumerating files in package {pkg.name} ({pkg.root_path}): {exc}",
                    path=pkg.root_path,
                    cause=exc,
                ) from exc

            for file_path in candidates:
                resolved = file_path.resolve()
                if resolved in seen:
                    continue
                try:
                    st = file_path.stat()
                except OSError as exc:
                    logger.warning("Could not read file stats for %s: %s", file_path, exc)
                    continue
                if not stat.S_ISREG(st.st_mode):
                    logger.debug("Skipping non-file path: %s", file_path)
                    continue
                seen.add(resolved)
                owner = next((p for root, p in owners if root in resolved.parents), pkg)
                records.append(FileRecord(
                    path=file_path,
                    size_bytes=st.st_size,
                    priority=self.policy.file_priority(file_path, owner.priority),
                    package=owner.name,
                ))
        return records

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _walk(root: Path, patterns: PatternSet) -> Iterator[Path]:
        if not root.is_dir():
            raise NotADirectoryError(f"package root is not a directory: {root}")
        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
            rel_dir = Path(dirpath).relative_to(root).as_posix()
            prefix = "" if rel_dir == "." else rel_dir + "/"
            dirnames[:] = sorted(d for d in dirnames if not patterns.prunes(prefix + d))
            for name in sorted(filenames):
                if patterns.matches(prefix + name):
                    yield Path(dirpath) / name


def sort_by_priority(files: Sequence[FileRecord]) -> List[FileRecord]:
    """Stable sort, highest priority first."""
    return sorted(files, key=lambda f: f.priority, reverse=True)


def pack_batches(sorted_files: Sequence[FileRecord], max_tokens: int) -> List[Batch]:
    """Greedy bin-packing in the given order.

    Invariants: every batch is within ``max_tokens`` unless it holds exactly
    one oversized file, and every file lands in exactly one batch.  Ids are
    assigned in creation order before the final stable sort by priority.
    """
    if max_tokens <= 0:
        raise ValueError("max_tokens must be positive")

    batches: List[Batch] = []
    current: List[FileRecord] = []
    current_tokens = 0
    current_priority = 0.0

    def flush() -> None:
        nonlocal current, current_tokens, current_priority
        batches.append(Batch(
            id=len(batches),
            files=tuple(current),
            estimated_tokens=current_tokens,
            priority=current_priority,
        ))
        current, current_tokens, current_priority = [], 0, 0.0

    for record in sorted_files:
        tokens = estimate_tokens(record.size_bytes)

        if tokens > max_tokens:
            logger.warning(
                "File %s (~%d tokens) exceeds max batch size (%d tokens), processing separately",
                record.path, tokens, max_tokens,
            )
            batches.append(Batch(
                id=len(batches),
                files=(record,),
                estimated_tokens=tokens,
                priority=record.priority,
            ))
            continue

        if current and current_tokens + tokens > max_tokens:
            flush()

        current_priority = record.priority if not current else max(current_priority, record.priority)
        current.append(record)
        current_tokens += tokens

    if current:
        flush()

    return sorted(batches, key=lambda b: b.priority, reverse=True)
