"""In-memory vector store for symbol embeddings.

Entries are appended and scanned linearly; there is no index and nothing is
persisted.  Suitable for a single analysis run over one workspace.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Optional

from .models import EmbeddedEntry, RelatedEntry

logger = logging.getLogger(__name__)


def cosine_similarity(vec_a: List[float], vec_b: List[float]) -> float:
    """Cosine similarity between two vectors.

    Returns a value in ``[-1, 1]``.  Empty, mismatched or zero-magnitude
    vectors return ``0.0``.
    """
    if not vec_a or not vec_b or len(vec_a) != len(vec_b):
        return 0.0
    dot = sum(a * b for a, b in zip(vec_a, vec_b))
    norm_a = math.sqrt(sum(a * a for a in vec_a))
    norm_b = math.sqrt(sum(b * b for b in vec_b))
    if norm_a < 1e-12 or norm_b < 1e-12:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryVectorStore:
    """Append-only store of :class:`EmbeddedEntry` objects.

    The first non-empty entry fixes the store's dimensionality; later
    entries of a different size are kept but logged, and simply score
    ``0.0`` against queries of the other size.
    """

    def __init__(self) -> None:
        self._entries: List[EmbeddedEntry] = []
        self._by_id: Dict[str, EmbeddedEntry] = {}
        self._dim: Optional[int] = None

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def add_entries(self, entries: Iterable[EmbeddedEntry]) -> None:
        entries = list(entries)
        if not entries:
            logger.debug("add_entries called with no entries")
            return

        for entry in entries:
            size = len(entry.embedding)
            if size:
                if self._dim is None:
                    self._dim = size
                elif size != self._dim:
                    logger.warning(
                        "Embedding for %s has %d dimensions, store holds %d",
                        entry.id, size, self._dim,
                    )
            self._entries.append(entry)
            self._by_id.setdefault(entry.id, entry)

        logger.debug("Added %d entries to vector store (total %d)", len(entries), len(self._entries))

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def find_related(
        self,
        query: List[float],
        min_score: float = 0.0,
        max_results: int = 10,
        exclude_id: Optional[str] = None,
    ) -> List[RelatedEntry]:
        """Entries scoring at least ``min_score`` against ``query``.

        Sorted by score, highest first; ties keep insertion order.  A
        ``max_results`` of zero or less means no limit.
        """
        results: List[RelatedEntry] = []
        for entry in self._entries:
            if exclude_id is not None and entry.id == exclude_id:
                continue
            if not entry.embedding:
                logger.debug("Skipping %s: empty embedding", entry.id)
                continue
            score = cosine_similarity(query, entry.embedding)
            if score < min_score:
                continue
            results.append(RelatedEntry(
                id=entry.id,
                name=entry.display_name,
                kind=entry.kind,
                file_path=entry.file_path,
                relative_file_path=entry.relative_file_path,
                relationship_score=score,
            ))

        results.sort(key=lambda r: r.relationship_score, reverse=True)
        if max_results > 0:
            results = results[:max_results]
        return results

    def get(self, entry_id: str) -> Optional[EmbeddedEntry]:
        return self._by_id.get(entry_id)

    def count(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def dimension(self) -> Optional[int]:
        return self._dim
