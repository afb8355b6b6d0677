"""Local, deterministic embeddings for indexed symbols.

:class:`HashEmbeddingModel` needs no model download and no network: tokens
are hashed into signed buckets and the result is L2-normalised.  It gives
keyword-level similarity only, which is enough to group symbols that share
vocabulary in their names, kinds and locations.
"""

from __future__ import annotations

import logging
import math
import re
from hashlib import blake2b
from typing import Iterable, List, Mapping

from .models import EmbeddedEntry, SymbolDefinition

logger = logging.getLogger(__name__)

DEFAULT_DIM = 256

_TOKEN_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class HashEmbeddingModel:
    """Deterministic token-hashing embedder."""

    def __init__(self, dim: int = DEFAULT_DIM) -> None:
        if dim <= 0:
            raise ValueError("dim must be positive")
        self.dim = dim

    def embed_text(self, text: str) -> List[float]:
        vec = [0.0] * self.dim
        tokens = _TOKEN_RE.findall(text.lower())
        if not tokens:
            return vec
        for token in tokens:
            digest = blake2b(token.encode("utf-8"), digest_size=8).digest()
            idx = int.from_bytes(digest[:4], "big") % self.dim
            sign = 1.0 if (digest[4] & 1) == 0 else -1.0
            vec[idx] += sign
        return _l2_normalize(vec)

    def embed_many(self, texts: Iterable[str]) -> List[List[float]]:
        return [self.embed_text(text) for text in texts]


def _l2_normalize(vec: List[float]) -> List[float]:
    """Return *vec* scaled to unit length; a zero vector is returned unchanged."""
    norm = math.sqrt(sum(v * v for v in vec))
    if norm < 1e-12:
        return vec
    return [v / norm for v in vec]


def split_identifier(name: str) -> List[str]:
    """``parseHTTPConfig`` / ``parse_http_config`` -> word parts, lowercased."""
    words: List[str] = []
    for chunk in name.split("_"):
        words.extend(w.lower() for w in _CAMEL_RE.split(chunk) if w)
    return words


def symbol_text(definition: SymbolDefinition) -> str:
    """Text fed to the embedder for one definition."""
    parts = [definition.qualname, " ".join(split_identifier(definition.name))]
    if definition.container:
        parts.append(" ".join(split_identifier(definition.container)))
    parts.append(definition.kind.label)
    path = definition.location.relative_path
    parts.append(" ".join(split_identifier(path.rsplit("/", 1)[-1].rsplit(".", 1)[0])))
    return " ".join(p for p in parts if p)


def embed_symbols(table: Mapping[str, SymbolDefinition], model: HashEmbeddingModel) -> List[EmbeddedEntry]:
    """Embed every definition of ``table`` in table order."""
    definitions = list(table.values())
    vectors = model.embed_many(symbol_text(d) for d in definitions)
    entries = [
        EmbeddedEntry(
            id=d.id,
            embedding=vec,
            display_name=d.qualname,
            kind=d.kind.label,
            file_path=d.location.file_path,
            relative_file_path=d.location.relative_path,
        )
        for d, vec in zip(definitions, vectors)
    ]
    logger.debug("Embedded %d symbols (dim=%d)", len(entries), model.dim)
    return entries
