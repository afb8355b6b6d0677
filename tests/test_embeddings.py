"""Tests for the hash embedder and symbol embedding helpers."""

import math

import pytest

from monoindex.embeddings import HashEmbeddingModel, embed_symbols, split_identifier, symbol_text
from monoindex.models import DeclarationKind, SymbolDefinition, SymbolLocation
from monoindex.vector_store import cosine_similarity


def _definition(name: str, kind=DeclarationKind.FUNCTION, container=None, path="pkg/mod.py") -> SymbolDefinition:
    return SymbolDefinition(
        id=f"{path}:1:1:{name}",
        name=name,
        kind=kind,
        location=SymbolLocation(file_path=f"/ws/{path}", relative_path=path, line=1, column=1),
        container=container,
    )


def test_embedding_is_deterministic_and_normalised():
    model = HashEmbeddingModel()
    a = model.embed_text("parse config file")
    b = model.embed_text("parse config file")
    assert a == b
    assert len(a) == 256
    assert math.isclose(math.sqrt(sum(v * v for v in a)), 1.0)


def test_text_without_tokens_gives_zero_vector():
    assert HashEmbeddingModel(dim=8).embed_text("123 !!") == [0.0] * 8


def test_invalid_dimension():
    with pytest.raises(ValueError):
        HashEmbeddingModel(dim=0)


def test_shared_vocabulary_scores_higher():
    model = HashEmbeddingModel()
    query = model.embed_text("load user profile")
    close = model.embed_text("load user settings")
    far = model.embed_text("render chart axis")
    assert cosine_similarity(query, close) > cosine_similarity(query, far)


@pytest.mark.parametrize(
    "name, words",
    [
        ("parse_http_config", ["parse", "http", "config"]),
        ("parseConfig", ["parse", "config"]),
        ("__init__", ["init"]),
        ("URL", ["url"]),
    ],
)
def test_split_identifier(name, words):
    assert split_identifier(name) == words


def test_symbol_text_mentions_name_kind_container_and_file():
    text = symbol_text(_definition("loadUser", DeclarationKind.METHOD, container="UserRepo", path="svc/repo.py"))
    assert "UserRepo.loadUser" in text
    assert "load user" in text
    assert "method" in text
    assert "repo" in text.split()


def test_embed_symbols_preserves_order_and_metadata():
    table = {
        d.id: d
        for d in [
            _definition("alpha"),
            _definition("beta", DeclarationKind.CLASS),
            _definition("gamma", DeclarationKind.METHOD, container="Beta"),
        ]
    }
    entries = embed_symbols(table, HashEmbeddingModel(dim=32))
    assert [e.id for e in entries] == list(table)
    assert [e.kind for e in entries] == ["function", "class", "method"]
    assert entries[2].display_name == "Beta.gamma"
    assert entries[0].relative_file_path == "pkg/mod.py"
    assert all(len(e.embedding) == 32 for e in entries)
