import math

import pytest

from conifer_local.domain.errors import BadRequestError, NotFoundError
from conifer_local.services.embeddings import StubEmbeddingProvider, embed_dimension, get_model


def test_dense_embeddings_are_deterministic_and_normalized():
    e = StubEmbeddingProvider()
    a1, b = e.embed(["alpha", "beta"], 16)
    (a2,) = e.embed(["alpha"], 16)
    assert a1 == a2
    assert a1 != b
    assert math.isclose(math.sqrt(sum(x * x for x in a1)), 1.0, rel_tol=1e-5)


def test_sparse_embeddings_weight_repeated_tokens():
    (indices, values, tokens), = StubEmbeddingProvider().embed_sparse(["the cat the hat"])
    weights = dict(zip(tokens, values))
    assert tokens == ["cat", "hat", "the"]
    assert weights["the"] == pytest.approx(0.5)
    assert len(set(indices)) == 3


def test_model_catalog_lookups():
    assert get_model("multilingual-e5-large", "embed")["vector_type"] == "dense"
    with pytest.raises(NotFoundError):
        get_model("no-such-model")
    with pytest.raises(BadRequestError):
        get_model("bge-reranker-v2-m3", "embed")


def test_embed_dimension_checks_supported_sizes():
    llama = get_model("llama-text-embed-v2")
    assert embed_dimension(llama, None) == 1024
    assert embed_dimension(llama, {"dimension": 384}) == 384
    with pytest.raises(BadRequestError):
        embed_dimension(llama, {"dimension": 100})
