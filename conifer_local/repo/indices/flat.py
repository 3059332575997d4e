from __future__ import annotations
from heapq import nlargest, nsmallest
from typing import Iterable, Literal, Mapping
from conifer_local.repo.indices.metrics import cosine, dot, l2sq, sparse_dot

Metric = Literal["cosine", "dotproduct", "euclidean"]

# (id, dense values or None, sparse index->value map or None)
Entry = tuple[str, "list[float] | None", "Mapping[int, float] | None"]


class FlatIndex:
    """Exact scan over every entry.

    cosine and dotproduct scores are higher-is-better; euclidean scores are
    squared distances and come back lowest first. Sparse components add a
    dot-product term.
    """

    def __init__(self, metric: Metric = "cosine"):
        self.entries: list[Entry] = []
        self.metric = metric

    def rebuild(self, entries: Iterable[Entry]):
        self.entries = list(entries)

    def score(self, q: list[float] | None, qs: Mapping[int, float] | None,
              v: list[float] | None, vs: Mapping[int, float] | None) -> float:
        s = 0.0
        if q is not None and v is not None:
            if self.metric == "cosine":
                s += cosine(q, v)
            elif self.metric == "dotproduct":
                s += dot(q, v)
            else:
                s += l2sq(q, v)
        if qs and vs:
            s += sparse_dot(qs, vs)
        return s

    def query(self, q: list[float] | None, qs: Mapping[int, float] | None, k: int) -> list[tuple[str, float]]:
        if not self.entries:
            return []
        scores = [(id_, self.score(q, qs, v, vs)) for id_, v, vs in self.entries]
        if self.metric == "euclidean":
            return nsmallest(k, scores, key=lambda t: t[1])
        return nlargest(k, scores, key=lambda t: t[1])
