#!/usr/bin/env python
"""Bulk load clustered demo vectors into an index via the SDK.

Usage:
    python scripts/load_dummy_vectors.py \
        --host http://localhost:8000 \
        --index-name clustered-demo \
        --clusters 4 --per-cluster 50
"""
from __future__ import annotations

import argparse

import numpy as np

from conifer import Client, ClientConfig, models as M
from conifer.exceptions import ApiError, NotFound


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Bulk load clustered demo vectors into an index."
    )
    parser.add_argument(
        "--host",
        default="http://localhost:8000",
        help="Control-plane base URL (default: %(default)s)",
    )
    parser.add_argument(
        "--api-key",
        default=None,
        help="API key; falls back to PINECONE_API_KEY",
    )
    parser.add_argument(
        "--index-name",
        default="clustered-demo",
        help="Serverless index to create or reuse (default: %(default)s)",
    )
    parser.add_argument(
        "--namespace",
        default="",
        help="Namespace to write into (default: the default namespace)",
    )
    parser.add_argument(
        "--dimension",
        type=int,
        default=16,
        help="Vector dimension used when creating the index (default: %(default)s)",
    )
    parser.add_argument(
        "--metric",
        default="cosine",
        choices=["cosine", "dotproduct", "euclidean"],
        help="Similarity metric used when creating the index (default: %(default)s)",
    )
    parser.add_argument("--clusters", type=int, default=4, help="Number of clusters (default: %(default)s)")
    parser.add_argument("--per-cluster", type=int, default=50, help="Vectors per cluster (default: %(default)s)")
    parser.add_argument("--batch-size", type=int, default=100, help="Upsert batch size (default: %(default)s)")
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Seed for the generated clusters (default: %(default)s)",
    )
    return parser.parse_args()


def make_vectors(clusters: int, per_cluster: int, dim: int, seed: int) -> list[M.Vector]:
    rng = np.random.default_rng(seed)
    centers = rng.normal(size=(clusters, dim))
    out: list[M.Vector] = []
    for c, center in enumerate(centers):
        points = center + 0.1 * rng.normal(size=(per_cluster, dim))
        for i, p in enumerate(points):
            out.append(M.Vector(
                id=f"c{c}-{i}",
                values=p.astype(float).tolist(),
                metadata={"cluster": c},
            ))
    return out


def ensure_index(cli: Client, name: str, dim: int, metric: str) -> M.Index:
    try:
        idx = cli.describe_index(name)
        print(f"[info] Reusing existing index {idx.name} ({idx.host})")
        return idx
    except NotFound:
        pass
    idx = cli.create_serverless_index(M.CreateServerlessIndexRequest(
        name=name, cloud=M.Cloud.AWS, region="us-east-1", dimension=dim, metric=metric,
    ))
    print(f"[info] Created index {idx.name} ({idx.host})")
    return idx


def main() -> None:
    args = parse_args()
    vectors = make_vectors(args.clusters, args.per_cluster, args.dimension, args.seed)

    cli = Client.with_api_key(args.api_key, host=args.host)
    try:
        idx = ensure_index(cli, args.index_name, args.dimension, args.metric)
    except ApiError as exc:
        raise SystemExit(f"Failed to create or fetch index: {exc}") from exc

    with cli.index(idx.host, namespace=args.namespace) as conn:
        total = 0
        for start in range(0, len(vectors), args.batch_size):
            total += conn.upsert_vectors(vectors[start:start + args.batch_size])
        stats = conn.describe_index_stats()

    print(
        f"[info] Loaded {total} vectors across {args.clusters} clusters "
        f"into index {idx.name}; total in index: {stats.total_vector_count}"
    )
    cli.close()


if __name__ == "__main__":
    main()
