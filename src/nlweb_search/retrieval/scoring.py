"""Native score → canonical ``[0, 1]`` similarity.

The divisors are calibration constants kept for compatibility with
existing deployments; they are not derived from the metrics themselves.
Results are clamped so out-of-range distances cannot leak negative or
>1 scores.
"""

from __future__ import annotations

L2_DISTANCE_SCALE = 20.0
COSINE_DISTANCE_SCALE = 2.0


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def l2_distance_to_similarity(distance: float) -> float:
    """Milvus HNSW/L2 distance."""
    return _clamp(1.0 - distance / L2_DISTANCE_SCALE)


def cosine_distance_to_similarity(distance: float) -> float:
    """Chroma cosine distance (0 = identical, 2 = opposite)."""
    return _clamp(1.0 - distance / COSINE_DISTANCE_SCALE)


def passthrough_similarity(score: float) -> float:
    """Qdrant/Pinecone cosine similarity and Weaviate certainty."""
    return _clamp(score)
