"""Collection lifecycle shared by every backend.

absent -> created with the provider's dimension; present with the same
dimension -> left alone; present with another dimension -> dropped and
recreated.  The last case is the only automatic destructive operation.
"""

from __future__ import annotations

import logging

from nlweb_search.errors import DimensionMismatchError
from nlweb_search.retrieval.base import VectorBackend

logger = logging.getLogger(__name__)


def verify_dimension(backend: VectorBackend, expected: int) -> None:
    """Raise :class:`DimensionMismatchError` if the stored size differs.

    An unknown size (e.g. an empty Weaviate class) is accepted.
    """
    current = backend.collection_dimension()
    if current is not None and current != expected:
        raise DimensionMismatchError(backend.collection_name, current, expected)


def ensure_collection(backend: VectorBackend, dimension: int) -> bool:
    """Bring the backend's collection to *dimension*.

    Returns ``True`` when the collection was created or recreated, ``False``
    when it already matched.
    """
    if not backend.collection_exists():
        logger.info(
            "Creating %s collection %r (dim=%d)", backend.name, backend.collection_name, dimension
        )
        backend.create_collection(dimension)
        return True

    try:
        verify_dimension(backend, dimension)
    except DimensionMismatchError as exc:
        logger.warning("%s; dropping and recreating it, stored vectors are lost", exc)
        backend.drop_collection()
        backend.create_collection(dimension)
        return True
    return False
