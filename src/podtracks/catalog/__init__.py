"""Catalog records, normalization, deduplication and persistence."""

from podtracks.catalog.dedup import DedupDecision, DeduplicationEngine, DedupOutcome, match_key
from podtracks.catalog.models import CatalogMetadata, CatalogSnapshot, Track
from podtracks.catalog.normalizer import make_placeholder, normalize
from podtracks.catalog.store import CatalogStore

__all__ = [
    "CatalogMetadata",
    "CatalogSnapshot",
    "CatalogStore",
    "DedupDecision",
    "DedupOutcome",
    "DeduplicationEngine",
    "Track",
    "make_placeholder",
    "match_key",
    "normalize",
]
