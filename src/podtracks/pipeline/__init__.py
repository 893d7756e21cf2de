"""Batch resolution pipeline."""

from podtracks.pipeline.models import ItemOutcome, RunSummary
from podtracks.pipeline.resolver import ReferenceResolver
from podtracks.pipeline.scheduler import BatchScheduler

__all__ = ["BatchScheduler", "ItemOutcome", "ReferenceResolver", "RunSummary"]
