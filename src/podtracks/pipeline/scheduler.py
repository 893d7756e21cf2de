"""Batch scheduler: paced, resumable resolution of a reference list."""

import logging
import time
from collections.abc import Callable, Sequence

from podtracks.catalog.dedup import DeduplicationEngine, DedupOutcome
from podtracks.catalog.models import CatalogSnapshot, Track
from podtracks.catalog.normalizer import make_placeholder
from podtracks.catalog.store import CatalogStore
from podtracks.config.schema import BatchConfig
from podtracks.feeds.models import IdentityKey, RemoteItemReference
from podtracks.pipeline.models import ItemOutcome, RunSummary
from podtracks.pipeline.resolver import ReferenceResolver
from podtracks.utils.errors import AuthError, RateLimitedError
from podtracks.utils.retry import BackoffPolicy

logger = logging.getLogger(__name__)


class _RunAborted(Exception):
    """Internal signal: stop the run after persisting progress."""


class BatchScheduler:
    """Resolves references in fixed-size batches, saving after each batch.

    Every reference gets a placeholder Track before any network call, so
    the catalog always has one entry per reference. Keys already resolved
    (or retired as duplicates) by an earlier run are skipped unless
    ``force`` is set, which makes re-running after an abort or crash safe.

    Rate limits pause for ``backoff.delay_for(n)`` and retry the same
    reference. More than ``max_consecutive_rate_limits`` consecutive hits,
    or an AuthError, stop the run after saving what was resolved so far.

    Example:
        >>> scheduler = BatchScheduler(config.batch, config.rate_limit_backoff, resolver, store)
        >>> summary = scheduler.run(references)
        >>> summary.aborted
        False
    """

    def __init__(
        self,
        config: BatchConfig,
        backoff: BackoffPolicy,
        resolver: ReferenceResolver,
        store: CatalogStore,
        engine: DeduplicationEngine | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the scheduler.

        Args:
            config: Batch size and pacing delays
            backoff: Delay policy for rate-limit pauses
            resolver: Per-reference resolution chain
            store: Catalog persistence
            engine: Deduplication engine (default instance if None)
            sleep: Sleep function (tests inject a fake)
        """
        self.config = config
        self.backoff = backoff
        self.resolver = resolver
        self.store = store
        self.engine = engine or DeduplicationEngine()
        self.sleep = sleep

    def run(
        self,
        references: Sequence[RemoteItemReference],
        playlist: str | None = None,
        force: bool = False,
    ) -> RunSummary:
        """Resolve ``references`` against the catalog.

        Args:
            references: References in declared order
            playlist: Optional label stored on new Tracks
            force: Re-resolve keys that are already resolved

        Returns:
            RunSummary with per-outcome counts

        Raises:
            CatalogError: If the catalog cannot be read or written
        """
        snapshot = self.store.load()
        summary = RunSummary(total=len(references))
        pending = self._prepare(references, snapshot, summary, playlist, force)

        if not pending:
            logger.info("Nothing to resolve (%d already done)", summary.skipped)
            return summary

        size = self.config.batch_size
        batches = [pending[i : i + size] for i in range(0, len(pending), size)]
        logger.info("Resolving %d reference(s) in %d batch(es)", len(pending), len(batches))

        handled: set[IdentityKey] = set()
        consecutive_rate_limits = 0
        for index, batch in enumerate(batches):
            if index > 0:
                self._pause(self.config.batch_delay_seconds)

            try:
                for position, reference in enumerate(batch):
                    if position > 0:
                        self._pause(self.config.request_delay_seconds)
                    track, consecutive_rate_limits = self._resolve_with_backoff(
                        reference, playlist, summary, consecutive_rate_limits
                    )
                    self._apply(reference, track, snapshot, summary)
                    handled.add(reference.key)
            except _RunAborted as e:
                for reference in pending:
                    if reference.key not in handled:
                        summary.record(reference.key, ItemOutcome.UNRESOLVED)
                summary.aborted = True
                summary.abort_reason = str(e)
                logger.error("Run aborted: %s", e)
                self.store.save(snapshot, summary.as_metadata())
                return summary

            summary.batches_completed += 1
            self.store.save(snapshot, summary.as_metadata())
            logger.info("Batch %d/%d saved", index + 1, len(batches))

        return summary

    def _prepare(
        self,
        references: Sequence[RemoteItemReference],
        snapshot: CatalogSnapshot,
        summary: RunSummary,
        playlist: str | None,
        force: bool,
    ) -> list[RemoteItemReference]:
        """Create placeholders and pick the references that still need work."""
        pending = []
        seen: set[IdentityKey] = set()
        for reference in references:
            if reference.key in seen:
                logger.debug("Reference %s/%s repeated in playlist", *reference.key)
                summary.record(reference.key, ItemOutcome.SKIPPED)
                continue
            seen.add(reference.key)

            existing = snapshot.find_by_key(reference.key)
            if existing is None:
                snapshot.add(make_placeholder(reference, playlist=playlist))
            elif (existing.resolved or existing.is_superseded) and not force:
                summary.record(reference.key, ItemOutcome.SKIPPED)
                continue
            pending.append(reference)
        return pending

    def _resolve_with_backoff(
        self,
        reference: RemoteItemReference,
        playlist: str | None,
        summary: RunSummary,
        consecutive: int,
    ) -> tuple[Track | None, int]:
        while True:
            try:
                track = self.resolver.resolve(reference, playlist)
            except AuthError as e:
                raise _RunAborted(f"authentication failed: {e}") from e
            except RateLimitedError as e:
                consecutive += 1
                if consecutive > self.config.max_consecutive_rate_limits:
                    raise _RunAborted(
                        f"rate limited {consecutive} times in a row; resume later"
                    ) from e
                delay = self.backoff.delay_for(consecutive, e.retry_after)
                summary.rate_limit_pauses += 1
                logger.warning(
                    "Rate limited on %s/%s; pausing %.1fs (%d/%d)",
                    *reference.key,
                    delay,
                    consecutive,
                    self.config.max_consecutive_rate_limits,
                )
                self._pause(delay)
                continue
            return track, 0

    def _apply(
        self,
        reference: RemoteItemReference,
        track: Track | None,
        snapshot: CatalogSnapshot,
        summary: RunSummary,
    ) -> None:
        if track is None:
            summary.record(reference.key, ItemOutcome.UNRESOLVED)
            return

        existing = snapshot.find_by_key(reference.key)
        was_resolved = existing is not None and existing.resolved

        decision = self.engine.apply(track, snapshot)
        if decision.outcome is DedupOutcome.DUPLICATE:
            outcome = ItemOutcome.DUPLICATE
        elif not decision.track.resolved:
            outcome = ItemOutcome.UNRESOLVED
        elif decision.outcome is DedupOutcome.NEW or not was_resolved:
            outcome = ItemOutcome.RESOLVED
        else:
            outcome = ItemOutcome.UPGRADED

        summary.record(reference.key, outcome)
        logger.info("%s: %s (%s)", decision.track.id, decision.track.title, outcome.value)

    def _pause(self, seconds: float) -> None:
        if seconds > 0:
            self.sleep(seconds)
