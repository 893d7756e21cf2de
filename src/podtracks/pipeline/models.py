"""Run bookkeeping for the batch pipeline."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ItemOutcome(str, Enum):
    """What happened to a single reference during a run."""

    RESOLVED = "resolved"
    UPGRADED = "upgraded"
    DUPLICATE = "duplicate"
    UNRESOLVED = "unresolved"
    SKIPPED = "skipped"


class RunSummary(BaseModel):
    """Operator-facing counts for one run.

    ``resolved`` counts new catalog entries, ``upgraded`` placeholders or
    partial entries filled in place, ``duplicate`` references folded into
    an existing track, ``unresolved`` references still placeholders, and
    ``skipped`` references already resolved by an earlier run.
    """

    total: int = 0
    resolved: int = 0
    upgraded: int = 0
    duplicate: int = 0
    unresolved: int = 0
    skipped: int = 0
    batches_completed: int = 0
    rate_limit_pauses: int = 0
    aborted: bool = False
    abort_reason: str | None = None
    outcomes: dict[str, ItemOutcome] = Field(default_factory=dict)

    def record(self, key: tuple[str, str], outcome: ItemOutcome) -> None:
        self.outcomes[f"{key[0]}/{key[1]}"] = outcome
        setattr(self, outcome.value, getattr(self, outcome.value) + 1)

    @property
    def processed(self) -> int:
        return self.resolved + self.upgraded + self.duplicate + self.unresolved + self.skipped

    def as_metadata(self) -> dict[str, Any]:
        """Counts recorded in the catalog's ``metadata.lastRun``."""
        return self.model_dump(mode="json", exclude={"outcomes"})
