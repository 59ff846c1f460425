# Overview: Best-effort outbound write queue towards the persistence collaborator.

"""
Outbound writes (authoritative)

- At-most-once: every write is attempted once, in submission order. No retry,
  no backoff. In-memory state stays authoritative whatever the outcome.
- Every attempt produces a WriteOutcome (written | failed | skipped |
  local_only) handed to the optional callback and kept in a short history.
- Chains model dependent writes (shift totals before the sale that points at
  the shift). After a failure the rest of the chain is skipped.
- A chain that wrote something and then failed is "orphaned": e.g. the shift
  totals include a sale that never reached the store.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable

from .persistence import PersistenceStore

logger = logging.getLogger(__name__)

WRITE_WRITTEN = "written"
WRITE_FAILED = "failed"
WRITE_SKIPPED = "skipped"
WRITE_LOCAL_ONLY = "local_only"

SYNC_CLOUD = "cloud"
SYNC_LOCAL_ONLY = "local_only"
SYNC_DEGRADED = "degraded"


@dataclass(frozen=True)
class PendingWrite:
    label: str  # e.g. "shift", "sale", "ingredient"
    entity_id: str
    operation: Callable[..., Any]
    args: tuple = ()


@dataclass(frozen=True)
class WriteOutcome:
    label: str
    entity_id: str
    status: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status in (WRITE_WRITTEN, WRITE_LOCAL_ONLY)

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "entity_id": self.entity_id,
            "status": self.status,
            "error": self.error,
        }


@dataclass
class ChainResult:
    outcomes: list[WriteOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)

    @property
    def orphaned(self) -> bool:
        """True when an earlier write landed and a later one did not."""
        seen_written = False
        for outcome in self.outcomes:
            if outcome.status == WRITE_WRITTEN:
                seen_written = True
            elif outcome.status in (WRITE_FAILED, WRITE_SKIPPED) and seen_written:
                return True
        return False

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "orphaned": self.orphaned,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


class OutboundQueue:
    """Runs writes against the store in order and reports each outcome."""

    def __init__(
        self,
        store: PersistenceStore,
        on_outcome: Callable[[WriteOutcome], None] | None = None,
        history_size: int = 200,
    ):
        self.store = store
        self.on_outcome = on_outcome
        self._history: deque[WriteOutcome] = deque(maxlen=history_size)
        self.failure_count = 0

    @property
    def configured(self) -> bool:
        return bool(self.store.configured)

    def _record(self, outcome: WriteOutcome) -> WriteOutcome:
        self._history.append(outcome)
        if outcome.status == WRITE_FAILED:
            self.failure_count += 1
        if self.on_outcome is not None:
            try:
                self.on_outcome(outcome)
            except Exception:
                logger.exception("Outbound outcome callback failed for %s %s", outcome.label, outcome.entity_id)
        return outcome

    def _attempt(self, write: PendingWrite) -> WriteOutcome:
        if not self.configured:
            return self._record(WriteOutcome(write.label, write.entity_id, WRITE_LOCAL_ONLY))
        try:
            write.operation(*write.args)
        except Exception as exc:
            logger.error("Persisting %s %s failed: %s", write.label, write.entity_id, exc)
            return self._record(WriteOutcome(write.label, write.entity_id, WRITE_FAILED, error=str(exc)))
        return self._record(WriteOutcome(write.label, write.entity_id, WRITE_WRITTEN))

    def submit(self, label: str, entity_id: str, operation: Callable[..., Any], *args) -> WriteOutcome:
        """Attempt a single independent write."""
        return self._attempt(PendingWrite(label, entity_id, operation, args))

    def submit_chain(self, writes: list[PendingWrite]) -> ChainResult:
        """Attempt dependent writes in order; stop writing after the first failure."""
        result = ChainResult()
        failed = False
        for write in writes:
            if failed:
                result.outcomes.append(
                    self._record(WriteOutcome(write.label, write.entity_id, WRITE_SKIPPED, error="predecessor failed"))
                )
                continue
            outcome = self._attempt(write)
            result.outcomes.append(outcome)
            failed = outcome.status == WRITE_FAILED

        if result.orphaned:
            written = [o for o in result.outcomes if o.status == WRITE_WRITTEN]
            missing = [o for o in result.outcomes if o.status in (WRITE_FAILED, WRITE_SKIPPED)]
            logger.error(
                "Orphaned write: %s stored without dependent %s",
                ", ".join(f"{o.label} {o.entity_id}" for o in written),
                ", ".join(f"{o.label} {o.entity_id}" for o in missing),
            )
        return result

    def recent(self, limit: int = 50) -> list[WriteOutcome]:
        items = list(self._history)
        return items[-limit:]

    @property
    def sync_status(self) -> str:
        """cloud | local_only | degraded (last attempted write failed)."""
        if not self.configured:
            return SYNC_LOCAL_ONLY
        for outcome in reversed(self._history):
            if outcome.status == WRITE_SKIPPED:
                continue
            return SYNC_DEGRADED if outcome.status == WRITE_FAILED else SYNC_CLOUD
        return SYNC_CLOUD
