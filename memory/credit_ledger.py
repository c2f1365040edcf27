"""Idempotent credit consumption in front of scans and wardrobe adds."""
from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar

from fitmatch_app.logging_config import log_event
from memory.quota_store import QuotaStore, QuotaStoreError, QuotaStoreUnavailable
from models.quota import ActionKind, ConsumeReason, ConsumeResult, UsageQuota
from tools.observability import instrument_operation

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
_Slot = Tuple[str, ActionKind, str]

DEFAULT_MAX_CACHED_OUTCOMES = 1024


class LedgerNotInitialized(RuntimeError):
    """consume() or usage() was called before init() or after teardown()."""


def new_idempotency_key() -> str:
    """Generate a key for one user action; reuse it for every retry of that action."""

    return uuid.uuid4().hex


@dataclass
class _PendingConsume:
    done: threading.Event = field(default_factory=threading.Event)
    result: Optional[ConsumeResult] = None


class CreditLedger:
    """Account-scoped gate that spends a credit at most once per idempotency key.

    Outcomes (allowed or quota_exceeded) are remembered per key so replays are
    identical. Transient failures are not remembered: the quota is unchanged
    and the caller may retry with the same key. A second caller using a key
    that is still being consumed waits for the first caller's outcome.

    The in-memory replay cache keeps the most recent ``max_cached_outcomes``
    keys; older keys fall through to the store, which replays them itself.
    """

    def __init__(self, store: QuotaStore, max_cached_outcomes: int = DEFAULT_MAX_CACHED_OUTCOMES) -> None:
        if max_cached_outcomes < 1:
            raise ValueError("max_cached_outcomes must be at least 1")
        self.store = store
        self.max_cached_outcomes = max_cached_outcomes
        self._lock = threading.Lock()
        self._account_id: Optional[str] = None
        self._outcomes: "OrderedDict[_Slot, ConsumeResult]" = OrderedDict()
        self._pending: Dict[_Slot, _PendingConsume] = {}

    @property
    def account_id(self) -> Optional[str]:
        with self._lock:
            return self._account_id

    def init(self, account_id: str) -> None:
        """Bind the ledger to an account, discarding any previous account's state."""

        if not account_id:
            raise ValueError("account_id is required")
        with self._lock:
            if self._account_id != account_id:
                self._outcomes.clear()
            self._account_id = account_id
        log_event(LOGGER, logging.INFO, "credit_ledger_initialized", account_id=account_id)

    def teardown(self) -> None:
        """Forget the account and its replay cache (sign-out)."""

        with self._lock:
            self._account_id = None
            self._outcomes.clear()
        log_event(LOGGER, logging.INFO, "credit_ledger_torn_down")

    def _require_account(self) -> str:
        if self._account_id is None:
            raise LedgerNotInitialized("CreditLedger.init(account_id) must be called first")
        return self._account_id

    def _remember(self, slot: _Slot, result: ConsumeResult) -> None:
        """Cache a settled outcome. Caller holds the lock."""

        self._outcomes[slot] = result
        self._outcomes.move_to_end(slot)
        while len(self._outcomes) > self.max_cached_outcomes:
            self._outcomes.popitem(last=False)

    def usage(self) -> UsageQuota:
        with self._lock:
            account_id = self._require_account()
        return self.store.get_usage(account_id)

    @instrument_operation("credit_consume")
    def consume(self, idempotency_key: str, action_kind: ActionKind) -> ConsumeResult:
        """Spend one credit for ``action_kind`` unless ``idempotency_key`` was already used."""

        if not idempotency_key:
            raise ValueError("idempotency_key is required")
        kind = ActionKind(action_kind)

        with self._lock:
            account_id = self._require_account()
            slot: _Slot = (account_id, kind, idempotency_key)
            cached = self._outcomes.get(slot)
            if cached is not None:
                self._outcomes.move_to_end(slot)
                log_event(LOGGER, logging.INFO, "credit_consume_replayed", action_kind=kind.value)
                return cached
            pending = self._pending.get(slot)
            owner = pending is None
            if owner:
                pending = _PendingConsume()
                self._pending[slot] = pending

        if not owner:
            pending.done.wait()
            return pending.result  # type: ignore[return-value]

        result = ConsumeResult.failure(ConsumeReason.OTHER_ERROR)
        try:
            result = self.store.consume(account_id, idempotency_key, kind)
        except QuotaStoreUnavailable:
            log_event(LOGGER, logging.WARNING, "credit_consume_network_error", action_kind=kind.value)
            result = ConsumeResult.failure(ConsumeReason.NETWORK_ERROR)
        except QuotaStoreError:
            log_event(LOGGER, logging.WARNING, "credit_consume_failed", action_kind=kind.value)
            result = ConsumeResult.failure(ConsumeReason.OTHER_ERROR)
        finally:
            with self._lock:
                if not result.retryable and self._account_id == account_id:
                    self._remember(slot, result)
                self._pending.pop(slot, None)
            pending.result = result
            pending.done.set()

        log_event(
            LOGGER,
            logging.INFO,
            "credit_consume_completed",
            action_kind=kind.value,
            allowed=result.allowed,
            reason=result.reason.value,
            remaining=result.remaining,
        )
        return result


@dataclass(frozen=True)
class GatedOutcome(Generic[T]):
    """Credit decision plus the action's return value when it was allowed to run."""

    credit: ConsumeResult
    value: Optional[T] = None

    @property
    def ran(self) -> bool:
        return self.credit.allowed


def run_gated(
    ledger: CreditLedger,
    idempotency_key: str,
    action_kind: ActionKind,
    action: Callable[[], T],
) -> GatedOutcome[T]:
    """Consume a credit and start ``action`` only once ``allowed=True`` is observed.

    Spent credits are not refunded if the action later fails or is abandoned.
    """

    credit = ledger.consume(idempotency_key, action_kind)
    if not credit.allowed:
        return GatedOutcome(credit=credit)
    return GatedOutcome(credit=credit, value=action())


__all__ = [
    "CreditLedger",
    "GatedOutcome",
    "LedgerNotInitialized",
    "new_idempotency_key",
    "run_gated",
]
