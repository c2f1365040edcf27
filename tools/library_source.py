"""Library catalogue source with remote fetch, cache and bundled fallback.

Items are fetched from a REST endpoint on a background worker, validated with
pydantic and indexed by category. Before the first fetch, and whenever a fetch
fails or comes back empty, the bundled catalogue is served so suggestions are
never fully blocked. Observable state (``loading``, ``empty``, ``error_kind``)
stays put until the next explicit ``retry()``.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests
from pydantic import BaseModel, TypeAdapter, ValidationError

from fitmatch_app.logging_config import log_event
from models.library_item import LibraryItem, from_raw_metadata
from models.taxonomy import Category, parse_category
from tools.observability import instrument_operation

LOGGER = logging.getLogger(__name__)

BUNDLED_LIBRARY_PATH = Path(__file__).resolve().parent / "data" / "library_fallback.json"


class LibraryErrorKind(str, Enum):
    NONE = "none"
    FETCH_FAILED = "fetch_failed"
    EMPTY = "empty"


class LibraryFetchError(RuntimeError):
    """Raised when the remote catalogue cannot be fetched or parsed."""


class LibraryItemRecord(BaseModel):
    """Row shape returned by the catalogue endpoint."""

    id: str
    category: str
    label: str = ""
    image_url: str = ""
    rank: int = 9999
    vibes: List[str] = []
    tone: Optional[str] = None
    structure: Optional[str] = None
    formality: Optional[str] = None
    volume: Optional[str] = None
    shape: Optional[str] = None
    length: Optional[str] = None
    tier: Optional[str] = None
    outerwear_weight: Optional[str] = None
    active: bool = True


_RECORDS = TypeAdapter(List[Dict[str, Any]])


def records_to_items(rows: Iterable[Dict[str, Any]]) -> List[LibraryItem]:
    """Validate raw rows, skipping malformed and inactive rows and unknown categories."""

    items: List[LibraryItem] = []
    for row in rows:
        try:
            record = LibraryItemRecord.model_validate(row)
        except ValidationError as exc:
            LOGGER.warning("Skipping malformed library row", extra={"errors": exc.error_count()})
            continue
        if not record.active:
            continue
        if parse_category(record.category) is None:
            LOGGER.warning("Skipping library row with unknown category", extra={"category": record.category})
            continue
        try:
            item = from_raw_metadata(record.model_dump())
        except (TypeError, ValueError) as exc:
            LOGGER.warning("Skipping invalid library row", extra={"reason": str(exc)})
            continue
        items.append(item)
    return items


def load_bundled_library(path: Path | str = BUNDLED_LIBRARY_PATH) -> List[LibraryItem]:
    """Read the catalogue snapshot shipped with the package."""

    payload = json.loads(Path(path).read_text())
    return records_to_items(payload)


@dataclass(frozen=True)
class LibrarySnapshot:
    """Immutable category index over one fetched (or bundled) catalogue."""

    by_category: Dict[Category, Tuple[LibraryItem, ...]] = field(default_factory=dict, hash=False)
    is_remote: bool = False
    fetched_at: float = 0.0

    @classmethod
    def from_items(cls, items: Iterable[LibraryItem], is_remote: bool = False, fetched_at: float = 0.0) -> "LibrarySnapshot":
        grouped: Dict[Category, List[LibraryItem]] = {}
        for item in items:
            grouped.setdefault(item.category, []).append(item)
        by_category = {
            category: tuple(sorted(group, key=lambda item: (item.rank, item.id)))
            for category, group in grouped.items()
        }
        return cls(by_category=by_category, is_remote=is_remote, fetched_at=fetched_at)

    @property
    def total(self) -> int:
        return sum(len(group) for group in self.by_category.values())

    def get_by_category(self, category: Category) -> Tuple[LibraryItem, ...]:
        return self.by_category.get(category, ())

    def get_item_by_id(self, item_id: str) -> Optional[LibraryItem]:
        for group in self.by_category.values():
            for item in group:
                if item.id == item_id:
                    return item
        return None


class LibraryFetcher(ABC):
    """Abstract catalogue fetcher."""

    @abstractmethod
    def fetch(self) -> List[LibraryItem]:
        """Return all active catalogue items or raise ``LibraryFetchError``."""


class RemoteLibraryFetcher(LibraryFetcher):
    """Fetch the catalogue from a PostgREST-style endpoint."""

    def __init__(self, url: str, api_key: str | None = None, timeout_seconds: float = 5.0) -> None:
        if not url:
            raise ValueError("url is required for remote library fetches")
        self.url = url
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            return {}
        return {"apikey": self.api_key, "Authorization": f"Bearer {self.api_key}"}

    @instrument_operation("library_fetch")
    def fetch(self) -> List[LibraryItem]:
        params = {"select": "*", "active": "eq.true", "order": "rank.asc"}
        try:
            response = requests.get(self.url, params=params, headers=self._headers(), timeout=self.timeout_seconds)
            response.raise_for_status()
            rows = _RECORDS.validate_python(response.json())
        except requests.RequestException as exc:
            LOGGER.error("Library endpoint unreachable", exc_info=exc)
            raise LibraryFetchError("library request failed") from exc
        except (ValidationError, ValueError) as exc:
            LOGGER.error("Library payload schema validation failed", exc_info=exc)
            raise LibraryFetchError("library payload invalid") from exc
        return records_to_items(rows)


class StaticLibraryFetcher(LibraryFetcher):
    """Serves a fixed item list; used offline and in tests."""

    def __init__(self, items: Iterable[LibraryItem] | None = None) -> None:
        self.items = list(items) if items is not None else load_bundled_library()

    def fetch(self) -> List[LibraryItem]:
        return list(self.items)


class LibrarySource:
    """Cached, retryable catalogue index.

    Fetches run on a single background worker. Concurrent ``retry()`` and
    ``prewarm()`` calls share one in-flight future; the state lock is never
    held while the fetcher performs I/O.
    """

    def __init__(
        self,
        fetcher: LibraryFetcher,
        fallback_items: Iterable[LibraryItem] | None = None,
        stale_after_seconds: float = 30 * 60,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self.fetcher = fetcher
        fallback = list(fallback_items) if fallback_items is not None else load_bundled_library()
        self._fallback = LibrarySnapshot.from_items(fallback)
        self.stale_after_seconds = stale_after_seconds
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="library-fetch")
        self._owns_executor = executor is None
        self._lock = threading.Lock()
        self._snapshot = self._fallback
        self._inflight: Optional[Future] = None
        self._loading = False
        self._error_kind = LibraryErrorKind.NONE
        self._retry_attempts = 0
        self._fetch_count = 0

    # Observable state -------------------------------------------------

    @property
    def loading(self) -> bool:
        with self._lock:
            return self._loading

    @property
    def error_kind(self) -> LibraryErrorKind:
        with self._lock:
            return self._error_kind

    @property
    def empty(self) -> bool:
        return self.error_kind is LibraryErrorKind.EMPTY

    @property
    def is_remote(self) -> bool:
        with self._lock:
            return self._snapshot.is_remote

    @property
    def retry_attempts(self) -> int:
        with self._lock:
            return self._retry_attempts

    @property
    def fetch_count(self) -> int:
        with self._lock:
            return self._fetch_count

    def status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "loading": self._loading,
                "empty": self._error_kind is LibraryErrorKind.EMPTY,
                "error_kind": self._error_kind.value,
                "is_remote": self._snapshot.is_remote,
                "total": self._snapshot.total,
                "retry_attempts": self._retry_attempts,
            }

    # Item access ------------------------------------------------------

    def snapshot(self) -> LibrarySnapshot:
        with self._lock:
            return self._snapshot

    def get_by_category(self, category: Category) -> Tuple[LibraryItem, ...]:
        return self.snapshot().get_by_category(category)

    def get_item_by_id(self, item_id: str) -> Optional[LibraryItem]:
        return self.snapshot().get_item_by_id(item_id)

    # Fetching ---------------------------------------------------------

    def _is_fresh(self) -> bool:
        snapshot = self._snapshot
        return snapshot.is_remote and (time.time() - snapshot.fetched_at) < self.stale_after_seconds

    def _start_fetch(self) -> Future:
        """Return the in-flight fetch, starting one if needed. Caller holds the lock."""

        if self._inflight is not None and not self._inflight.done():
            return self._inflight
        self._loading = True
        self._error_kind = LibraryErrorKind.NONE
        self._fetch_count += 1
        self._inflight = self._executor.submit(self._run_fetch)
        return self._inflight

    def prewarm(self) -> Optional[Future]:
        """Start a background fetch unless one is running or the cache is fresh.

        A settled ``fetch_failed`` or ``empty`` state is left alone; only
        ``retry()`` moves the source out of it.
        """

        with self._lock:
            if self._inflight is not None and not self._inflight.done():
                return self._inflight
            if self._error_kind is not LibraryErrorKind.NONE or self._is_fresh():
                return None
            return self._start_fetch()

    def retry(self) -> Future:
        """Re-attempt the remote fetch; concurrent calls share one request."""

        with self._lock:
            if self._inflight is None or self._inflight.done():
                self._retry_attempts += 1
            future = self._start_fetch()
        log_event(LOGGER, logging.INFO, "library_retry_requested", attempt=self.retry_attempts)
        return future

    def refresh(self, timeout: float | None = None) -> LibrarySnapshot:
        """Blocking retry, mostly for CLIs and tests."""

        return self.retry().result(timeout=timeout)

    def _run_fetch(self) -> LibrarySnapshot:
        try:
            items = self.fetcher.fetch()
        except LibraryFetchError as exc:
            LOGGER.warning("Library fetch failed; serving bundled catalogue", extra={"reason": str(exc)})
            return self._settle(self._fallback, LibraryErrorKind.FETCH_FAILED)
        except Exception:
            LOGGER.exception("Library fetcher raised unexpectedly")
            self._settle(self._fallback, LibraryErrorKind.FETCH_FAILED)
            raise

        if not items:
            # The endpoint answered but has nothing active; keep serving the bundle.
            kind = LibraryErrorKind.EMPTY if self._fallback.total == 0 else LibraryErrorKind.NONE
            return self._settle(self._fallback, kind)

        snapshot = LibrarySnapshot.from_items(items, is_remote=True, fetched_at=time.time())
        return self._settle(snapshot, LibraryErrorKind.NONE)

    def _settle(self, snapshot: LibrarySnapshot, error_kind: LibraryErrorKind) -> LibrarySnapshot:
        with self._lock:
            self._snapshot = snapshot
            self._error_kind = error_kind
            self._loading = False
        log_event(
            LOGGER,
            logging.INFO,
            "library_fetch_settled",
            error_kind=error_kind.value,
            is_remote=snapshot.is_remote,
            total=snapshot.total,
        )
        return snapshot

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False)


__all__ = [
    "BUNDLED_LIBRARY_PATH",
    "LibraryErrorKind",
    "LibraryFetchError",
    "LibraryFetcher",
    "LibraryItemRecord",
    "LibrarySnapshot",
    "LibrarySource",
    "RemoteLibraryFetcher",
    "StaticLibraryFetcher",
    "load_bundled_library",
    "records_to_items",
]
