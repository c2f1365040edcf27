"""Quota persistence: usage counters plus per-key consumption records."""
from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path
from typing import Dict, Optional

import requests
from pydantic import BaseModel, ValidationError

from models.quota import ActionKind, ConsumeReason, ConsumeResult, UsageQuota
from fitmatch_app.config import DEFAULT_ADD_LIMIT, DEFAULT_SCAN_LIMIT
from tools.observability import timed_operation

LOGGER = logging.getLogger(__name__)

_COUNTER_COLUMNS = {ActionKind.SCAN: "scans_used", ActionKind.WARDROBE_ADD: "adds_used"}


class QuotaStoreError(RuntimeError):
    """The quota backend failed; quota state is unchanged."""


class QuotaStoreUnavailable(QuotaStoreError):
    """The quota backend could not be reached."""


class QuotaStore:
    """Interface for quota persistence.

    ``consume`` must be atomic and idempotent per
    (account_id, idempotency_key, kind): a repeated key returns the stored
    outcome without touching the counters.
    """

    def get_usage(self, account_id: str) -> UsageQuota:
        raise NotImplementedError

    def consume(self, account_id: str, idempotency_key: str, kind: ActionKind) -> ConsumeResult:
        raise NotImplementedError

    def set_pro(self, account_id: str, is_pro: bool) -> None:
        raise NotImplementedError

    def purge_consumptions(self, older_than_seconds: float) -> int:
        raise NotImplementedError


class SQLiteQuotaStore(QuotaStore):
    """SQLite-backed quota store; each consume runs in one write transaction."""

    def __init__(
        self,
        db_path: str = "data/quota.db",
        scan_limit: int = DEFAULT_SCAN_LIMIT,
        add_limit: int = DEFAULT_ADD_LIMIT,
        busy_timeout_seconds: float = 5.0,
    ) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.limits: Dict[ActionKind, int] = {ActionKind.SCAN: scan_limit, ActionKind.WARDROBE_ADD: add_limit}
        self.busy_timeout_seconds = busy_timeout_seconds
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout_seconds, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        conn = self._connect()
        try:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS usage_counters (
                    account_id TEXT PRIMARY KEY,
                    scans_used INTEGER NOT NULL DEFAULT 0,
                    adds_used INTEGER NOT NULL DEFAULT 0,
                    is_pro INTEGER NOT NULL DEFAULT 0,
                    updated_at REAL
                );
                CREATE TABLE IF NOT EXISTS quota_consumptions (
                    account_id TEXT NOT NULL,
                    idempotency_key TEXT NOT NULL,
                    action_kind TEXT NOT NULL,
                    allowed INTEGER NOT NULL,
                    reason TEXT NOT NULL,
                    used INTEGER NOT NULL,
                    credit_limit INTEGER NOT NULL,
                    remaining INTEGER NOT NULL,
                    created_at REAL NOT NULL,
                    PRIMARY KEY (account_id, idempotency_key, action_kind)
                );
                CREATE INDEX IF NOT EXISTS idx_quota_consumptions_created
                    ON quota_consumptions(created_at);
                """
            )
        finally:
            conn.close()

    def _usage_row(self, conn: sqlite3.Connection, account_id: str) -> sqlite3.Row:
        conn.execute(
            "INSERT OR IGNORE INTO usage_counters(account_id, updated_at) VALUES (?, ?)",
            (account_id, time.time()),
        )
        return conn.execute(
            "SELECT scans_used, adds_used, is_pro FROM usage_counters WHERE account_id = ?",
            (account_id,),
        ).fetchone()

    def _to_usage(self, row: Optional[sqlite3.Row]) -> UsageQuota:
        if row is None:
            return UsageQuota(
                scans_limit=self.limits[ActionKind.SCAN],
                adds_limit=self.limits[ActionKind.WARDROBE_ADD],
            )
        return UsageQuota(
            scans_used=row["scans_used"],
            scans_limit=self.limits[ActionKind.SCAN],
            adds_used=row["adds_used"],
            adds_limit=self.limits[ActionKind.WARDROBE_ADD],
            is_pro=bool(row["is_pro"]),
        )

    @staticmethod
    def _row_to_result(row: sqlite3.Row) -> ConsumeResult:
        return ConsumeResult(
            allowed=bool(row["allowed"]),
            reason=ConsumeReason(row["reason"]),
            used=row["used"],
            limit=row["credit_limit"],
            remaining=row["remaining"],
        )

    def get_usage(self, account_id: str) -> UsageQuota:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT scans_used, adds_used, is_pro FROM usage_counters WHERE account_id = ?",
                (account_id,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise QuotaStoreError("failed to read usage") from exc
        finally:
            conn.close()
        return self._to_usage(row)

    def set_pro(self, account_id: str, is_pro: bool) -> None:
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO usage_counters(account_id, is_pro, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(account_id) DO UPDATE SET is_pro = excluded.is_pro, updated_at = excluded.updated_at
                """,
                (account_id, int(is_pro), time.time()),
            )
        except sqlite3.Error as exc:
            raise QuotaStoreError("failed to update pro flag") from exc
        finally:
            conn.close()

    def consume(self, account_id: str, idempotency_key: str, kind: ActionKind) -> ConsumeResult:
        column = _COUNTER_COLUMNS[kind]
        limit = self.limits[kind]
        conn = self._connect()
        try:
            # BEGIN IMMEDIATE takes the write lock up front so check-and-increment is atomic.
            conn.execute("BEGIN IMMEDIATE")
            try:
                existing = conn.execute(
                    """
                    SELECT allowed, reason, used, credit_limit, remaining FROM quota_consumptions
                    WHERE account_id = ? AND idempotency_key = ? AND action_kind = ?
                    """,
                    (account_id, idempotency_key, kind.value),
                ).fetchone()
                if existing is not None:
                    conn.execute("COMMIT")
                    return self._row_to_result(existing)

                usage = self._usage_row(conn, account_id)
                used = usage[column]
                is_pro = bool(usage["is_pro"])
                if is_pro or used < limit:
                    used += 1
                    conn.execute(
                        f"UPDATE usage_counters SET {column} = ?, updated_at = ? WHERE account_id = ?",
                        (used, time.time(), account_id),
                    )
                    result = ConsumeResult(
                        allowed=True,
                        reason=ConsumeReason.OK,
                        used=used,
                        limit=limit,
                        remaining=max(0, limit - used),
                    )
                else:
                    result = ConsumeResult(
                        allowed=False,
                        reason=ConsumeReason.QUOTA_EXCEEDED,
                        used=used,
                        limit=limit,
                        remaining=0,
                    )
                conn.execute(
                    """
                    INSERT INTO quota_consumptions(
                        account_id, idempotency_key, action_kind, allowed, reason,
                        used, credit_limit, remaining, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        account_id,
                        idempotency_key,
                        kind.value,
                        int(result.allowed),
                        result.reason.value,
                        result.used,
                        result.limit,
                        result.remaining,
                        time.time(),
                    ),
                )
                conn.execute("COMMIT")
                return result
            except BaseException:
                conn.execute("ROLLBACK")
                raise
        except sqlite3.Error as exc:
            LOGGER.error("Quota consume transaction failed", exc_info=exc)
            raise QuotaStoreError("quota transaction failed") from exc
        finally:
            conn.close()

    def purge_consumptions(self, older_than_seconds: float) -> int:
        cutoff = time.time() - older_than_seconds
        conn = self._connect()
        try:
            with timed_operation("quota_purge") as outcome:
                cursor = conn.execute("DELETE FROM quota_consumptions WHERE created_at < ?", (cutoff,))
                outcome["deleted"] = cursor.rowcount
            return cursor.rowcount
        except sqlite3.Error as exc:
            raise QuotaStoreError("failed to purge consumption records") from exc
        finally:
            conn.close()


class _ConsumeResponse(BaseModel):
    allowed: bool
    reason: str
    used: int = 0
    limit: int = 0
    remaining: int = 0


class _UsageResponse(BaseModel):
    scans_used: int = 0
    scans_limit: int = DEFAULT_SCAN_LIMIT
    adds_used: int = 0
    adds_limit: int = DEFAULT_ADD_LIMIT
    is_pro: bool = False


# Account-service reasons mapped onto the ledger's reasons.
_REMOTE_REASONS = {
    "consumed": ConsumeReason.OK,
    "pro_unlimited": ConsumeReason.OK,
    "idempotent_replay": ConsumeReason.OK,
    "ok": ConsumeReason.OK,
    "quota_exceeded": ConsumeReason.QUOTA_EXCEEDED,
}


class RemoteQuotaStore(QuotaStore):
    """Quota store backed by the account service's credit RPCs."""

    def __init__(self, base_url: str, api_key: str | None = None, timeout_seconds: float = 5.0) -> None:
        if not base_url:
            raise ValueError("base_url is required for the remote quota store")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    def _headers(self, account_id: str) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "X-Account-Id": account_id}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _post(self, path: str, account_id: str, payload: Dict[str, object]) -> object:
        try:
            response = requests.post(
                f"{self.base_url}/{path}",
                json=payload,
                headers=self._headers(account_id),
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            return response.json()
        except (requests.ConnectionError, requests.Timeout) as exc:
            LOGGER.warning("Quota service unreachable", extra={"path": path})
            raise QuotaStoreUnavailable("quota service unreachable") from exc
        except requests.RequestException as exc:
            LOGGER.error("Quota service request failed", exc_info=exc)
            raise QuotaStoreError("quota service request failed") from exc
        except ValueError as exc:
            raise QuotaStoreError("quota service returned invalid JSON") from exc

    def consume(self, account_id: str, idempotency_key: str, kind: ActionKind) -> ConsumeResult:
        payload = self._post(f"rpc/consume_{kind.value}_credit", account_id, {"p_idempotency_key": idempotency_key})
        try:
            parsed = _ConsumeResponse.model_validate(payload)
        except ValidationError as exc:
            LOGGER.error("Quota payload schema validation failed", exc_info=exc)
            raise QuotaStoreError("quota payload invalid") from exc
        reason = _REMOTE_REASONS.get(parsed.reason)
        if reason is None:
            raise QuotaStoreError(f"unknown quota reason {parsed.reason!r}")
        return ConsumeResult(
            allowed=parsed.allowed,
            reason=reason,
            used=parsed.used,
            limit=parsed.limit,
            remaining=parsed.remaining,
        )

    def get_usage(self, account_id: str) -> UsageQuota:
        payload = self._post("rpc/get_usage", account_id, {})
        try:
            parsed = _UsageResponse.model_validate(payload)
        except ValidationError as exc:
            raise QuotaStoreError("usage payload invalid") from exc
        return UsageQuota(**parsed.model_dump())

    def set_pro(self, account_id: str, is_pro: bool) -> None:
        self._post("rpc/set_pro", account_id, {"p_is_pro": is_pro})

    def purge_consumptions(self, older_than_seconds: float) -> int:
        payload = self._post("rpc/cleanup_old_idempotency_records", "", {"p_older_than_seconds": older_than_seconds})
        return int(payload) if isinstance(payload, (int, float)) else 0


__all__ = [
    "QuotaStore",
    "QuotaStoreError",
    "QuotaStoreUnavailable",
    "RemoteQuotaStore",
    "SQLiteQuotaStore",
]
