"""Service wiring for the FitMatch suggestion engine."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Dict, Optional, Sequence, Tuple, Union

from fitmatch_app.config import AppConfig
from fitmatch_app.logging_config import configure_logging, get_logger, log_event, operation_context
from logic.content_resolver import ContentRequest, ContentResolver, decide_mode
from memory.credit_ledger import CreditLedger
from memory.quota_store import QuotaStore, RemoteQuotaStore, SQLiteQuotaStore
from models.content import ContentUnresolved, Educational, Suggestions
from models.quota import ActionKind, ConsumeResult, UsageQuota
from models.recipes import RECIPES, assert_valid_recipes
from models.scanned_item import ScannedItem
from models.taxonomy import Category, TopicMode, parse_category, parse_vibe
from tools.library_source import (
    LibraryErrorKind,
    LibraryFetcher,
    LibrarySource,
    RemoteLibraryFetcher,
    StaticLibraryFetcher,
)
from tools.telemetry import TipSheetTelemetry, filters_fingerprint, new_instance_id

LOGGER = get_logger(__name__)


class FitMatchApp:
    """Wires the library source, resolvers, credit ledger and telemetry together.

    The app is an explicitly constructed service object: call ``init`` with
    the signed-in account before consuming credits and ``teardown`` on
    sign-out so no account state leaks into the next session.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        library: LibrarySource | None = None,
        quota_store: QuotaStore | None = None,
        telemetry: TipSheetTelemetry | None = None,
    ) -> None:
        self.config = config or AppConfig.from_env()
        configure_logging()
        assert_valid_recipes()

        self.library = library or LibrarySource(
            self._build_fetcher(),
            stale_after_seconds=self.config.library_stale_after_seconds,
        )
        self.quota_store = quota_store or self._build_quota_store()
        self.ledger = CreditLedger(self.quota_store)
        self.telemetry = telemetry or TipSheetTelemetry()
        self.resolver = ContentResolver(
            grid_size=self.config.grid_size,
            board_base_url=self.config.board_base_url,
        )

    def _build_fetcher(self) -> LibraryFetcher:
        if not self.config.library_url:
            LOGGER.info("No library URL configured; serving the bundled catalogue")
            return StaticLibraryFetcher()
        return RemoteLibraryFetcher(
            self.config.library_url,
            api_key=self.config.library_api_key,
            timeout_seconds=self.config.library_timeout_seconds,
        )

    def _build_quota_store(self) -> QuotaStore:
        if self.config.quota_backend == "remote":
            return RemoteQuotaStore(self.config.quota_api_url or "", api_key=self.config.quota_api_key)
        return SQLiteQuotaStore(
            self.config.quota_db_path or "data/quota.db",
            scan_limit=self.config.scan_limit,
            add_limit=self.config.add_limit,
        )

    # Lifecycle ------------------------------------------------------------

    def init(self, account_id: str) -> None:
        self.ledger.init(account_id)
        self.library.prewarm()

    def teardown(self) -> None:
        self.ledger.teardown()

    def close(self) -> None:
        self.teardown()
        self.library.close()

    # Content ---------------------------------------------------------------

    def resolve_tip_sheet(
        self,
        topic: str,
        scanned_item: Optional[ScannedItem] = None,
        vibe: Optional[str] = None,
        user_vibes: Sequence[str] = (),
        target_category: Optional[Category] = None,
        mode: Optional[TopicMode] = None,
        instance_id: Optional[str] = None,
    ) -> Union[Suggestions, Educational, ContentUnresolved]:
        """Resolve a tip sheet against the current library snapshot."""

        instance_id = instance_id or new_instance_id()
        with operation_context("resolve_tip_sheet"):
            topic_entry = self.resolver.topic(topic)
            if mode is None:
                mode = decide_mode(topic_entry) if topic_entry else TopicMode.EDUCATIONAL
            request = ContentRequest(
                mode=mode,
                topic=topic,
                library=self.library.snapshot(),
                scanned_item=scanned_item,
                vibe=vibe,
                user_vibes=list(user_vibes),
                target_category=target_category,
            )
            content = self.resolver.resolve(request)

        if target_category is not None:
            category = parse_category(target_category)
        else:
            category = topic_entry.target_category if topic_entry else None
        category_value = category.value if category else None
        parsed_vibe = parse_vibe(vibe)
        vibe_value = parsed_vibe.value if parsed_vibe else None
        if isinstance(content, ContentUnresolved):
            self.telemetry.resolution_failed(instance_id, topic, category_value, vibe_value, content.reason)
        elif isinstance(content, Suggestions):
            library_error = self.library.error_kind
            if library_error is not LibraryErrorKind.NONE:
                self.telemetry.resolution_failed(
                    instance_id, topic, category_value, vibe_value, library_error.value
                )
            self.telemetry.suggestions_viewed(
                instance_id,
                content.topic,
                content.category.value,
                vibe_value,
                [item.id for item in content.items],
                [key.value for key in content.meta.relaxed_keys],
                filters_fingerprint(content.category.value, vibe_value or "default", self._locked_filters(content)),
            )
        log_event(LOGGER, logging.INFO, "tip_sheet_resolved", topic=topic, result=content.kind)
        return content

    @staticmethod
    def _locked_filters(content: Suggestions) -> Dict[str, Tuple[str, ...]]:
        recipe = RECIPES.get(content.topic)
        if recipe is None:
            return {}
        constraints = {**recipe.required, **recipe.optional}
        return {key.value: constraints[key] for key in content.meta.locked_keys if key in constraints}

    def retry_library(
        self,
        topic: Optional[str] = None,
        category: Optional[Category] = None,
        vibe: Optional[str] = None,
        instance_id: Optional[str] = None,
    ) -> Future:
        """Record the retry click and re-attempt the library fetch."""

        error_kind = self.library.error_kind.value
        future = self.library.retry()
        self.telemetry.retry_clicked(
            instance_id or new_instance_id(),
            topic,
            category.value if category else None,
            vibe,
            error_kind,
            attempt_number=self.library.retry_attempts,
        )
        return future

    # Credits ---------------------------------------------------------------

    def consume_credit(self, idempotency_key: str, action_kind: ActionKind) -> ConsumeResult:
        return self.ledger.consume(idempotency_key, action_kind)

    def usage(self) -> UsageQuota:
        return self.ledger.usage()


__all__ = ["FitMatchApp"]
