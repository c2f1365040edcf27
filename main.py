"""Simple entrypoint to try the FitMatch suggestion engine locally."""

import json

from fitmatch_app.app import FitMatchApp
from fitmatch_app.config import AppConfig
from memory.credit_ledger import new_idempotency_key
from models.quota import ActionKind
from models.scanned_item import ScannedItem


def main() -> None:
    app = FitMatchApp(AppConfig(quota_db_path="data/quota.db"))
    app.init("local-demo")
    app.library.refresh(timeout=10)

    scanned = ScannedItem(category="tops", style_tags=["office", "minimal"])
    content = app.resolve_tip_sheet("TOPS__BOTTOMS_DARK_STRUCTURED", scanned_item=scanned, user_vibes=["feminine"])
    print(json.dumps(content.to_dict(), indent=2))

    print(json.dumps(app.consume_credit(new_idempotency_key(), ActionKind.SCAN).to_dict(), indent=2))
    app.close()


if __name__ == "__main__":
    main()
