"""FastAPI server exposing the suggestion engine and credit ledger."""

from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from fitmatch_app.app import FitMatchApp
from fitmatch_app.logging_config import configure_logging
from memory.credit_ledger import LedgerNotInitialized
from models.quota import ActionKind
from models.scanned_item import ScannedItem
from models.taxonomy import Category, TopicMode, Vibe

configure_logging()

fitmatch_app: Optional[FitMatchApp] = None
app = FastAPI(title="FitMatch Suggestions", version="0.1.0")


def get_fitmatch_app() -> FitMatchApp:
    """Return the process-wide service, building it on first use."""

    global fitmatch_app
    if fitmatch_app is None:
        fitmatch_app = FitMatchApp()
    return fitmatch_app


class SessionRequest(BaseModel):
    """Request payload for binding the ledger to a signed-in account."""

    account_id: str = Field(..., min_length=1, description="Signed-in account identifier")


class ScannedItemPayload(BaseModel):
    category: Optional[str] = None
    style_tags: List[str] = Field(default_factory=list)


class ResolveRequest(BaseModel):
    """Request payload for resolving one tip sheet."""

    topic: str
    mode: Optional[TopicMode] = None
    scanned_item: Optional[ScannedItemPayload] = None
    vibe: Optional[Vibe] = None
    user_vibes: List[str] = Field(default_factory=list)
    target_category: Optional[Category] = None


class ConsumeRequest(BaseModel):
    idempotency_key: str = Field(..., min_length=1)
    action_kind: ActionKind


class RetryRequest(BaseModel):
    topic: Optional[str] = None
    category: Optional[Category] = None
    vibe: Optional[Vibe] = None


@app.get("/healthz")
async def healthcheck() -> dict:
    """Lightweight readiness probe."""

    service = get_fitmatch_app()
    return {
        "status": "ok",
        "service": "fitmatch-suggestions",
        "environment": service.config.environment or "local",
        "quota_backend": service.config.quota_backend,
    }


@app.post("/sessions")
async def start_session(request: SessionRequest) -> dict:
    """Bind the credit ledger to an account and prewarm the library."""

    get_fitmatch_app().init(request.account_id)
    return {"status": "ok"}


@app.delete("/sessions")
async def end_session() -> dict:
    """Sign-out: forget the account and its replay cache."""

    get_fitmatch_app().teardown()
    return {"status": "ok"}


@app.post("/content/resolve")
def resolve_content(request: ResolveRequest) -> dict:
    """Resolve a tip sheet into suggestions, boards or an unresolved marker."""

    scanned = None
    if request.scanned_item is not None:
        scanned = ScannedItem(category=request.scanned_item.category, style_tags=request.scanned_item.style_tags)
    content = get_fitmatch_app().resolve_tip_sheet(
        request.topic,
        scanned_item=scanned,
        vibe=request.vibe,
        user_vibes=request.user_vibes,
        target_category=request.target_category,
        mode=request.mode,
    )
    return content.to_dict()


@app.post("/credits/consume")
def consume_credit(request: ConsumeRequest) -> dict:
    """Spend one credit for the action, at most once per idempotency key."""

    try:
        result = get_fitmatch_app().consume_credit(request.idempotency_key, request.action_kind)
    except LedgerNotInitialized as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return result.to_dict()


@app.get("/credits/usage")
def credit_usage() -> dict:
    try:
        usage = get_fitmatch_app().usage()
    except LedgerNotInitialized as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return usage.to_dict()


@app.get("/library/status")
async def library_status() -> dict:
    return get_fitmatch_app().library.status()


@app.post("/library/retry")
def retry_library(request: RetryRequest) -> dict:
    """Re-attempt the catalogue fetch; concurrent retries share one request."""

    service = get_fitmatch_app()
    vibe = request.vibe.value if request.vibe else None
    service.retry_library(topic=request.topic, category=request.category, vibe=vibe)
    return service.library.status()


def get_app() -> FastAPI:
    """Expose the FastAPI instance for ASGI servers."""

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:app", host="0.0.0.0", port=int("8080"), reload=False)
