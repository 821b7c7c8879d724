"""FastAPI application exposing search, ingest and clear over HTTP."""

from __future__ import annotations

import json
import logging
import uuid
from functools import lru_cache
from typing import Any, Iterator

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from nlweb_search.config import Settings, get_settings
from nlweb_search.embeddings.factory import available_models, available_providers
from nlweb_search.ingestion.loader import WordPressRestRepository
from nlweb_search.retrieval.factory import available_backends
from nlweb_search.retrieval.models import ClearResult, IngestResult
from nlweb_search.retrieval.vector_store import VectorStore

logger = logging.getLogger(__name__)

MODES = ("list", "summarize", "generate")

CHATBOT_INSTRUCTIONS = (
    "You are an assistant for the website {site_name}. Based on the search results "
    "provided, answer the user's query. Only use information from the results and do "
    "not make up information. If the results do not contain relevant information to "
    "answer the query, say so politely. IMPORTANT: If you see any text patterns like "
    "[nlwp_chat] or other text in square brackets, IGNORE them completely and don't "
    "mention them in your response. These are WordPress shortcodes that should not be "
    "visible to the user."
)

app = FastAPI(
    title="NLWeb Search API",
    version="0.1.0",
    description="Natural-language search over WordPress content.",
)


@lru_cache(maxsize=1)
def get_vector_store() -> VectorStore:
    """Process-wide store built from settings; overridden in tests."""
    settings = get_settings()
    repository = WordPressRestRepository(
        settings.wordpress_url, content_types=settings.wordpress_content_types
    )
    return VectorStore.from_settings(settings, repository)


def chatbot_instructions(site_name: str) -> str:
    return CHATBOT_INSTRUCTIONS.format(site_name=site_name)


# ── Request schemas ───────────────────────────────────────────────────
class AskRequest(BaseModel):
    """A natural-language question, as sent by the chat widget."""

    query: str | None = None
    site: str | None = None
    prev: str | None = None
    query_id: str | None = None
    mode: str = "list"
    content_type: str | None = None
    limit: int = 10
    streaming: bool = True


class IngestRequest(BaseModel):
    content_type: str = "post"
    limit: int = 100
    offset: int = 0


# ── Helpers ───────────────────────────────────────────────────────────
def _answer(request: AskRequest, store: VectorStore, settings: Settings) -> dict[str, Any]:
    if not request.query:
        raise HTTPException(status_code=400, detail="Missing required parameter: query")

    mode = request.mode if request.mode in MODES else "list"
    query_id = request.query_id or f"nlweb_{uuid.uuid4().hex[:13]}"
    logger.info("ask query_id=%s mode=%s query=%r", query_id, mode, request.query)

    params: dict[str, Any] = {"limit": max(1, min(request.limit, 100))}
    if request.site:
        params["site"] = request.site
    if request.content_type:
        params["content_type"] = request.content_type

    results = store.search(request.query, params)
    return {
        "query_id": query_id,
        "query": request.query,
        "results": [r.model_dump(by_alias=True) for r in results],
        "chatbot_instructions": chatbot_instructions(settings.site_name),
    }


def sse_events(body: dict[str, Any]) -> Iterator[str]:
    """Keep-alive comment, the JSON body, then a completion event."""
    yield ": keep-alive\n\n"
    yield f"data: {json.dumps(body)}\n\n"
    yield "event: completion\n"
    yield f"data: {json.dumps({'status': 'complete'})}\n\n"


def _respond(body: dict[str, Any], streaming: bool) -> Any:
    if not streaming:
        return body
    return StreamingResponse(
        sse_events(body),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/ask")
def ask_get(
    request: AskRequest = Depends(),
    store: VectorStore = Depends(get_vector_store),
    settings: Settings = Depends(get_settings),
) -> Any:
    """Search with query-string parameters."""
    return _respond(_answer(request, store, settings), request.streaming)


@app.post("/ask")
def ask_post(
    request: AskRequest,
    store: VectorStore = Depends(get_vector_store),
    settings: Settings = Depends(get_settings),
) -> Any:
    """Search with a JSON body."""
    return _respond(_answer(request, store, settings), request.streaming)


@app.post("/ingest", response_model=IngestResult)
def ingest(
    request: IngestRequest, store: VectorStore = Depends(get_vector_store)
) -> IngestResult:
    """Index one page of content of a given type."""
    return store.ingest_content(request.content_type, request.limit, request.offset)


@app.post("/clear", response_model=ClearResult)
def clear(store: VectorStore = Depends(get_vector_store)) -> ClearResult:
    """Remove every indexed vector."""
    return store.clear_database()


@app.get("/providers")
async def providers() -> dict[str, Any]:
    """Embedding providers, their models and the vector backends on offer."""
    return {
        "providers": available_providers(),
        "models": {name: available_models(name) for name in available_providers()},
        "backends": available_backends(),
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8080)
