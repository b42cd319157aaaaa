"""Fact-check endpoint: one JSON result, or a thinking/result event stream."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.background import BackgroundTask

from dependencies.db import SessionFactory
from schemas.fact_check import FactCheckRequest
from services.fact_check.relay import StreamRelay
from services.fact_check.service import check_fact, stream_fact_check
from services.history import record_fact_check
from services.providers.perplexity import DEFAULT_MODEL


logger = logging.getLogger(__name__)

router = APIRouter(tags=["fact-check"])

DISCONNECT_POLL_SECONDS = 0.5


async def _relay_frames(
    relay: StreamRelay, request: Request
) -> AsyncGenerator[str, None]:
    """Forward relay frames, flagging the relay as soon as the client leaves."""

    async def watch_disconnect() -> None:
        while not relay.state.has_terminated:
            if await request.is_disconnected():
                relay.disconnect()
                return
            await asyncio.sleep(DISCONNECT_POLL_SECONDS)

    watcher = asyncio.create_task(watch_disconnect())
    try:
        async for frame in relay.frames():
            yield frame
    finally:
        watcher.cancel()


async def _persist_stream_result(
    relay: StreamRelay,
    session_factory: async_sessionmaker[AsyncSession],
    model: str,
) -> None:
    if relay.result is None:
        return
    await record_fact_check(session_factory, relay.statement, relay.result, model)


@router.post(
    "/check-fact",
    response_model=None,
    summary="Fact-check a statement",
    description=(
        "Returns the fact-check result as JSON, or with `stream: true` a "
        "`text/event-stream` of thinking events followed by one result or "
        "error event and a `[DONE]` marker."
    ),
)
async def check_fact_endpoint(
    payload: FactCheckRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    session_factory: SessionFactory,
) -> JSONResponse | StreamingResponse:
    options = payload.options()
    model = options.model or DEFAULT_MODEL

    if not payload.stream:
        result = await check_fact(payload.statement, options)
        background_tasks.add_task(
            record_fact_check, session_factory, payload.statement, result, model
        )
        return JSONResponse(result.to_wire())

    relay = stream_fact_check(payload.statement, options)
    return StreamingResponse(
        _relay_frames(relay, request),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        background=BackgroundTask(
            _persist_stream_result, relay, session_factory, model
        ),
    )
