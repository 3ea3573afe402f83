"""FastAPI application."""

import asyncio
import logging
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request, WebSocket
from fastapi.responses import JSONResponse

from ailment_tracker import __version__
from ailment_tracker.api.operations import AilmentOperations
from ailment_tracker.constants import CHANNELS
from ailment_tracker.models.inputs import CreateAilmentInput, UpdateAilmentInput
from ailment_tracker.services.ailment_service import AilmentService
from ailment_tracker.services.chart import build_bubble_chart
from ailment_tracker.services.events import EventBroker
from ailment_tracker.store.document_store import StoreError

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Ailment Tracker API",
    description="API for ailments with nested treatments, diagnostics and side effects",
    version=__version__,
)


@lru_cache
def get_operations() -> AilmentOperations:
    """Process-wide operations bound to the configured store and one broker."""
    return AilmentOperations(AilmentService.from_settings(), EventBroker())


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


# -- Queries ------------------------------------------------------------------
# REST handlers are plain functions: store and cache I/O blocks, so FastAPI
# runs them in its threadpool.


@app.get("/ailments")
def list_ailments(
    operations: AilmentOperations = Depends(get_operations),
) -> list[dict[str, Any]]:
    return [a.to_document() for a in operations.list_all()]


@app.get("/ailments/{ailment_id}")
def get_ailment(
    ailment_id: str, operations: AilmentOperations = Depends(get_operations)
) -> dict[str, Any]:
    ailment = operations.get(ailment_id)
    if ailment is None:
        raise HTTPException(status_code=404, detail=f"Ailment {ailment_id} not found")
    return ailment.to_document()


@app.get("/chart")
def chart(
    operations: AilmentOperations = Depends(get_operations),
) -> dict[str, Any]:
    return build_bubble_chart(operations.list_all()).model_dump()


# -- Mutations ----------------------------------------------------------------


@app.post("/ailments")
def create_ailment(
    data: CreateAilmentInput, operations: AilmentOperations = Depends(get_operations)
) -> dict[str, Any]:
    return operations.create(data).to_document()


@app.put("/ailments/{ailment_id}")
def update_ailment(
    ailment_id: str,
    data: UpdateAilmentInput,
    operations: AilmentOperations = Depends(get_operations),
) -> dict[str, Any]:
    ailment = operations.update(ailment_id, data)
    if ailment is None:
        raise HTTPException(status_code=404, detail=f"Ailment {ailment_id} not found")
    return ailment.to_document()


@app.delete("/ailments/{ailment_id}")
def delete_ailment(
    ailment_id: str, operations: AilmentOperations = Depends(get_operations)
) -> dict[str, Any]:
    return operations.delete(ailment_id).to_document()


# -- Subscriptions ------------------------------------------------------------


async def _forward(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        await websocket.send_json(await queue.get())


async def _until_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@app.websocket("/subscriptions/{channel}")
async def subscribe(
    websocket: WebSocket,
    channel: str,
    operations: AilmentOperations = Depends(get_operations),
) -> None:
    """Stream every message published on ``channel`` until the client leaves."""
    if channel not in CHANNELS:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    queue: asyncio.Queue = asyncio.Queue()
    subscription = operations.broker.subscribe(channel, queue.put_nowait)
    logger.info("Websocket subscribed to %s", channel)

    sender = asyncio.create_task(_forward(websocket, queue))
    listener = asyncio.create_task(_until_disconnect(websocket))
    try:
        done, _ = await asyncio.wait(
            {sender, listener}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.warning("Websocket on %s closed: %s", channel, task.exception())
    finally:
        sender.cancel()
        listener.cancel()
        subscription.unsubscribe()
        logger.info("Websocket unsubscribed from %s", channel)
