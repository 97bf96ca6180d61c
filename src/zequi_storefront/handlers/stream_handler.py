"""Server-Sent Events bridge for live subscriptions.

A browser opens ``GET /api/stream/{topic}`` and receives one ``data:`` frame
with the current snapshot, then one per change. The underlying subscription
is disposed as soon as the client goes away.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import StreamingResponse

from zequi_storefront.services.subscription_hub import SubscriptionHub

logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 15.0
EVENT_STREAM_MEDIA_TYPE = "text/event-stream"


def format_event(snapshot: Any, event: str | None = None) -> str:
    """Encode a snapshot as one SSE frame."""
    payload = json.dumps(jsonable_encoder(snapshot), ensure_ascii=False)
    prefix = f"event: {event}\n" if event else ""
    return f"{prefix}data: {payload}\n\n"


async def snapshot_stream(
    hub: SubscriptionHub,
    topic: str,
    request: Request,
    keepalive_seconds: float = KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    """Yield SSE frames for ``topic`` until the client disconnects.

    Args:
        hub: Hub holding the topic
        topic: Topic to follow
        request: Incoming request, polled for disconnection
        keepalive_seconds: Idle time after which a comment frame is sent

    Yields:
        str: SSE frames
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[Any] = asyncio.Queue()

    def on_snapshot(snapshot: Any) -> None:
        # Writes may publish from a worker thread
        loop.call_soon_threadsafe(queue.put_nowait, snapshot)

    subscription = hub.subscribe(topic, on_snapshot)
    logger.info(f"Stream opened on {topic}")

    try:
        while not await request.is_disconnected():
            try:
                snapshot = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
            except TimeoutError:
                yield ": keep-alive\n\n"
                continue
            yield format_event(snapshot, event=topic)
    finally:
        subscription.unsubscribe()
        logger.info(f"Stream closed on {topic}")


def stream_response(hub: SubscriptionHub, topic: str, request: Request) -> StreamingResponse:
    """StreamingResponse serving ``topic`` as Server-Sent Events."""
    return StreamingResponse(
        snapshot_stream(hub, topic, request),
        media_type=EVENT_STREAM_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
