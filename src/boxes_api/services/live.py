"""
Server-Sent Events feed of box changes for browsers.

Each connected browser gets its own subscriber queue on the notifier, so the
garden page can refresh a box as soon as someone offers or receives a file.
"""
import asyncio
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

from boxes_api.adapters.notifier import BaseNotifier

logger = logging.getLogger(__name__)

KEEPALIVE = ": keepalive\n\n"


def format_sse_event(event: str, data: Dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


async def box_event_stream(
    notifier: BaseNotifier,
    keepalive_seconds: float = 15.0,
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
) -> AsyncIterator[str]:
    """
    Yield SSE frames for every box event published after the call.

    A `connected` frame comes first. When nothing happens for
    ``keepalive_seconds`` a comment line keeps proxies from closing the
    connection. The subscription is dropped when the stream is closed.
    """
    queue = notifier.subscribe()
    logger.info(f"Live client connected to {notifier.channel} ({notifier.subscriber_count} listening)")
    try:
        yield format_sse_event("connected", {"channel": notifier.channel})
        while True:
            if is_disconnected is not None and await is_disconnected():
                break
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield KEEPALIVE
                continue
            yield format_sse_event(event.type.value, event.payload())
    finally:
        notifier.unsubscribe(queue)
        logger.info(f"Live client disconnected from {notifier.channel}")
