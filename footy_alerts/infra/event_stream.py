from __future__ import annotations

import logging
from collections.abc import AsyncIterator

import httpx
from httpx_sse import aconnect_sse

from footy_alerts.core.events import Event, parse_event

logger = logging.getLogger(__name__)


async def stream_events(
    *,
    url: str,
    user_agent: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[Event]:
    """Yield parsed events from the Squiggle SSE feed until the connection ends.

    Transport errors propagate; reconnecting is the caller's job.
    """

    # No read timeout: the feed can be quiet for long stretches between games.
    timeout = httpx.Timeout(10.0, read=None)
    async with httpx.AsyncClient(headers={"User-Agent": user_agent}, timeout=timeout, transport=transport) as client:
        async with aconnect_sse(client, "GET", url) as event_source:
            event_source.response.raise_for_status()
            async for sse in event_source.aiter_sse():
                if not sse.data:
                    continue
                event = parse_event(sse.data)
                if event is not None:
                    yield event
