from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass

from footy_alerts.core.events import Event
from footy_alerts.processor import EventProcessingError, Processor

logger = logging.getLogger(__name__)

EventStreamFactory = Callable[[], AsyncIterator[Event]]


@dataclass(frozen=True, slots=True)
class EventTaskConfig:
    # Naive fixed backoff so we don't hammer Squiggle after the feed drops.
    reconnect_delay_s: float = 30.0


async def consume_events(*, events: AsyncIterator[Event], processor: Processor) -> int:
    """Feed every event to the processor, one at a time.

    A failed event is logged and skipped, whatever it raised. Returns how many events were processed
    successfully. Stream errors propagate.
    """

    ok = 0
    async for event in events:
        try:
            await processor.process_event(event)
        except EventProcessingError:
            logger.exception("Error ingesting event game=%s", event.game_id)
            continue
        except Exception:
            logger.exception("Unexpected error ingesting event game=%s", event.game_id)
            continue
        ok += 1
    return ok


async def run_event_task(
    *,
    stream_factory: EventStreamFactory,
    processor: Processor,
    config: EventTaskConfig | None = None,
    max_connections: int | None = None,
) -> None:
    """Consume the feed forever, reconnecting after a fixed delay.

    `max_connections` bounds the number of stream connections (tests only).
    """

    cfg = config or EventTaskConfig()
    connections = 0

    while max_connections is None or connections < max_connections:
        connections += 1
        try:
            processed = await consume_events(events=stream_factory(), processor=processor)
            logger.warning("Event stream finished after %d events", processed)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Event stream failed")

        await asyncio.sleep(cfg.reconnect_delay_s)
