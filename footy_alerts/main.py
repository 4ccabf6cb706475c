import asyncio
import logging

from fastapi import FastAPI

from footy_alerts.api.routes import router
from footy_alerts.event_task import EventTaskConfig, run_event_task
from footy_alerts.infra.event_stream import stream_events
from footy_alerts.infra.redis_client import create_redis
from footy_alerts.infra.squiggle_client import SquiggleClient
from footy_alerts.infra.web_push import WebPushSender, validate_vapid_key
from footy_alerts.notifier import Notifier
from footy_alerts.processor import Processor
from footy_alerts.settings import Settings, load_dotenv_if_present, settings_from_env

app = FastAPI(title="footy-alerts", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def build_processor(settings: Settings) -> Processor:
    if not settings.notification_private_key:
        raise RuntimeError("Set NOTIFICATION_PRIVATE_KEY to send push notifications")
    try:
        validate_vapid_key(settings.notification_private_key)
    except ValueError as e:
        raise RuntimeError("NOTIFICATION_PRIVATE_KEY is not a usable VAPID key") from e

    r = create_redis(settings)
    sender = WebPushSender(private_key=settings.notification_private_key, subject=settings.notification_subject)
    notifier = Notifier(r=r, sender=sender, concurrency=settings.push_concurrency)
    client = SquiggleClient(base_url=settings.squiggle_api_url, user_agent=settings.user_agent)
    return Processor(r=r, client=client, notifier=notifier)


@app.on_event("startup")
async def _startup() -> None:
    load_dotenv_if_present()
    settings = settings_from_env()
    app.state.event_task = None

    if not settings.run_event_task:
        logger.info("Event task disabled")
        return

    processor = build_processor(settings)
    app.state.event_task = asyncio.create_task(
        run_event_task(
            stream_factory=lambda: stream_events(url=settings.squiggle_events_url, user_agent=settings.user_agent),
            processor=processor,
            config=EventTaskConfig(reconnect_delay_s=settings.reconnect_delay_s),
        )
    )
    logger.info("Event task started url=%s", settings.squiggle_events_url)


@app.on_event("shutdown")
async def _shutdown() -> None:
    task = getattr(app.state, "event_task", None)
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "footy-alerts", "version": "0.1.0"}
