from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, status
from redis.asyncio import Redis

from footy_alerts.infra.redis_client import create_redis
from footy_alerts.infra.web_push import WebPushSender, validate_vapid_key
from footy_alerts.notifier import Notifier
from footy_alerts.settings import Settings, settings_from_env


def get_settings() -> Settings:
    return settings_from_env()


async def get_redis(settings: Settings = Depends(get_settings)) -> AsyncGenerator[Redis, None]:
    client = create_redis(settings)
    try:
        yield client
    finally:
        await client.aclose()


def get_notifier(r: Redis = Depends(get_redis), settings: Settings = Depends(get_settings)) -> Notifier:
    if not settings.notification_private_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Push notifications are not configured",
        )
    try:
        validate_vapid_key(settings.notification_private_key)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Push notifications are misconfigured",
        ) from e
    sender = WebPushSender(private_key=settings.notification_private_key, subject=settings.notification_subject)
    return Notifier(r=r, sender=sender, concurrency=settings.push_concurrency)
