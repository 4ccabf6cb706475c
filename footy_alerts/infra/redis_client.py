from __future__ import annotations

from redis.asyncio import Redis

from footy_alerts.settings import Settings


def create_redis(settings: Settings) -> Redis:
    # decode_responses=True => strings in/out instead of bytes
    return Redis.from_url(settings.redis_url, decode_responses=True)
