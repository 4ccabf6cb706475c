from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse
from redis.asyncio import Redis

from footy_alerts import game_store
from footy_alerts.api.deps import get_notifier, get_redis
from footy_alerts.api.models import GameListResponse, SubscriptionOptions, SubscriptionRequest
from footy_alerts.notifier import Notifier

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_class=PlainTextResponse)
async def health() -> str:
    return "healthy!"


@router.get("/games", response_model=GameListResponse)
async def games(r: Redis = Depends(get_redis)) -> GameListResponse:
    return GameListResponse(games=await game_store.get_this_round_games(r=r))


# Query params arrive already percent-decoded, so endpoints can be passed as-is.
@router.get("/subscription", response_model=SubscriptionOptions)
async def get_subscription(endpoint: str = Query(..., min_length=1), r: Redis = Depends(get_redis)) -> SubscriptionOptions:
    logger.debug("Looking up subscription endpoint=%s", endpoint)
    sub = await game_store.get_subscription_for_endpoint(r=r, endpoint=endpoint)
    if sub is None or not sub.active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subscription not found")
    return SubscriptionOptions.from_subscription(sub)


@router.post("/subscription", status_code=status.HTTP_201_CREATED)
async def create_subscription(payload: SubscriptionRequest, r: Redis = Depends(get_redis)) -> dict[str, str]:
    await game_store.add_subscription(r=r, subscription=payload.to_subscription())
    return {"status": "created"}


@router.post("/test_notification")
async def test_notification(
    endpoint: str = Query(..., min_length=1),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, bool]:
    logger.debug("Sending test notification endpoint=%s", endpoint)
    sent = await notifier.send_test_notification(endpoint)
    return {"sent": sent}
