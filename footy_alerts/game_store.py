from __future__ import annotations

import logging

from redis.asyncio import Redis

from footy_alerts.api.models import Game, Subscription, Team
from footy_alerts.core.notifications import NotificationKind

logger = logging.getLogger(__name__)

GAME_KEY_PREFIX = "footy:game:"  # + {game_id}
ROUND_KEY_PREFIX = "footy:round:"  # + {year}:{round}, set of game ids
ROUNDS_ZSET_KEY = "footy:rounds"  # "{year}:{round}" scored by recency
ALERTS_KEY_PREFIX = "footy:alerts:"  # + {game_id}, set of NotificationKind values
SUBSCRIPTIONS_SET_KEY = "footy:subscriptions"
SUBSCRIPTION_KEY_PREFIX = "footy:subscription:"  # + {endpoint}
INACTIVE_SUBSCRIPTIONS_SET_KEY = "footy:subscriptions:inactive"


def _game_key(game_id: int) -> str:
    return f"{GAME_KEY_PREFIX}{game_id}"


def _round_member(*, year: int, round: int) -> str:
    return f"{year}:{round}"


def _round_key(*, year: int, round: int) -> str:
    return f"{ROUND_KEY_PREFIX}{_round_member(year=year, round=round)}"


def _round_score(*, year: int, round: int) -> int:
    return year * 1000 + round


def _alerts_key(game_id: int) -> str:
    return f"{ALERTS_KEY_PREFIX}{game_id}"


def _subscription_key(endpoint: str) -> str:
    return f"{SUBSCRIPTION_KEY_PREFIX}{endpoint}"


# ---- games ----


async def upsert_game(*, r: Redis, game: Game) -> Game:
    """Insert or replace a game snapshot.

    Writing the same snapshot twice is harmless, so concurrent backfills of the
    same round need no locking.
    """

    member = _round_member(year=game.year, round=game.round)
    async with r.pipeline(transaction=True) as pipe:
        pipe.set(_game_key(game.id), game.model_dump_json())
        pipe.sadd(_round_key(year=game.year, round=game.round), str(game.id))
        pipe.zadd(ROUNDS_ZSET_KEY, {member: _round_score(year=game.year, round=game.round)})
        await pipe.execute()
    return game


async def get_game(*, r: Redis, game_id: int) -> Game | None:
    raw = await r.get(_game_key(game_id))
    if not raw:
        return None
    return Game.model_validate_json(raw)


async def get_round_games(*, r: Redis, year: int, round: int) -> list[Game]:
    ids = await r.smembers(_round_key(year=year, round=round))
    if not ids:
        return []

    raws = await r.mget([_game_key(int(gid)) for gid in sorted(ids, key=int)])
    return [Game.model_validate_json(raw) for raw in raws if raw]


async def get_this_round_games(*, r: Redis) -> list[Game]:
    """Games from the most recent (year, round) we have stored."""

    latest = await r.zrevrange(ROUNDS_ZSET_KEY, 0, 0)
    if not latest:
        return []

    year, round = (int(part) for part in latest[0].split(":"))
    return await get_round_games(r=r, year=year, round=round)


# ---- notification ledger ----


async def game_has_notification(*, r: Redis, game_id: int, kind: NotificationKind) -> bool:
    return bool(await r.sismember(_alerts_key(game_id), str(kind.value)))


async def record_notification(*, r: Redis, game_id: int, kind: NotificationKind) -> bool:
    """Mark `kind` as sent for `game_id`.

    Returns False if it was already recorded. Check and insert happen in a single
    SADD so two processors can't both claim the same notification.
    """

    added = await r.sadd(_alerts_key(game_id), str(kind.value))
    return added == 1


# ---- subscriptions ----
# Records are stored without `active`; deactivated endpoints live in their own set so
# flipping the flag is a single SADD/SREM and never rewrites the settings.


def _with_active(raw: str, *, inactive: bool) -> Subscription:
    return Subscription.model_validate_json(raw).model_copy(update={"active": not inactive})


async def add_subscription(*, r: Redis, subscription: Subscription) -> None:
    """Upsert by endpoint. Resubscribing replaces settings and reactivates."""

    endpoint = subscription.endpoint
    async with r.pipeline(transaction=True) as pipe:
        pipe.set(_subscription_key(endpoint), subscription.model_dump_json(exclude={"active"}))
        pipe.sadd(SUBSCRIPTIONS_SET_KEY, endpoint)
        pipe.srem(INACTIVE_SUBSCRIPTIONS_SET_KEY, endpoint)
        await pipe.execute()


async def get_subscription_for_endpoint(*, r: Redis, endpoint: str) -> Subscription | None:
    async with r.pipeline(transaction=True) as pipe:
        pipe.get(_subscription_key(endpoint))
        pipe.sismember(INACTIVE_SUBSCRIPTIONS_SET_KEY, endpoint)
        raw, inactive = await pipe.execute()
    if not raw:
        return None
    return _with_active(raw, inactive=bool(inactive))


async def list_subscriptions(*, r: Redis) -> list[Subscription]:
    async with r.pipeline(transaction=True) as pipe:
        pipe.smembers(SUBSCRIPTIONS_SET_KEY)
        pipe.smembers(INACTIVE_SUBSCRIPTIONS_SET_KEY)
        endpoints, inactive = await pipe.execute()
    if not endpoints:
        return []

    endpoints = sorted(endpoints)
    raws = await r.mget([_subscription_key(e) for e in endpoints])
    return [_with_active(raw, inactive=e in inactive) for e, raw in zip(endpoints, raws) if raw]


def subscription_wants(sub: Subscription, *, home_team: Team, away_team: Team, kind: NotificationKind) -> bool:
    if not sub.active:
        return False

    if sub.team is not None and sub.team not in (home_team, away_team):
        return False

    return (
        (sub.close_games and kind.is_close_game_notification)
        or (sub.final_scores and kind.is_full_game_notification)
        or (sub.quarter_scores and kind.is_quarter_notification)
    )


async def get_subscriptions_for_notification(
    *,
    r: Redis,
    home_team: Team,
    away_team: Team,
    kind: NotificationKind,
) -> list[Subscription]:
    """Active subscriptions following either team (or all teams) and interested in `kind`."""

    subs = await list_subscriptions(r=r)
    return [s for s in subs if subscription_wants(s, home_team=home_team, away_team=away_team, kind=kind)]


async def delete_subscription(*, r: Redis, endpoint: str) -> None:
    """Soft delete: keep the record, stop notifying it."""

    # Endpoints are never removed from the subscriptions set, so this check can't go stale.
    if not await r.sismember(SUBSCRIPTIONS_SET_KEY, endpoint):
        logger.info("No subscription to deactivate endpoint=%s", endpoint)
        return

    await r.sadd(INACTIVE_SUBSCRIPTIONS_SET_KEY, endpoint)
