from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

import redis
from pydantic import ValidationError
from redis.asyncio import Redis

from footy_alerts import game_store
from footy_alerts.api.models import Game
from footy_alerts.core.events import CompleteEvent, Event, GameEvent, ScoreEvent, TimeStrEvent, WinnerEvent
from footy_alerts.core.policy import maybe_notification
from footy_alerts.infra.squiggle_client import SquiggleError
from footy_alerts.notifier import Notifier

logger = logging.getLogger(__name__)


class EventProcessingError(RuntimeError):
    """Processing a single event failed; the event is dropped."""

    def __init__(self, message: str, *, game_id: int) -> None:
        super().__init__(message)
        self.game_id = game_id


class GameFetcher(Protocol):
    async def fetch_game(self, game_id: int) -> Game:  # pragma: no cover
        ...

    async def fetch_games(self, round: int, year: int) -> list[Game]:  # pragma: no cover
        ...


def patch_game_with_event(game: Game, event: Event) -> Game:
    """Return a copy of `game` with the event's fields merged in.

    `complete` never goes backwards, even if a late event reports a lower value.
    """

    if isinstance(event, ScoreEvent):
        return game.model_copy(
            update={
                "home_score": event.score.home_score,
                "away_score": event.score.away_score,
                "complete": max(game.complete, event.complete),
                "timestr": event.timestr,
            }
        )

    if isinstance(event, TimeStrEvent):
        return game.model_copy(update={"timestr": event.timestr})

    if isinstance(event, CompleteEvent):
        return game.model_copy(update={"complete": max(game.complete, event.complete)})

    if isinstance(event, WinnerEvent):
        return game.model_copy(update={"winner": event.winner})

    if isinstance(event, GameEvent):
        # Redundant with the incremental events.
        return game

    raise TypeError(f"Unknown event type: {type(event).__name__}")


@dataclass(slots=True)
class Processor:
    """Turns stream events into stored game state and, when due, notifications."""

    r: Redis
    client: GameFetcher
    notifier: Notifier

    async def process_event(self, event: Event) -> None:
        game_id = event.game_id
        try:
            await self._process(game_id, event)
        except (SquiggleError, redis.RedisError, ValidationError) as e:
            raise EventProcessingError(f"Couldn't process event for game {game_id}: {e}", game_id=game_id) from e

    async def _process(self, game_id: int, event: Event) -> None:
        stored = await self.get_or_insert_game(game_id)

        game = patch_game_with_event(stored, event)
        notification = maybe_notification(game)

        # The score/clock update must survive whether or not we notify.
        await game_store.upsert_game(r=self.r, game=game)

        if notification is None:
            return

        # Record before sending: a crash mid-send loses the notification rather than duplicating it.
        if not await game_store.record_notification(r=self.r, game_id=game_id, kind=notification.kind):
            logger.debug("Already sent %s for game=%s", notification.kind.name, game_id)
            return

        await self.notifier.notify(game, notification)

    async def get_or_insert_game(self, game_id: int) -> Game:
        game = await game_store.get_game(r=self.r, game_id=game_id)
        if game is not None:
            return game

        # Fetch the whole round so sibling games are already stored when their events arrive.
        game = await self.client.fetch_game(game_id)
        round_games = await self.client.fetch_games(game.round, game.year)
        logger.info(
            "Backfilling round=%s year=%s (%d games) on first sight of game=%s",
            game.round,
            game.year,
            len(round_games),
            game_id,
        )

        await game_store.upsert_game(r=self.r, game=game)
        await asyncio.gather(
            *(game_store.upsert_game(r=self.r, game=g) for g in round_games if g.id != game_id)
        )
        return game
