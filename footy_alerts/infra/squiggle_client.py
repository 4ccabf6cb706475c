from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, ValidationError

from footy_alerts.api.models import Game

logger = logging.getLogger(__name__)


class SquiggleError(RuntimeError):
    """Squiggle REST request or decoding failed."""


class MissingGameError(SquiggleError):
    def __init__(self, game_id: int) -> None:
        super().__init__(f"Squiggle returned no game for id {game_id}")
        self.game_id = game_id


class GamesResponse(BaseModel):
    games: list[Game]


class SquiggleClient:
    """Minimal async client for the Squiggle `?q=games` query API.

    Pass `transport` (e.g. `httpx.MockTransport`) in tests.
    """

    def __init__(
        self,
        *,
        base_url: str,
        user_agent: str,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._client = httpx.AsyncClient(
            headers={"User-Agent": user_agent},
            timeout=timeout_s,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_game(self, game_id: int) -> Game:
        resp = await self._fetch(f"games;game={game_id}")
        if not resp.games:
            raise MissingGameError(game_id)
        return resp.games[-1]

    async def fetch_games(self, round: int, year: int) -> list[Game]:
        resp = await self._fetch(f"games;year={year};round={round}")
        return resp.games

    async def _fetch(self, query: str) -> GamesResponse:
        # Squiggle expects the raw `;`-separated filter, so the URL is built by hand.
        url = f"{self._base_url}?q={query}"
        try:
            resp = await self._client.get(url)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise SquiggleError(f"Request for {query!r} failed: {e}") from e

        try:
            return GamesResponse.model_validate_json(resp.content)
        except ValidationError as e:
            logger.error("Couldn't deserialize games response payload=%r error=%s", resp.text, e)
            raise SquiggleError(f"Couldn't deserialize games response for {query!r}") from e
