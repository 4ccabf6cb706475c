# tests/helpers.py
from __future__ import annotations

import asyncio

from footy_alerts.api.models import Game, Subscription, Team
from footy_alerts.infra.squiggle_client import MissingGameError
from footy_alerts.infra.web_push import PushError


def make_game(
    *,
    game_id: int = 35740,
    round: int = 5,
    year: int = 2024,
    home_team: Team = Team.Geelong,
    away_team: Team = Team.StKilda,
    home_score: int = 0,
    away_score: int = 0,
    complete: int = 0,
    timestr: str | None = None,
) -> Game:
    return Game(
        id=game_id,
        round=round,
        year=year,
        home_team=home_team,
        away_team=away_team,
        home_score=home_score,
        away_score=away_score,
        complete=complete,
        timestr=timestr,
        date="2024-04-13 13:45:00",
        tz="+10:00",
    )


def make_subscription(
    endpoint: str,
    *,
    team: Team | None = None,
    close_games: bool = False,
    final_scores: bool = False,
    quarter_scores: bool = False,
) -> Subscription:
    return Subscription(
        endpoint=endpoint,
        p256dh="BJO9qnHW0_lKWB351O6Y-3M0hjoOUI0tBcBy7q9WqL1WWLdGSkBDZhXSs5saIGJ73MUlmzn4Et_Tn0FuU225wK4",
        auth="ENDd0ot5n0ftnJlA658u9Q",
        team=team,
        close_games=close_games,
        final_scores=final_scores,
        quarter_scores=quarter_scores,
    )


def round_five_games() -> list[Game]:
    """Game 35740 plus three sibling fixtures from the same round."""

    return [
        make_game(),
        make_game(game_id=35741, home_team=Team.Richmond, away_team=Team.Carlton),
        make_game(game_id=35742, home_team=Team.Sydney, away_team=Team.Hawthorn),
        make_game(game_id=35743, home_team=Team.WestCoast, away_team=Team.Fremantle),
    ]


class FakeSquiggle:
    """In-memory stand-in for the Squiggle REST client."""

    def __init__(self, games: list[Game]) -> None:
        self.games = {g.id: g for g in games}
        self.calls: list[tuple[str, int]] = []

    async def fetch_game(self, game_id: int) -> Game:
        self.calls.append(("game", game_id))
        game = self.games.get(game_id)
        if game is None:
            raise MissingGameError(game_id)
        return game.model_copy()

    async def fetch_games(self, round: int, year: int) -> list[Game]:
        self.calls.append(("round", round))
        return [g.model_copy() for g in self.games.values() if g.round == round and g.year == year]


class FakePushSender:
    """Records deliveries; endpoints listed in `failures` raise the given exception type."""

    def __init__(self, *, delay_s: float = 0.0) -> None:
        self.delay_s = delay_s
        self.sent: list[tuple[str, str]] = []
        self.failures: dict[str, type[Exception]] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    async def send(self, *, subscription: Subscription, payload: str) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay_s)
            error = self.failures.get(subscription.endpoint)
            if error is not None and issubclass(error, PushError):
                raise error("push failed", endpoint=subscription.endpoint)
            if error is not None:
                raise error("push failed")
            self.sent.append((subscription.endpoint, payload))
        finally:
            self.in_flight -= 1

    def endpoints(self) -> list[str]:
        return sorted(e for e, _ in self.sent)
