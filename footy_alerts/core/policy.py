from __future__ import annotations

from footy_alerts.api.models import Game, TimeStr
from footy_alerts.core.notifications import Notification, NotificationKind, Quarter

# How complete the game needs to be before close-game alerts go out.
CLOSE_GAME_COMPLETION_THRESHOLD = 90

# Max point margin still considered close.
CLOSE_GAME_SCORE_THRESHOLD = 15

_BREAK_QUARTERS: dict[TimeStr, Quarter] = {
    TimeStr.EndOfFirstQuarter: Quarter.First,
    TimeStr.EndOfSecondQuarter: Quarter.Second,
    TimeStr.EndOfThirdQuarter: Quarter.Third,
}


def is_close_game(game: Game) -> bool:
    # Full time (100) is excluded: the final result goes out as EndOfGame instead.
    if not CLOSE_GAME_COMPLETION_THRESHOLD < game.complete < 100:
        return False
    return abs(game.home_score - game.away_score) <= CLOSE_GAME_SCORE_THRESHOLD


def maybe_notification(game: Game) -> Notification | None:
    """Decide whether the given snapshot warrants a notification.

    Close-game alerts win over a break marker reported at the same time.
    """

    if is_close_game(game):
        return Notification(
            kind=NotificationKind.CloseGame,
            home_team=game.home_team,
            away_team=game.away_team,
            home_score=game.home_score,
            away_score=game.away_score,
            time_str=game.timestr,
        )

    if game.timestr is None:
        return None

    quarter = _BREAK_QUARTERS.get(game.timestr)
    if quarter is not None:
        return Notification.end_of_quarter(
            quarter=quarter,
            home_team=game.home_team,
            away_team=game.away_team,
            home_score=game.home_score,
            away_score=game.away_score,
        )

    if game.timestr == TimeStr.EndOfGame:
        return Notification(
            kind=NotificationKind.EndOfGame,
            home_team=game.home_team,
            away_team=game.away_team,
            home_score=game.home_score,
            away_score=game.away_score,
        )

    return None
