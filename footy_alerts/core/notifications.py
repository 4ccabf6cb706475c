from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

from footy_alerts.api.models import Team, TimeStr


class NotificationKind(IntEnum):
    """Ledger key for "this kind was already sent for this game"."""

    EndOfFirstQuarter = 0
    EndOfSecondQuarter = 1
    EndOfThirdQuarter = 2
    EndOfGame = 3
    CloseGame = 4

    @property
    def is_quarter_notification(self) -> bool:
        # Full time counts as the last quarter for quarter-score subscribers.
        return self is not NotificationKind.CloseGame

    @property
    def is_full_game_notification(self) -> bool:
        return self is NotificationKind.EndOfGame

    @property
    def is_close_game_notification(self) -> bool:
        return self is NotificationKind.CloseGame


class Quarter(Enum):
    First = "Q1"
    Second = "Q2"
    Third = "Q3"


_QUARTER_KINDS: dict[Quarter, NotificationKind] = {
    Quarter.First: NotificationKind.EndOfFirstQuarter,
    Quarter.Second: NotificationKind.EndOfSecondQuarter,
    Quarter.Third: NotificationKind.EndOfThirdQuarter,
}


@dataclass(frozen=True, slots=True)
class Notification:
    """A due notification plus everything needed to render it."""

    kind: NotificationKind
    home_team: Team
    away_team: Team
    home_score: int
    away_score: int

    # Only set for quarter-end notifications.
    quarter: Quarter | None = None
    # Clock at the time of a close-game alert, if known.
    time_str: TimeStr | str | None = None

    @staticmethod
    def end_of_quarter(
        *, quarter: Quarter, home_team: Team, away_team: Team, home_score: int, away_score: int
    ) -> "Notification":
        return Notification(
            kind=_QUARTER_KINDS[quarter],
            home_team=home_team,
            away_team=away_team,
            home_score=home_score,
            away_score=away_score,
            quarter=quarter,
        )

    def to_text(self) -> str:
        score = f"{self.home_team} {self.home_score} - {self.away_team} {self.away_score}"

        if self.kind is NotificationKind.CloseGame:
            if self.time_str:
                return f"Close game ({self.time_str}): {score}"
            return f"Close game: {score}"

        if self.kind is NotificationKind.EndOfGame:
            return f"End of game: {score}"

        quarter = self.quarter.value if self.quarter is not None else self.kind.name
        return f"End of {quarter}: {score}"
