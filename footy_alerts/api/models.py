from __future__ import annotations

from enum import IntEnum, StrEnum

from pydantic import AliasChoices, BaseModel, Field


class Team(IntEnum):
    """AFL teams, keyed by Squiggle team id."""

    Adelaide = 1
    Brisbane = 2
    Carlton = 3
    Collingwood = 4
    Essendon = 5
    Fremantle = 6
    Geelong = 7
    GoldCoast = 8
    GreaterWesternSydney = 9
    Hawthorn = 10
    Melbourne = 11
    NorthMelbourne = 12
    PortAdelaide = 13
    Richmond = 14
    StKilda = 15
    Sydney = 16
    WestCoast = 17
    WesternBulldogs = 18

    @property
    def display_name(self) -> str:
        return _TEAM_DISPLAY_NAMES[self]

    def __str__(self) -> str:
        return self.display_name


_TEAM_DISPLAY_NAMES: dict[Team, str] = {
    Team.Adelaide: "Adelaide",
    Team.Brisbane: "Brisbane Lions",
    Team.Carlton: "Carlton",
    Team.Collingwood: "Collingwood",
    Team.Essendon: "Essendon",
    Team.Fremantle: "Fremantle",
    Team.Geelong: "Geelong",
    Team.GoldCoast: "Gold Coast",
    Team.GreaterWesternSydney: "Greater Western Sydney",
    Team.Hawthorn: "Hawthorn",
    Team.Melbourne: "Melbourne",
    Team.NorthMelbourne: "North Melbourne",
    Team.PortAdelaide: "Port Adelaide",
    Team.Richmond: "Richmond",
    Team.StKilda: "St Kilda",
    Team.Sydney: "Sydney",
    Team.WestCoast: "West Coast",
    Team.WesternBulldogs: "Western Bulldogs",
}


class TimeStr(StrEnum):
    """Phase markers Squiggle reports at breaks.

    Anything else (e.g. "Q4  4:36") is an in-progress clock and is kept as a plain string.
    """

    EndOfFirstQuarter = "1/4 Time"
    EndOfSecondQuarter = "2/4 Time"
    EndOfThirdQuarter = "3/4 Time"
    EndOfGame = "Full Time"


class Game(BaseModel):
    """Best-known snapshot of one fixture.

    Accepts both Squiggle REST payloads (hteamid/hscore/...) and our own stored JSON.
    """

    id: int
    round: int
    year: int
    home_team: Team = Field(validation_alias=AliasChoices("home_team", "hteamid"))
    away_team: Team = Field(validation_alias=AliasChoices("away_team", "ateamid"))
    home_score: int = Field(0, ge=0, validation_alias=AliasChoices("home_score", "hscore"))
    away_score: int = Field(0, ge=0, validation_alias=AliasChoices("away_score", "ascore"))
    complete: int = Field(0, ge=0, le=100)
    winner: Team | None = Field(None, validation_alias=AliasChoices("winnerteamid", "winner"))

    # Enum first so break markers don't collapse into plain strings.
    timestr: TimeStr | str | None = Field(None, union_mode="left_to_right")

    date: str | None = None
    tz: str | None = None


class Subscription(BaseModel):
    endpoint: str
    p256dh: str
    auth: str

    # None => every team.
    team: Team | None = None

    close_games: bool = False
    final_scores: bool = False
    quarter_scores: bool = False

    # Flipped off when the push service reports the endpoint gone; never hard-deleted.
    active: bool = True


class WebPushKeys(BaseModel):
    p256dh: str
    auth: str


class WebPushInfo(BaseModel):
    endpoint: str = Field(..., min_length=1)
    keys: WebPushKeys


class SubscriptionRequest(BaseModel):
    team: Team | None = None
    close_games: bool = False
    final_scores: bool = False
    quarter_scores: bool = False
    web_push: WebPushInfo

    def to_subscription(self) -> Subscription:
        return Subscription(
            endpoint=self.web_push.endpoint,
            p256dh=self.web_push.keys.p256dh,
            auth=self.web_push.keys.auth,
            team=self.team,
            close_games=self.close_games,
            final_scores=self.final_scores,
            quarter_scores=self.quarter_scores,
        )


class SubscriptionOptions(BaseModel):
    team: Team | None
    close_games: bool
    final_scores: bool
    quarter_scores: bool

    @classmethod
    def from_subscription(cls, sub: Subscription) -> "SubscriptionOptions":
        return cls(
            team=sub.team,
            close_games=sub.close_games,
            final_scores=sub.final_scores,
            quarter_scores=sub.quarter_scores,
        )


class GameListResponse(BaseModel):
    games: list[Game]
