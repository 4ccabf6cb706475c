from __future__ import annotations

import logging
from typing import Annotated, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from footy_alerts.api.models import Team, TimeStr

logger = logging.getLogger(__name__)

TimeStrField = Annotated[TimeStr | str, Field(union_mode="left_to_right")]


class _StreamModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Score(_StreamModel):
    home_score: int = Field(alias="hscore", ge=0)
    away_score: int = Field(alias="ascore", ge=0)


class ScoreEvent(_StreamModel):
    """Sent when a goal or behind is kicked."""

    game_id: int = Field(alias="gameid")
    score_type: str = Field(alias="type")
    complete: int = Field(ge=0, le=100)
    score: Score
    timestr: TimeStrField


class GameEvent(_StreamModel):
    """Full game snapshot; Squiggle sends these at the end of a game."""

    id: int
    round: int
    home_team: Team = Field(alias="hteam")
    away_team: Team = Field(alias="ateam")
    complete: int = Field(ge=0, le=100)
    winner: Team | None = None
    home_score: int = Field(alias="hscore", ge=0)
    away_score: int = Field(alias="ascore", ge=0)
    timestr: TimeStrField | None = None

    @property
    def game_id(self) -> int:
        return self.id


class TimeStrEvent(_StreamModel):
    """Periodic clock update, including the break markers."""

    game_id: int = Field(alias="gameid")
    timestr: TimeStrField


class CompleteEvent(_StreamModel):
    """Periodic percentage-of-game-played update."""

    game_id: int = Field(alias="gameid")
    complete: int = Field(ge=0, le=100)


class WinnerEvent(_StreamModel):
    game_id: int = Field(alias="gameid")
    winner: Team


# Payloads are untagged: the most specific shapes must come first since a score
# payload also satisfies TimeStrEvent and CompleteEvent.
Event = Annotated[
    Union[ScoreEvent, GameEvent, TimeStrEvent, CompleteEvent, WinnerEvent],
    Field(union_mode="left_to_right"),
]

_EVENT_ADAPTER: TypeAdapter[Event] = TypeAdapter(Event)


def parse_event(raw: str) -> Event | None:
    """Parse one stream payload.

    Unrecognised payloads are dropped with a warning so they never reach the processor.
    """

    try:
        return _EVENT_ADAPTER.validate_json(raw)
    except ValidationError as e:
        logger.warning("Unable to deserialize event payload=%r error=%s", raw, e)
        return None
