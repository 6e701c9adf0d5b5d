from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Record(CamelModel):
    model_config = ConfigDict(frozen=True)


# ---- domain records ----

class VoteValue(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    RANDOM = "random"


class Game(Record):
    id: str
    title: str
    description: Optional[str] = None


class Participant(Record):
    id: str
    name: str


class Vote(Record):
    id: str
    participant_id: str
    game_id: str
    value: VoteValue


class VoteCounts(Record):
    positive: int = 0
    negative: int = 0
    random: int = 0


# ---- requests ----

class GameIn(CamelModel):
    title: str
    description: Optional[str] = None


class RoomCreate(CamelModel):
    host_name: Optional[str] = None
    games: List[GameIn] = Field(default_factory=list)


class RoomJoin(CamelModel):
    join_code: str
    name: Optional[str] = None


class VoteIn(CamelModel):
    participant_id: str
    game_id: str
    type: str


class StartIn(CamelModel):
    participant_id: str


# ---- responses ----

class RoomCreated(CamelModel):
    room_id: str
    join_code: str
    host_id: str
    games: List[Game]


class RoomJoined(CamelModel):
    room_id: str
    join_code: str
    participant: Participant


class RoomSnapshot(CamelModel):
    room_id: str
    join_code: str
    host_id: Optional[str] = None
    games: List[Game]
    participants: List[Participant]
    votes: Dict[str, VoteCounts]
    selected_game_id: Optional[str] = None


class TallyOut(CamelModel):
    votes: Dict[str, VoteCounts]


class SelectionOut(CamelModel):
    game: Game
    votes: Dict[str, VoteCounts]
