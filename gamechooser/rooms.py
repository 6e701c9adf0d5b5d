import logging
import secrets
import threading
import uuid
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from .exceptions import InvalidInput, RoomNotFound
from .models import Game, GameIn, Participant, Vote

logger = logging.getLogger(__name__)


def new_room_code(num_bytes: int = 3) -> str:
    """Short uppercase hex join code (3 bytes -> 6 characters)."""
    return secrets.token_hex(num_bytes).upper()


def new_id() -> str:
    return str(uuid.uuid4())


def parse_seed(entry) -> GameIn:
    """Read a seed game from a GameIn or a ``{"title", "description"}`` mapping."""
    try:
        return GameIn.model_validate(entry)
    except ValidationError as e:
        raise InvalidInput(f"Invalid game entry {entry!r}") from e


class Room:
    """In-memory representation of a voting room.

    The room owns its games, participants and vote log. Anything that
    reads and then writes more than one of these should hold ``lock``.
    """

    def __init__(self, room_id: str, join_code: str, games: Optional[List[Game]] = None):
        self.id = room_id
        self.join_code = join_code
        self.games: List[Game] = list(games or [])
        self.participants: List[Participant] = []
        self.votes: List[Vote] = []
        self.host_id: Optional[str] = None
        self.selected_game_id: Optional[str] = None
        self.lock = threading.RLock()

    def find_participant(self, participant_id: str) -> Optional[Participant]:
        return next((p for p in self.participants if p.id == participant_id), None)

    def find_game(self, game_id: str) -> Optional[Game]:
        return next((g for g in self.games if g.id == game_id), None)


class RoomRepository(ABC):
    """Storage for rooms.

    Lookups return None on a miss, mutators raise RoomNotFound. Vote
    policy (category supersession) is not applied here: ``add_vote`` is a
    raw append.
    """

    @abstractmethod
    def put(self, room: Room) -> Room:
        ...

    @abstractmethod
    def get(self, room_id: str) -> Optional[Room]:
        ...

    @abstractmethod
    def get_by_join_code(self, code: str) -> Optional[Room]:
        ...

    @abstractmethod
    def list_rooms(self) -> List[Room]:
        ...

    @abstractmethod
    def code_in_use(self, code: str) -> bool:
        ...

    @abstractmethod
    def create_room(self, seed_games: Iterable = ()) -> Room:
        ...

    def _require(self, room_id: str) -> Room:
        room = self.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    def add_participant(self, room_id: str, participant: Participant) -> Participant:
        room = self._require(room_id)
        with room.lock:
            room.participants.append(participant)
        return participant

    def add_game(self, room_id: str, game: Game) -> Game:
        room = self._require(room_id)
        with room.lock:
            room.games.append(game)
        return game

    def add_vote(self, room_id: str, vote: Vote) -> Vote:
        room = self._require(room_id)
        with room.lock:
            room.votes.append(vote)
        return vote

    def remove_votes(self, room_id: str, vote_ids: Iterable[str]) -> int:
        """Drop the given votes from the log, returning how many went."""
        room = self._require(room_id)
        doomed = set(vote_ids)
        with room.lock:
            before = len(room.votes)
            room.votes[:] = [v for v in room.votes if v.id not in doomed]
            return before - len(room.votes)

    def replace_vote(self, room_id: str, vote: Vote) -> Vote:
        """Swap the logged vote with the same id for ``vote``, keeping its position."""
        room = self._require(room_id)
        with room.lock:
            for index, existing in enumerate(room.votes):
                if existing.id == vote.id:
                    room.votes[index] = vote
                    return vote
        raise KeyError(vote.id)


class InMemoryRoomRepository(RoomRepository):
    """Thread-safe dict-backed registry, indexed by room id and join code."""

    def __init__(self, code_bytes: int = 3) -> None:
        self._by_id: Dict[str, Room] = {}
        self._by_code: Dict[str, Room] = {}
        self._code_bytes = code_bytes
        self._lock = threading.Lock()

    def put(self, room: Room) -> Room:
        with self._lock:
            room.join_code = room.join_code.upper()
            self._by_id[room.id] = room
            self._by_code[room.join_code] = room
        return room

    def get(self, room_id: str) -> Optional[Room]:
        return self._by_id.get(room_id)

    def get_by_join_code(self, code: str) -> Optional[Room]:
        return self._by_code.get(code.strip().upper())

    def list_rooms(self) -> List[Room]:
        with self._lock:
            return list(self._by_id.values())

    def code_in_use(self, code: str) -> bool:
        return code.upper() in self._by_code

    def create_room(self, seed_games: Iterable = ()) -> Room:
        games = []
        for entry in seed_games:
            seed = parse_seed(entry)
            games.append(Game(id=new_id(), title=seed.title, description=seed.description))

        with self._lock:
            code = new_room_code(self._code_bytes)
            while code in self._by_code:
                logger.warning(f"Join code collision detected, regenerating: {code}")
                code = new_room_code(self._code_bytes)
            room = Room(new_id(), code, games)
            self._by_id[room.id] = room
            self._by_code[code] = room

        logger.info(f"Created room {room.id} with code {code} and {len(games)} games")
        return room
