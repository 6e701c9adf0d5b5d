"""
RoomManager: the operations a room goes through

1. create a room (seed games + host participant)
2. join / add games / vote
3. read a snapshot
4. start the selection (host only)

Rooms are addressed by join code, the way clients know them. Every
step that reads then writes runs under the room's lock.
"""
import logging
import random
from typing import Dict, Iterable, Optional, Tuple

from .config import settings
from .exceptions import InvalidInput, NoCandidates, NotHost, RoomNotFound
from .models import Game, GameIn, Participant, RoomSnapshot, VoteCounts
from .rooms import InMemoryRoomRepository, Room, RoomRepository, new_id, parse_seed
from .selection import RandomSource, select_game
from .voting import cast_vote, tally

logger = logging.getLogger(__name__)


def _clean_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not title:
        raise InvalidInput("Game title is required")
    return title


class RoomManager:
    """Room lifecycle over a RoomRepository."""

    def __init__(
        self,
        repository: Optional[RoomRepository] = None,
        rng: RandomSource = random.random,
    ) -> None:
        self.repository = repository or InMemoryRoomRepository(settings.room_code_bytes)
        self.rng = rng

    def get_room(self, room_id: str) -> Room:
        room = self.repository.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    def get_room_by_code(self, join_code: str) -> Room:
        room = self.repository.get_by_join_code(join_code)
        if room is None:
            raise RoomNotFound(f"with code {join_code}")
        return room

    def create_room(self, games: Iterable = (), host_name: Optional[str] = None) -> Room:
        """
        Create a room seeded with ``games`` and register its host.

        ``games`` holds GameIn models or ``{"title", "description"}`` dicts.
        The host participant is returned through ``room.host_id``.
        """
        seeds = []
        for entry in games:
            seed = parse_seed(entry)
            seeds.append(GameIn(title=_clean_title(seed.title), description=seed.description))

        room = self.repository.create_room(seeds)
        host_name = (host_name or "").strip() or settings.default_host_name
        with room.lock:
            host = self.repository.add_participant(room.id, Participant(id=new_id(), name=host_name))
            room.host_id = host.id

        logger.info(f"Host {host.id} ({host_name}) opened room {room.join_code}")
        return room

    def join_room(self, join_code: str, name: Optional[str] = None) -> Tuple[Room, Participant]:
        room = self.get_room_by_code(join_code)
        name = (name or "").strip() or settings.default_player_name
        participant = self.repository.add_participant(
            room.id, Participant(id=new_id(), name=name)
        )
        logger.info(f"Participant {participant.id} ({name}) joined room {room.join_code}")
        return room, participant

    def add_game(self, join_code: str, title: str, description: Optional[str] = None) -> Game:
        room = self.get_room_by_code(join_code)
        game = self.repository.add_game(
            room.id, Game(id=new_id(), title=_clean_title(title), description=description)
        )
        logger.info(f"Game {game.id} ({game.title!r}) added to room {room.join_code}")
        return game

    def cast_vote(
        self, join_code: str, participant_id: str, game_id: str, vote_type: str
    ) -> Dict[str, VoteCounts]:
        room = self.get_room_by_code(join_code)
        return cast_vote(self.repository, room, participant_id, game_id, vote_type)

    def snapshot(self, join_code: str) -> RoomSnapshot:
        room = self.get_room_by_code(join_code)
        with room.lock:
            return RoomSnapshot(
                room_id=room.id,
                join_code=room.join_code,
                host_id=room.host_id,
                games=list(room.games),
                participants=list(room.participants),
                votes=tally(room),
                selected_game_id=room.selected_game_id,
            )

    def start_selection(
        self, join_code: str, participant_id: str
    ) -> Tuple[Game, Dict[str, VoteCounts]]:
        """
        Pick the game to play.

        Raises:
            RoomNotFound: unknown join code
            NotHost: requester is not the room's host
            NoCandidates: the room has no games
        """
        room = self.get_room_by_code(join_code)
        if participant_id != room.host_id:
            logger.warning(f"Participant {participant_id} tried to start room {room.join_code}")
            raise NotHost(participant_id)

        with room.lock:
            game = select_game(self.repository, room, self.rng)
            if game is None:
                raise NoCandidates(room.join_code)
            return game, tally(room)
