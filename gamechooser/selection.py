"""Choosing the winning game.

Order of play:

1. every ``random`` vote is resolved once into a ``positive`` vote on a
   uniformly drawn game
2. majority pass: the first game (room order) whose positive votes exceed
   half the participants and whose net score is above zero wins
3. otherwise the games with the best net score, and among those the most
   positive votes, form the candidate set and one is drawn at random

``rng`` is any zero-argument callable returning a float in [0, 1), e.g.
``random.random``; tests pass fixed values to pin the draws.
"""
import logging
import random
from typing import Callable, List, Optional, Sequence, TypeVar

from .models import Game, VoteValue
from .rooms import Room, RoomRepository
from .voting import tally

logger = logging.getLogger(__name__)

RandomSource = Callable[[], float]
T = TypeVar("T")


def pick(items: Sequence[T], rng: RandomSource = random.random) -> T:
    """Uniform draw from a non-empty sequence using ``rng``."""
    index = int(rng() * len(items))
    # guard against sources that return exactly 1.0
    return items[min(index, len(items) - 1)]


def resolve_random_votes(
    repository: RoomRepository, room: Room, rng: RandomSource = random.random
) -> int:
    """Turn each pending random vote into a positive vote on a drawn game.

    Mutates the vote log; already resolved votes are no longer random and
    are left alone on later calls. Returns the number of votes resolved.
    """
    with room.lock:
        if not room.games:
            return 0
        pending = [v for v in room.votes if v.value == VoteValue.RANDOM]
        for vote in pending:
            game = pick(room.games, rng)
            repository.replace_vote(
                room.id,
                vote.model_copy(update={"game_id": game.id, "value": VoteValue.POSITIVE}),
            )
            logger.debug(f"Random vote {vote.id} in room {room.join_code} resolved to {game.id}")
    return len(pending)


def select_game(
    repository: RoomRepository, room: Room, rng: RandomSource = random.random
) -> Optional[Game]:
    """Resolve random votes and pick the winner, or None if there are no games.

    The winner is stored as ``room.selected_game_id``.
    """
    with room.lock:
        resolve_random_votes(repository, room, rng)
        if not room.games:
            return None

        counts = tally(room)
        half = len(room.participants) / 2

        winner = None
        for game in room.games:
            c = counts[game.id]
            if c.positive > half and c.positive - c.negative > 0:
                winner = game
                logger.info(f"Room {room.join_code}: {game.title!r} wins by majority")
                break

        if winner is None:
            best_net = max(counts[g.id].positive - counts[g.id].negative for g in room.games)
            best_positive = max(
                counts[g.id].positive
                for g in room.games
                if counts[g.id].positive - counts[g.id].negative == best_net
            )
            candidates: List[Game] = [
                g for g in room.games
                if counts[g.id].positive - counts[g.id].negative == best_net
                and counts[g.id].positive == best_positive
            ]
            winner = pick(candidates, rng)
            logger.info(
                f"Room {room.join_code}: {winner.title!r} drawn from "
                f"{len(candidates)} tied candidates (net {best_net}, positive {best_positive})"
            )

        room.selected_game_id = winner.id
        return winner
