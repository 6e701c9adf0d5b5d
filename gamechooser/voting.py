"""Vote tallying and the vote-acceptance policy.

A participant holds at most one standing vote per category. Only
``negative`` has a category of its own: ``positive`` and ``random`` share
one, so a "pick randomly" vote replaces an upvote (and vice versa) while
a downvote stands alongside either.
"""
import logging
from typing import Dict

from .exceptions import GameNotFound, InvalidVoteType, ParticipantNotFound
from .models import Vote, VoteCounts, VoteValue
from .rooms import Room, RoomRepository, new_id

logger = logging.getLogger(__name__)

VOTE_TYPES = {
    "up": VoteValue.POSITIVE,
    "down": VoteValue.NEGATIVE,
    "random_up": VoteValue.RANDOM,
}


def category(value: VoteValue) -> str:
    return "negative" if value == VoteValue.NEGATIVE else "positive"


def vote_value(vote_type: str) -> VoteValue:
    try:
        return VOTE_TYPES[vote_type]
    except KeyError:
        raise InvalidVoteType(vote_type) from None


def tally(room: Room) -> Dict[str, VoteCounts]:
    """Per-game vote counts, recomputed from the current vote log."""
    with room.lock:
        counts = {game.id: {value.value: 0 for value in VoteValue} for game in room.games}
        for vote in room.votes:
            if vote.game_id in counts:
                counts[vote.game_id][vote.value.value] += 1
    return {game_id: VoteCounts(**c) for game_id, c in counts.items()}


def cast_vote(
    repository: RoomRepository,
    room: Room,
    participant_id: str,
    game_id: str,
    vote_type: str,
) -> Dict[str, VoteCounts]:
    """Record a vote, superseding the participant's vote in the same category.

    Returns the room's tally after the vote is in.
    """
    value = vote_value(vote_type)

    with room.lock:
        if room.find_participant(participant_id) is None:
            raise ParticipantNotFound(participant_id)
        if room.find_game(game_id) is None:
            raise GameNotFound(game_id)

        superseded = [
            v.id for v in room.votes
            if v.participant_id == participant_id and category(v.value) == category(value)
        ]
        if superseded:
            repository.remove_votes(room.id, superseded)

        vote = Vote(id=new_id(), participant_id=participant_id, game_id=game_id, value=value)
        repository.add_vote(room.id, vote)

        logger.info(
            f"Participant {participant_id} voted {value.value} on game {game_id} "
            f"in room {room.join_code} (superseded {len(superseded)})"
        )
        return tally(room)
