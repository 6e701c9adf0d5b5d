"""Errors raised by the room core.

All of them are recoverable and meant to be turned into a response by
the caller; main.py maps each family onto an HTTP status.
"""


class GameChooserException(Exception):
    """Base class for every room/vote/selection error."""
    pass


# ---- not found ----

class NotFound(GameChooserException):
    pass


class RoomNotFound(NotFound):
    def __init__(self, room_ref):
        self.room_ref = room_ref
        super().__init__(f"Room {room_ref} not found")


class ParticipantNotFound(NotFound):
    def __init__(self, participant_id):
        self.participant_id = participant_id
        super().__init__(f"Participant {participant_id} not found")


class GameNotFound(NotFound):
    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__(f"Game {game_id} not found")


# ---- bad input ----

class InvalidInput(GameChooserException):
    pass


class InvalidVoteType(InvalidInput):
    def __init__(self, vote_type):
        self.vote_type = vote_type
        super().__init__(f"Unknown vote type {vote_type!r}")


# ---- permissions ----

class Forbidden(GameChooserException):
    pass


class NotHost(Forbidden):
    """Only the room's host may start the selection."""

    def __init__(self, participant_id):
        self.participant_id = participant_id
        super().__init__(f"Participant {participant_id} is not the host")


# ---- selection ----

class NoCandidates(GameChooserException):
    """Selection was attempted on a room without games."""

    def __init__(self, room_ref):
        self.room_ref = room_ref
        super().__init__(f"Room {room_ref} has no games to choose from")
