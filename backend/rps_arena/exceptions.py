"""Game errors raised by the room services.

The Socket.IO layer turns these into per-connection replies; nothing here is
ever broadcast to a whole room.
"""


class GameError(Exception):
    """Base class for all recoverable game errors."""
    message = 'Game error'

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class RoomFull(GameError):
    message = 'Room is full!'

    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__()


class RoomNotFound(GameError):
    message = 'Room not found'

    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__()


class InvalidMove(GameError):
    """Submitted move is not rock, paper or scissors."""

    def __init__(self, move):
        self.move = move
        super().__init__(f'Invalid move: {move!r}')


class InvalidPlayerName(GameError):
    message = 'Player name is required'


class UnboundConnection(GameError):
    """Connection is not seated in any room."""

    def __init__(self, sid):
        self.sid = sid
        super().__init__(f'Connection {sid} is not in a room')
