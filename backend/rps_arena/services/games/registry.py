import logging
import random
import string
import threading
from typing import Optional, Tuple

from rps_arena.exceptions import RoomNotFound, UnboundConnection
from rps_arena.models import Room

logger = logging.getLogger(__name__)

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
ROOM_CODE_LENGTH = 6


def generate_room_code(rng=random, length=ROOM_CODE_LENGTH) -> str:
    """Generate a short, shareable room code."""
    return ''.join(rng.choices(ROOM_CODE_ALPHABET, k=length))


def normalize_room_code(room_id) -> Optional[str]:
    if not isinstance(room_id, str):
        return None
    room_id = room_id.strip().upper()
    return room_id or None


class RoomRegistry:
    """Owns every live Room, keyed by room code.

    ``store`` is any mutable mapping; tests hand in a plain dict to inspect
    the registry from the outside.
    """

    def __init__(self, store=None, rng=None, clock=None, max_rounds: int = 5):
        self._rooms = store if store is not None else {}
        self._rng = rng or random
        self._clock = clock
        self._lock = threading.Lock()
        self.max_rounds = max_rounds

    def create_room(self, max_rounds: Optional[int] = None) -> Room:
        created_at = self._clock() if self._clock else 0.0
        with self._lock:
            code = generate_room_code(self._rng)
            while code in self._rooms:
                logger.warning(f"[room-code-collision] code={code} regenerating")
                code = generate_room_code(self._rng)
            room = Room(code, max_rounds=max_rounds or self.max_rounds, created_at=created_at)
            self._rooms[code] = room
        logger.info(f"[room-create] room={code} max_rounds={room.max_rounds}")
        return room

    def get(self, room_id) -> Optional[Room]:
        code = normalize_room_code(room_id)
        if code is None:
            return None
        with self._lock:
            return self._rooms.get(code)

    def require(self, room_id) -> Room:
        room = self.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    def remove(self, room_id) -> Optional[Room]:
        """Drop a room and mark it closed. Returns the removed room, if any."""
        with self._lock:
            room = self._rooms.pop(room_id, None)
        if room is not None:
            room.closed = True
            if room.advance_timer is not None:
                room.advance_timer.cancel()
                room.advance_timer = None
            logger.info(f"[room-remove] room={room_id}")
        return room

    def rooms(self):
        with self._lock:
            return list(self._rooms.values())

    def __contains__(self, room_id):
        return self.get(room_id) is not None

    def __len__(self):
        with self._lock:
            return len(self._rooms)


class ConnectionMapper:
    """Connection sid -> (room_id, slot). Lookup only; never owns rooms."""

    def __init__(self, store=None):
        self._entries = store if store is not None else {}
        self._lock = threading.Lock()

    def bind(self, sid: str, room_id: str, slot: str) -> None:
        with self._lock:
            previous = self._entries.get(sid)
            self._entries[sid] = (room_id, slot)
        if previous is not None and previous != (room_id, slot):
            logger.debug(f"[mapper-rebind] sid={sid} from={previous} to={(room_id, slot)}")

    def resolve(self, sid: str) -> Optional[Tuple[str, str]]:
        with self._lock:
            return self._entries.get(sid)

    def require(self, sid: str) -> Tuple[str, str]:
        entry = self.resolve(sid)
        if entry is None:
            raise UnboundConnection(sid)
        return entry

    def unbind(self, sid: str) -> Optional[Tuple[str, str]]:
        with self._lock:
            return self._entries.pop(sid, None)

    def __len__(self):
        with self._lock:
            return len(self._entries)
