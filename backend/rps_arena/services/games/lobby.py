import logging
import threading

from rps_arena.exceptions import InvalidMove, InvalidPlayerName, RoomFull, UnboundConnection
from .computer import make_provider
from .registry import ConnectionMapper, RoomRegistry
from .session import GameSession
from .sweeper import LifecycleSweeper

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 20


def clean_player_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidPlayerName()
    return name.strip()[:MAX_NAME_LENGTH]


class Lobby:
    """Entry point for the transport layer.

    Looks up the room a request belongs to and posts the work into that
    room's mailbox. Only the originating connection ever hears about an
    error.
    """

    def __init__(self, registry: RoomRegistry, mapper: ConnectionMapper,
                 session: GameSession, sweeper: LifecycleSweeper, provider_factory=None):
        self.registry = registry
        self.mapper = mapper
        self.session = session
        self.sweeper = sweeper
        self.provider_factory = provider_factory or make_provider
        # sid -> rooms with a queued join for it, and sids that left meanwhile
        self._pending_joins = {}
        self._departed = set()
        self._lock = threading.Lock()

    @property
    def scheduler(self):
        return self.session.scheduler

    # ---- joining ----

    def join_room(self, sid: str, room_id, player_name) -> None:
        """Seat ``sid`` in ``room_id``, or in a brand new room if it is unknown."""
        try:
            name = clean_player_name(player_name)
        except InvalidPlayerName as exc:
            self.session.send(sid, 'room-error', {'message': exc.message})
            return

        room = self.registry.get(room_id) if room_id else None
        if room is None:
            if room_id:
                logger.debug(f"[join] room={room_id!r} unknown, creating a new one")
            room = self.registry.create_room()
        self._queue_join(room, self._join, sid, name)

    def _queue_join(self, room, command, sid, name) -> None:
        with self._lock:
            self._pending_joins.setdefault(sid, []).append(room)
        room.mailbox.post(self._run_join, room, command, sid, name)

    def _run_join(self, room, command, sid, name) -> None:
        try:
            with self._lock:
                departed = sid in self._departed
            if departed:
                logger.debug(f"[join-skip] room={room.id} sid={sid} disconnected before seating")
                if not room.slots:
                    self.sweeper.arm_grace_period(room.id)
                return
            command(room, sid, name)
        finally:
            with self._lock:
                rooms = self._pending_joins.get(sid, [])
                if room in rooms:
                    rooms.remove(room)
                if not rooms:
                    self._pending_joins.pop(sid, None)
                    self._departed.discard(sid)

    def _join(self, room, sid, name) -> None:
        if room.closed:
            # Evicted between lookup and join
            self._queue_join(self.registry.create_room(), self._join, sid, name)
            return
        current = self.mapper.resolve(sid)
        if current is not None and current[0] == room.id:
            logger.debug(f"[join-repeat] room={room.id} sid={sid} already seated")
            self._send_joined(room, sid, current[1])
            return
        try:
            slot = self.session.seat(room, sid, name)
        except RoomFull as exc:
            logger.info(f"[join-reject] room={room.id} sid={sid} reason=full")
            self.session.send(sid, 'room-error', {'message': exc.message})
            return
        self._release(sid)
        self._welcome(room, sid, slot)

    def _send_joined(self, room, sid, slot) -> None:
        self.session.send(sid, 'room-joined', {
            'roomId': room.id,
            'playerId': slot,
            'room': room.to_dict(),
        })

    def _welcome(self, room, sid, slot) -> None:
        self.mapper.bind(sid, room.id, slot)
        self._send_joined(room, sid, slot)
        self.session.broadcast(room, 'player-joined', {
            'players': room.players_dict(),
            'gameState': room.game_state(),
        })
        self.session.start_if_ready(room)

    def play_with_computer(self, sid: str, player_name) -> None:
        try:
            name = clean_player_name(player_name)
        except InvalidPlayerName as exc:
            self.session.send(sid, 'room-error', {'message': exc.message})
            return
        room = self.registry.create_room()
        self._queue_join(room, self._join_computer_game, sid, name)

    def _join_computer_game(self, room, sid, name) -> None:
        if room.closed:
            return
        slot = self.session.seat(room, sid, name)
        self.session.seat_computer(room, self.provider_factory())
        self._release(sid)
        self._welcome(room, sid, slot)

    # ---- in-game requests ----

    def make_choice(self, sid: str, choice) -> None:
        room, slot = self._seat_of(sid)
        if room is not None:
            room.mailbox.post(self._choose, room, slot, choice)

    def _choose(self, room, slot, choice) -> None:
        if room.closed:
            return
        try:
            self.session.submit_choice(room, slot, choice)
        except InvalidMove as exc:
            logger.debug(f"[choice-invalid] room={room.id} slot={slot} move={exc.move!r}")

    def new_game(self, sid: str) -> None:
        room, _ = self._seat_of(sid)
        if room is not None:
            room.mailbox.post(self._new_game, room)

    def _new_game(self, room) -> None:
        if not room.closed:
            self.session.new_game(room)

    def _seat_of(self, sid: str):
        try:
            room_id, slot = self.mapper.require(sid)
        except UnboundConnection:
            logger.debug(f"[unbound] sid={sid} request ignored")
            return None, None
        return self.registry.get(room_id), slot

    # ---- departures ----

    def disconnect(self, sid: str) -> None:
        with self._lock:
            pending = list(self._pending_joins.get(sid, []))
            if pending:
                self._departed.add(sid)
        if not pending:
            self._release(sid)
            return
        # A queued join may still bind this sid; settle behind it
        for room in pending:
            room.mailbox.post(self._release, sid)

    def _release(self, sid: str) -> None:
        """Unbind ``sid`` and mark it gone in the room it was seated in."""
        entry = self.mapper.unbind(sid)
        if entry is None:
            return
        room_id, slot = entry
        room = self.registry.get(room_id)
        if room is None:
            return
        room.mailbox.post(self._depart, room, slot)
        self.sweeper.arm_grace_period(room_id)

    def _depart(self, room, slot) -> None:
        if not room.closed:
            self.session.mark_disconnected(room, slot)

    # ---- status ----

    def room_status(self, room_id):
        return self.registry.require(room_id).status_dict()

    def stats(self):
        return {
            'activeRooms': len(self.registry),
            'activePlayers': len(self.mapper),
        }


def create_lobby(config, notifier, scheduler) -> Lobby:
    """Wire a Lobby from a Flask config mapping."""
    registry = RoomRegistry(clock=scheduler.time, max_rounds=int(config.get('MAX_ROUNDS', 5)))
    mapper = ConnectionMapper()
    session = GameSession(
        notifier,
        scheduler,
        next_round_delay=float(config.get('NEXT_ROUND_DELAY_SEC', 3)),
    )
    sweeper = LifecycleSweeper(
        registry,
        scheduler,
        grace_period=float(config.get('GRACE_PERIOD_SEC', 300)),
        ttl=float(config.get('ROOM_TTL_SEC', 7200)),
        sweep_interval=float(config.get('SWEEP_INTERVAL_SEC', 3600)),
    )
    strategy = config.get('COMPUTER_STRATEGY', 'counter')
    make_provider(strategy)  # fail fast on a bad strategy name
    return Lobby(registry, mapper, session, sweeper,
                 provider_factory=lambda: make_provider(strategy))
