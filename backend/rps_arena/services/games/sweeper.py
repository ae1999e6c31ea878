import logging
import threading
from collections import defaultdict

logger = logging.getLogger(__name__)


class LifecycleSweeper:
    """Reclaims abandoned rooms.

    Two independent mechanisms:
    - grace period: armed on every disconnect; when it fires the room is
      dropped if no human in it is connected any more.
    - TTL sweep: recurring; drops every room older than ``ttl`` no matter
      who is connected.

    Both re-check the room when they fire, inside the room's mailbox.
    """

    def __init__(self, registry, scheduler, grace_period: float = 300.0,
                 ttl: float = 7200.0, sweep_interval: float = 3600.0):
        self.registry = registry
        self.scheduler = scheduler
        self.grace_period = grace_period
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self._grace_timers = defaultdict(list)
        self._lock = threading.Lock()
        self._sweep_handle = None

    def start(self) -> None:
        if self._sweep_handle is None:
            self._sweep_handle = self.scheduler.call_every(
                self.sweep_interval, self.sweep_stale, name='ttl-sweep'
            )
            logger.info(f"[sweeper-start] interval={self.sweep_interval}s ttl={self.ttl}s")

    # ---- grace period ----

    def arm_grace_period(self, room_id: str):
        handle = self.scheduler.call_later(
            self.grace_period, self._grace_expired, room_id, name=f'grace:{room_id}'
        )
        with self._lock:
            self._grace_timers[room_id].append(handle)
        logger.debug(f"[grace-armed] room={room_id} delay={self.grace_period}s")
        return handle

    def _grace_expired(self, room_id: str) -> None:
        room = self.registry.get(room_id)
        if room is None:
            self._drop_grace_timers(room_id)
            return
        room.mailbox.post(self._evict_if_abandoned, room)

    def _evict_if_abandoned(self, room) -> None:
        if room.closed:
            return
        if room.has_connected_humans():
            logger.debug(f"[grace-keep] room={room.id} still has connected players")
            return
        self._evict(room, 'grace')

    # ---- TTL ----

    def sweep_stale(self, now=None):
        """Drop rooms older than the TTL. Returns the ids scheduled for removal."""
        if now is None:
            now = self.scheduler.time()
        stale = [room for room in self.registry.rooms() if room.age(now) > self.ttl]
        for room in stale:
            room.mailbox.post(self._evict, room, 'ttl')
        if stale:
            logger.info(f"[ttl-sweep] stale={[room.id for room in stale]}")
        return [room.id for room in stale]

    # ---- shared ----

    def _evict(self, room, reason: str) -> None:
        if room.closed:
            return
        self.registry.remove(room.id)
        self._drop_grace_timers(room.id)
        logger.info(f"[evict] room={room.id} reason={reason}")

    def _drop_grace_timers(self, room_id: str) -> None:
        with self._lock:
            handles = self._grace_timers.pop(room_id, [])
        for handle in handles:
            handle.cancel()
