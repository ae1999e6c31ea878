import heapq
import itertools
import logging
import threading
import time

logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellable reference to one armed timer.

    Cancelling is best-effort: callbacks still re-validate room state when
    they fire.
    """

    def __init__(self, name: str = ''):
        self.name = name
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def __repr__(self):
        state = 'cancelled' if self.cancelled else 'armed'
        return f'<TimerHandle {self.name or "?"} {state}>'


class BackgroundScheduler:
    """Runs timers as Socket.IO background tasks.

    Uses ``socketio.start_background_task`` and ``socketio.sleep`` so the
    timers cooperate with whichever async mode Flask-SocketIO picked.
    """

    def __init__(self, socketio):
        self.socketio = socketio

    def time(self) -> float:
        return time.time()

    def call_later(self, delay: float, callback, *args, name: str = '') -> TimerHandle:
        handle = TimerHandle(name)

        def _worker():
            self.socketio.sleep(delay)
            if handle.cancelled:
                logger.debug(f"[timer-abort] name={name} cancelled")
                return
            logger.debug(f"[timer-fire] name={name}")
            callback(*args)

        logger.debug(f"[timer-set] name={name} delay={delay}s")
        self.socketio.start_background_task(_worker)
        return handle

    def call_every(self, interval: float, callback, *args, name: str = '') -> TimerHandle:
        handle = TimerHandle(name)

        def _worker():
            while True:
                self.socketio.sleep(interval)
                if handle.cancelled:
                    return
                try:
                    callback(*args)
                except Exception:
                    logger.exception(f"[timer-error] name={name}")

        logger.debug(f"[timer-set] name={name} every={interval}s")
        self.socketio.start_background_task(_worker)
        return handle


class ManualScheduler:
    """Virtual-clock scheduler: timers fire only when ``advance`` is called.

    Used when the app runs with TESTING so flows that wait minutes can be
    exercised instantly and deterministically.
    """

    def __init__(self, start: float = 0.0):
        self.now = start
        self._queue = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback, *args, name: str = '') -> TimerHandle:
        handle = TimerHandle(name)
        heapq.heappush(self._queue, (self.now + delay, next(self._seq), handle, callback, args, None))
        return handle

    def call_every(self, interval: float, callback, *args, name: str = '') -> TimerHandle:
        handle = TimerHandle(name)
        heapq.heappush(self._queue, (self.now + interval, next(self._seq), handle, callback, args, interval))
        return handle

    def pending(self):
        return [entry[2] for entry in sorted(self._queue) if not entry[2].cancelled]

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due timers in order. Returns fired count."""
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback, args, interval = heapq.heappop(self._queue)
            self.now = due
            if handle.cancelled:
                continue
            if interval is not None:
                heapq.heappush(self._queue, (due + interval, next(self._seq), handle, callback, args, interval))
            callback(*args)
            fired += 1
        self.now = target
        return fired
