import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Optional

logger = logging.getLogger(__name__)

PLAYER1 = 'player1'
PLAYER2 = 'player2'
SLOTS = (PLAYER1, PLAYER2)

# Room phases
WAITING = 'waiting'            # fewer than two participants
CHOOSING = 'choosing'          # collecting choices for the current round
INTERMISSION = 'intermission'  # round resolved, next round scheduled
OVER = 'over'                  # final round resolved

COMPUTER_NAME = 'Computer'


class Mailbox:
    """Ordered command queue for one room.

    Commands are appended in arrival order and executed one at a time by
    whichever caller finds the mailbox idle, so a command never observes
    another command half-way through.
    """

    def __init__(self, name: str):
        self.name = name
        self._commands = deque()
        self._lock = threading.Lock()
        self._draining = False

    def post(self, command, *args) -> None:
        with self._lock:
            self._commands.append((command, args))
            if self._draining:
                return
            self._draining = True
        self._drain()

    def _drain(self) -> None:
        while True:
            with self._lock:
                if not self._commands:
                    self._draining = False
                    return
                command, args = self._commands.popleft()
            try:
                command(*args)
            except Exception:
                logger.exception(
                    f"[mailbox-error] room={self.name} command={getattr(command, '__name__', command)}"
                )


class Participant:
    def __init__(self, sid: Optional[str], name: str, is_computer: bool = False):
        self.sid = sid
        self.name = name
        self.is_computer = is_computer
        self.connected = True

    def to_dict(self):
        return {
            'name': self.name,
            'connected': self.connected,
            'isComputer': self.is_computer,
        }


@dataclass(frozen=True)
class RoundResult:
    round: int
    choices: Dict[str, str]
    winner: str
    scores: Dict[str, int] = field(default_factory=dict)

    def to_dict(self):
        return {
            'round': self.round,
            'choices': dict(self.choices),
            'winner': self.winner,
            'scores': dict(self.scores),
        }


class Room:
    def __init__(self, room_id: str, max_rounds: int = 5, created_at: float = 0.0):
        if max_rounds < 1:
            raise ValueError('max_rounds must be positive')
        self.id = room_id
        self.slots: Dict[str, Participant] = {}
        self.round = 1
        self.max_rounds = max_rounds
        self.scores: Dict[str, int] = {}
        self.pending_choices: Dict[str, str] = {}
        self.history = []
        self.started = False
        self.over = False
        self.phase = WAITING
        self.game_number = 1
        self.created_at = created_at
        # Set once the registry drops the room; queued commands then no-op
        self.closed = False
        self.advance_timer = None
        self.move_provider = None
        self.mailbox = Mailbox(room_id)

    @property
    def is_full(self) -> bool:
        return len(self.slots) >= len(SLOTS)

    @property
    def player_count(self) -> int:
        return len(self.slots)

    def next_free_slot(self) -> Optional[str]:
        for slot in SLOTS:
            if slot not in self.slots:
                return slot
        return None

    def humans(self):
        """(slot, participant) pairs for the human seats, in slot order."""
        return [(slot, p) for slot, p in self.slots.items() if not p.is_computer]

    def computer_slot(self) -> Optional[str]:
        for slot, participant in self.slots.items():
            if participant.is_computer:
                return slot
        return None

    def has_connected_humans(self) -> bool:
        return any(p.connected for _, p in self.humans())

    def age(self, now: float) -> float:
        return now - self.created_at

    def game_state(self):
        return {
            'currentRound': self.round,
            'maxRounds': self.max_rounds,
            'scores': dict(self.scores),
            'gameStarted': self.started,
            'gameOver': self.over,
            'phase': self.phase,
        }

    def players_dict(self):
        return {slot: p.to_dict() for slot, p in self.slots.items()}

    def to_dict(self):
        return {
            'roomId': self.id,
            'players': self.players_dict(),
            'gameState': self.game_state(),
        }

    def status_dict(self):
        return {
            'roomId': self.id,
            'playerCount': self.player_count,
            'gameStarted': self.started,
            'gameOver': self.over,
        }
