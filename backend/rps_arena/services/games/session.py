"""Per-room game flow: seating, choice collection, round and game resolution.

Every method here runs inside the room's mailbox, one command at a time, so
the "both choices recorded" check is atomic with the recording step.

Phases: waiting -> choosing -> (intermission -> choosing)* -> over.
Resolving happens within a single command and is never observable.
"""
import logging

from rps_arena.exceptions import RoomFull
from rps_arena.models import (
    CHOOSING,
    COMPUTER_NAME,
    INTERMISSION,
    OVER,
    Participant,
    Room,
)
from .rules import validate_move
from .scoring import game_stats, game_winner, score_current_round

logger = logging.getLogger(__name__)

GAME_START_MESSAGE = 'Both players are here. Make your choice!'
NEW_GAME_MESSAGE = 'New game started! Make your choice.'


class GameSession:
    def __init__(self, notifier, scheduler, next_round_delay: float = 3.0):
        self.notifier = notifier
        self.scheduler = scheduler
        self.next_round_delay = next_round_delay

    # ---- outbound ----

    def send(self, sid, event: str, data) -> None:
        if sid is None:
            return
        self.notifier.send(sid, event, data)

    def broadcast(self, room: Room, event: str, data, exclude_slot=None) -> None:
        """Send to every connected human in the room."""
        for slot, participant in room.humans():
            if slot == exclude_slot or not participant.connected:
                continue
            self.send(participant.sid, event, data)

    # ---- seating ----

    def seat(self, room: Room, sid, name: str, is_computer: bool = False) -> str:
        """Give the next free slot to a newcomer. Raises RoomFull."""
        slot = room.next_free_slot()
        if slot is None:
            raise RoomFull(room.id)
        room.slots[slot] = Participant(sid, name, is_computer=is_computer)
        room.scores[slot] = 0
        logger.info(f"[seat] room={room.id} slot={slot} name={name!r} computer={is_computer}")
        return slot

    def seat_computer(self, room: Room, provider) -> str:
        room.move_provider = provider
        return self.seat(room, None, COMPUTER_NAME, is_computer=True)

    def start_if_ready(self, room: Room) -> bool:
        """Flip into play once both slots are taken. One-way."""
        if room.started or not room.is_full:
            return False
        room.started = True
        room.phase = CHOOSING
        logger.info(f"[game-start] room={room.id}")
        self.broadcast(room, 'game-start', {
            'message': GAME_START_MESSAGE,
            'gameState': room.game_state(),
        })
        return True

    # ---- rounds ----

    def submit_choice(self, room: Room, slot: str, choice) -> bool:
        """Record a human choice. Raises InvalidMove.

        Returns False when the room is not collecting choices (still waiting
        for an opponent, between rounds, or finished).
        """
        move = validate_move(choice)
        if room.phase != CHOOSING or slot not in room.slots:
            logger.debug(f"[choice-discard] room={room.id} slot={slot} phase={room.phase}")
            return False

        self._record_choice(room, slot, move)

        computer_slot = room.computer_slot()
        if computer_slot and computer_slot != slot and room.phase == CHOOSING:
            computer_move = validate_move(room.move_provider.next_move(tuple(room.history)))
            self._record_choice(room, computer_slot, computer_move)
        return True

    def _record_choice(self, room: Room, slot: str, move: str) -> None:
        replaced = room.pending_choices.get(slot)
        room.pending_choices[slot] = move
        if replaced is not None:
            logger.debug(f"[choice-replace] room={room.id} slot={slot} round={room.round}")
        if not room.slots[slot].is_computer:
            self.broadcast(room, 'choice-made', {'playerId': slot})
        if len(room.pending_choices) == len(room.slots) == 2:
            self._resolve_round(room)

    def _resolve_round(self, room: Room) -> None:
        result = score_current_round(room)
        room.pending_choices.clear()
        logger.info(
            f"[round] room={room.id} round={result.round} choices={result.choices} winner={result.winner}"
        )
        self.broadcast(room, 'round-result', result.to_dict())

        if room.round >= room.max_rounds:
            self._finish_game(room)
        else:
            room.phase = INTERMISSION
            self._schedule_advance(room)

    def _finish_game(self, room: Room) -> None:
        room.over = True
        room.phase = OVER
        winner = game_winner(room.scores)
        logger.info(f"[game-over] room={room.id} winner={winner} scores={room.scores}")
        self.broadcast(room, 'game-over', {
            'winner': winner,
            'finalScores': dict(room.scores),
            'gameStats': game_stats(room),
        })

    def _schedule_advance(self, room: Room) -> None:
        room.advance_timer = self.scheduler.call_later(
            self.next_round_delay,
            room.mailbox.post, self.advance_round, room, room.game_number, room.round,
            name=f'advance:{room.id}:{room.round}',
        )

    def advance_round(self, room: Room, game_number: int, round_number: int) -> bool:
        """Timer callback: move to the next round if nothing changed meanwhile."""
        if (room.closed or room.phase != INTERMISSION
                or room.game_number != game_number or room.round != round_number):
            logger.debug(
                f"[advance-abort] room={room.id} expected_game={game_number} expected_round={round_number} "
                f"actual_game={room.game_number} actual_round={room.round} phase={room.phase}"
            )
            return False
        room.advance_timer = None
        room.round += 1
        room.pending_choices.clear()
        room.phase = CHOOSING
        self.broadcast(room, 'next-round', {
            'round': room.round,
            'gameState': room.game_state(),
        })
        return True

    # ---- resets and departures ----

    def new_game(self, room: Room) -> bool:
        """Reset scores and rounds for a rematch; seats and room id are kept."""
        if not room.is_full:
            logger.debug(f"[new-game-ignore] room={room.id} players={room.player_count}")
            return False
        if room.advance_timer is not None:
            room.advance_timer.cancel()
            room.advance_timer = None
        room.game_number += 1
        room.round = 1
        room.scores = {slot: 0 for slot in room.slots}
        room.pending_choices.clear()
        room.history = []
        room.started = True
        room.over = False
        room.phase = CHOOSING
        logger.info(f"[new-game] room={room.id} game={room.game_number}")
        self.broadcast(room, 'game-start', {
            'message': NEW_GAME_MESSAGE,
            'gameState': room.game_state(),
        })
        return True

    def mark_disconnected(self, room: Room, slot: str):
        participant = room.slots.get(slot)
        if participant is None:
            return None
        participant.connected = False
        logger.info(f"[disconnect] room={room.id} slot={slot} name={participant.name!r}")
        self.broadcast(room, 'player-disconnected', {
            'playerId': slot,
            'playerName': participant.name,
        }, exclude_slot=slot)
        return participant
