from rps_arena.models import PLAYER1, PLAYER2, Room, RoundResult
from .rules import FIRST, SECOND, TIE, resolve


def score_current_round(room: Room) -> RoundResult:
    """Apply scoring for the current round.

    Expects both slots to hold a pending choice. +1 to the round winner,
    nothing on a tie. Appends the round summary to ``room.history`` and
    returns it.
    """
    choices = {PLAYER1: room.pending_choices[PLAYER1], PLAYER2: room.pending_choices[PLAYER2]}
    outcome = resolve(choices[PLAYER1], choices[PLAYER2])
    if outcome == FIRST:
        winner = PLAYER1
    elif outcome == SECOND:
        winner = PLAYER2
    else:
        winner = TIE
    if winner != TIE:
        room.scores[winner] = room.scores.get(winner, 0) + 1

    result = RoundResult(
        round=room.round,
        choices=choices,
        winner=winner,
        scores=dict(room.scores),
    )
    room.history.append(result)
    return result


def game_winner(scores) -> str:
    """Slot with the strictly higher score, or 'tie'."""
    p1 = scores.get(PLAYER1, 0)
    p2 = scores.get(PLAYER2, 0)
    if p1 > p2:
        return PLAYER1
    if p2 > p1:
        return PLAYER2
    return TIE


def game_stats(room: Room):
    wins = {PLAYER1: 0, PLAYER2: 0}
    ties = 0
    for result in room.history:
        if result.winner == TIE:
            ties += 1
        else:
            wins[result.winner] += 1
    return {
        'roundsPlayed': len(room.history),
        'ties': ties,
        'wins': wins,
        'history': [r.to_dict() for r in room.history],
    }
