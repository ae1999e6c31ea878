from rps_arena.exceptions import InvalidMove

ROCK = 'rock'
PAPER = 'paper'
SCISSORS = 'scissors'
MOVES = (ROCK, PAPER, SCISSORS)

FIRST = 'first'
SECOND = 'second'
TIE = 'tie'

# move -> the move it defeats
BEATS = {
    ROCK: SCISSORS,
    SCISSORS: PAPER,
    PAPER: ROCK,
}
# move -> the move that defeats it
COUNTERS = {beaten: winner for winner, beaten in BEATS.items()}


def is_valid_move(move) -> bool:
    return isinstance(move, str) and move in BEATS


def validate_move(move) -> str:
    """Return ``move`` unchanged, or raise :class:`InvalidMove`."""
    if not is_valid_move(move):
        raise InvalidMove(move)
    return move


def resolve(move_a: str, move_b: str) -> str:
    """Compare two valid moves.

    Returns FIRST when ``move_a`` wins, SECOND when ``move_b`` wins and TIE
    for equal moves. Moves are expected to be validated at submission time.
    """
    if move_a == move_b:
        return TIE
    return FIRST if BEATS[move_a] == move_b else SECOND
