"""Move providers for the computer opponent.

A provider is asked for exactly one move per round, right after the human
choice is recorded. It receives the room's round history and must not touch
room state.
"""
import itertools
import random

from .rules import COUNTERS, MOVES, PAPER, ROCK, SCISSORS, validate_move


class MoveProvider:
    def next_move(self, history) -> str:
        raise NotImplementedError


class RandomMoveProvider(MoveProvider):
    """Uniform pick from the three moves."""

    def __init__(self, rng=None):
        self.rng = rng or random.Random()

    def next_move(self, history) -> str:
        return self.rng.choice(MOVES)


class CounterMoveProvider(MoveProvider):
    """Mostly random, sometimes countering the move humans favour.

    Each round one of three strategies is drawn uniformly: two are a plain
    random pick, the third guesses the opponent's move (rock 40%, paper 30%,
    scissors 30%) and plays what beats it.
    """

    GUESS_WEIGHTS = ((ROCK, 0.4), (PAPER, 0.3), (SCISSORS, 0.3))

    def __init__(self, rng=None):
        self.rng = rng or random.Random()
        self.strategies = (self._random, self._counter, self._random)

    def next_move(self, history) -> str:
        strategy = self.rng.choice(self.strategies)
        return strategy()

    def _random(self) -> str:
        return self.rng.choice(MOVES)

    def _counter(self) -> str:
        roll = self.rng.random()
        threshold = 0.0
        for move, weight in self.GUESS_WEIGHTS:
            threshold += weight
            if roll < threshold:
                return COUNTERS[move]
        return COUNTERS[self.GUESS_WEIGHTS[-1][0]]


class SequenceMoveProvider(MoveProvider):
    """Plays a fixed sequence of moves, cycling when exhausted."""

    def __init__(self, moves):
        moves = [validate_move(m) for m in moves]
        if not moves:
            raise ValueError('SequenceMoveProvider needs at least one move')
        self._moves = itertools.cycle(moves)

    def next_move(self, history) -> str:
        return next(self._moves)


STRATEGIES = {
    'counter': CounterMoveProvider,
    'random': RandomMoveProvider,
}


def make_provider(strategy: str = 'counter', rng=None) -> MoveProvider:
    try:
        provider_cls = STRATEGIES[strategy]
    except KeyError:
        raise ValueError(f'Unknown computer strategy: {strategy!r}') from None
    return provider_cls(rng=rng)
