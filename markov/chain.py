"""Markov chain implementation for token sequences."""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, Iterator, Optional, Protocol, Sequence, Tuple

from .errors import MarkovError, NgramLengthMismatchError, UnknownNgramStateError
from .ngram import NGram, SparseRow, make_pairs, ngram_key, repeat
from .pool import SymbolPool

log = logging.getLogger("Markov")

START_TOKEN = "^"
END_TOKEN = "$"

SNAPSHOT_VERSION = 1


class RandomSource(Protocol):
    """Anything that can draw an integer in [0, stop). `random.Random` fits."""

    def randrange(self, stop: int) -> int:
        ...


class Chain:
    """A fixed-order Markov chain over string tokens.

    Tokens and states are interned in a single symbol pool. Each state owns
    a sparse row counting the tokens observed after it.
    """

    def __init__(self, order: int, rng: Optional[RandomSource] = None):
        """Initialize an empty chain.

        Args:
            order: The n-gram order. Values below 1 are raised to 1.
            rng: Random source used by `generate`. Optional, since
                `generate_deterministic` takes one explicitly.
        """
        self._order = max(order, 1)
        self.rng = rng
        self._pool = SymbolPool()
        self._rows: Dict[int, SparseRow] = {}

    @classmethod
    def seeded(cls, order: int, seed: Optional[int] = None) -> "Chain":
        """Create a chain backed by its own `random.Random`."""
        return cls(order, rng=random.Random(seed))

    @property
    def order(self) -> int:
        return self._order

    @property
    def pool(self) -> SymbolPool:
        return self._pool

    def add(self, tokens: Sequence[str]) -> None:
        """Train the chain on one token sequence.

        The sequence is padded with `order` start tokens and one end token,
        so even an empty sequence records the start -> end transition.
        """
        padded = repeat(START_TOKEN, self._order) + list(tokens) + repeat(END_TOKEN, 1)
        pairs = make_pairs(padded, self._order)

        for pair in pairs:
            current_index = self._pool.add(ngram_key(pair.current_state))
            next_index = self._pool.add(pair.next_token)

            row = self._rows.get(current_index)
            if row is None:
                row = self._rows[current_index] = SparseRow()
            row.increment(next_index)

        log.debug(f"Added {len(pairs)} transitions, pool size is now {len(self._pool)}")

    def transition_probability(self, next_token: str, current: Sequence[str]) -> float:
        """Probability of seeing `next_token` right after state `current`.

        Args:
            next_token: The candidate next token.
            current: The current state, exactly `order` tokens long.

        Returns:
            The observed frequency ratio, or 0.0 when the state or the token
            was never seen.

        Raises:
            NgramLengthMismatchError: If `current` is not `order` tokens long.
        """
        self._check_length(current)

        current_index = self._state_index(current)
        next_index = self._pool.get(next_token)
        if current_index is None or next_index is None:
            return 0.0

        row = self._rows.get(current_index)
        if not row:
            return 0.0

        total = row.total()
        if total == 0:
            return 0.0
        return row[next_index] / total

    def generate(self, current: Sequence[str]) -> str:
        """Sample the next token using the chain's own random source."""
        self._check_length(current)
        if self.rng is None:
            raise MarkovError("chain has no random source, use generate_deterministic or Chain.seeded")
        return self.generate_deterministic(current, self.rng)

    def generate_deterministic(self, current: Sequence[str], rng: RandomSource) -> str:
        """Sample the next token after `current` with the given random source.

        Candidates are walked in ascending token ID order, so a scripted
        random source always yields the same token.

        Args:
            current: The current state, exactly `order` tokens long.
            rng: Source of the single draw in [0, row total).

        Returns:
            The next token. An empty string means stop: either `current`
            ends with END_TOKEN or its row has no weight.

        Raises:
            NgramLengthMismatchError: If `current` is not `order` tokens long.
            UnknownNgramStateError: If the state was never observed.
        """
        self._check_length(current)

        if current[-1] == END_TOKEN:
            return ""

        current_index = self._state_index(current)
        if current_index is None:
            raise UnknownNgramStateError(current)

        row = self._rows.get(current_index, SparseRow())
        total = row.total()
        if total <= 0:
            return ""

        draw = rng.randrange(total)
        for next_index in row.ordered_keys():
            draw -= row[next_index]
            if draw < 0:
                try:
                    return self._pool.symbol(next_index)
                except KeyError:
                    raise MarkovError(
                        f"internal inconsistency: unknown next state ID {next_index}"
                    ) from None

        raise MarkovError(f"generation failed unexpectedly for state {tuple(current)!r}")

    def states(self) -> Iterator[Tuple[NGram, Dict[str, int]]]:
        """Iterate over (state, {next token: count}) in state ID order."""
        for state_index in sorted(self._rows):
            state = self._pool.symbol(state_index)
            row = self._rows[state_index]
            yield state, {self._pool.symbol(i): row[i] for i in row.ordered_keys()}

    def stats(self) -> Dict[str, int]:
        """Get statistics about the chain."""
        return {
            "state_count": len(self._rows),
            "transition_count": sum(row.total() for row in self._rows.values()),
            "symbol_count": len(self._pool),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the chain to a JSON-friendly dictionary.

        Pool IDs are kept as list positions so a restored chain samples
        exactly like the original.
        """
        return {
            "version": SNAPSHOT_VERSION,
            "order": self._order,
            "symbols": [
                list(symbol) if isinstance(symbol, tuple) else symbol
                for symbol in self._pool
            ],
            "rows": {
                str(state): {str(k): row[k] for k in row.ordered_keys()}
                for state, row in sorted(self._rows.items())
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], rng: Optional[RandomSource] = None) -> "Chain":
        """Deserialize a chain produced by `to_dict`."""
        version = data.get("version", SNAPSHOT_VERSION)
        if version > SNAPSHOT_VERSION:
            raise MarkovError(f"unsupported chain snapshot version {version}")

        chain = cls(data.get("order", 1), rng=rng)
        for symbol in data.get("symbols", []):
            chain._pool.add(tuple(symbol) if isinstance(symbol, list) else symbol)

        size = len(chain._pool)
        for state, transitions in data.get("rows", {}).items():
            row = SparseRow({int(k): int(v) for k, v in transitions.items() if int(v) > 0})
            if not row:
                continue
            state_index = int(state)
            if not 0 <= state_index < size or not isinstance(chain._pool.symbol(state_index), tuple):
                raise MarkovError(f"snapshot row refers to unknown state ID {state_index}")
            for next_index in row:
                if not 0 <= next_index < size or isinstance(chain._pool.symbol(next_index), tuple):
                    raise MarkovError(f"snapshot row {state_index} refers to unknown token ID {next_index}")
            chain._rows[state_index] = row

        return chain

    def _check_length(self, ngram: Sequence[str]) -> None:
        if len(ngram) != self._order:
            raise NgramLengthMismatchError(self._order, len(ngram))

    def _state_index(self, ngram: Sequence[str]) -> Optional[int]:
        return self._pool.get(ngram_key(ngram))
