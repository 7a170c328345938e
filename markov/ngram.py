"""N-gram helpers and the sparse transition row."""

from __future__ import annotations

from collections import Counter
from typing import List, NamedTuple, Sequence, Tuple

# An n-gram is the chain state: exactly `order` tokens.
NGram = Tuple[str, ...]


class Pair(NamedTuple):
    """A state and the token observed right after it."""

    current_state: NGram
    next_token: str


def repeat(value: str, count: int) -> List[str]:
    """Build a list holding `value` `count` times (empty for count <= 0)."""
    if count <= 0:
        return []
    return [value] * count


def make_pairs(tokens: Sequence[str], order: int) -> List[Pair]:
    """Slide a window of width `order` over tokens.

    Args:
        tokens: The full (already padded) token sequence.
        order: Window width.

    Returns:
        One pair per position with a complete window and a following token.
        Empty when there are not more than `order` tokens.
    """
    if len(tokens) <= order:
        return []
    return [
        Pair(tuple(tokens[i : i + order]), tokens[i + order])
        for i in range(len(tokens) - order)
    ]


def ngram_key(ngram: Sequence[str]) -> Tuple[str, ...]:
    """Canonicalize an n-gram to a poolable key.

    The key is the tuple of the tokens themselves. Tuples never equal a
    token string in the shared pool, and tokens may contain any character
    without colliding with a different split of the same text.
    """
    return tuple(ngram)


class SparseRow(Counter):
    """Next-token ID -> number of times the transition was observed."""

    def increment(self, key: int) -> None:
        self[key] += 1

    def total(self) -> int:
        """Total observations of the owning state (0 when empty)."""
        return sum(self.values())

    def ordered_keys(self) -> List[int]:
        """Keys in ascending order, the fixed walk order for sampling."""
        return sorted(self)
