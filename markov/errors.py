"""Exceptions raised by the Markov chain package."""

from __future__ import annotations

from typing import Sequence


class MarkovError(Exception):
    """Base class for Markov chain errors."""


class NgramLengthMismatchError(MarkovError, ValueError):
    """An n-gram's length differs from the chain order."""

    def __init__(self, expected: int, actual: int):
        super().__init__("n-gram length does not match chain order")
        self.expected = expected
        self.actual = actual

    def __str__(self) -> str:
        return f"{self.args[0]} (expected {self.expected}, got {self.actual})"


class UnknownNgramStateError(MarkovError, KeyError):
    """Generation was asked to step from a state never seen in training."""

    def __init__(self, ngram: Sequence[str]):
        super().__init__("unknown ngram state")
        self.ngram = tuple(ngram)

    def __str__(self) -> str:
        return f"{self.args[0]}: {self.ngram!r}"


class StorageError(MarkovError):
    """Raised when chain storage is misused or holds an unreadable snapshot."""
