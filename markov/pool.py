"""Bidirectional symbol pool."""

from __future__ import annotations

from typing import Dict, Hashable, Iterator, List, Optional


class SymbolPool:
    """Maps hashable symbols to dense integer IDs and back.

    IDs are handed out in first-seen order starting at 0 and are never
    reassigned. The pool only grows.
    """

    def __init__(self) -> None:
        self._ids: Dict[Hashable, int] = {}
        self._symbols: List[Hashable] = []

    def add(self, symbol: Hashable) -> int:
        """Register a symbol and return its ID.

        Args:
            symbol: A token string or an n-gram key.

        Returns:
            The existing ID if the symbol is known, otherwise a fresh one.
        """
        index = self._ids.get(symbol)
        if index is not None:
            return index
        index = len(self._symbols)
        self._ids[symbol] = index
        self._symbols.append(symbol)
        return index

    def get(self, symbol: Hashable) -> Optional[int]:
        """Look up a symbol's ID without registering it."""
        return self._ids.get(symbol)

    def symbol(self, index: int) -> Hashable:
        """Return the symbol registered under an ID."""
        if index < 0 or index >= len(self._symbols):
            raise KeyError(index)
        return self._symbols[index]

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, symbol: Hashable) -> bool:
        return symbol in self._ids

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._symbols)
