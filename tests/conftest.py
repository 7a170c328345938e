from typing import List

import pytest


class ScriptedRNG:
    """Hands out pre-recorded draws and fails loudly when misused."""

    def __init__(self, values: List[int]):
        self.values = list(values)
        self.index = 0

    def randrange(self, stop: int) -> int:
        if self.index >= len(self.values):
            raise AssertionError(f"ScriptedRNG exhausted, needed value for stop={stop}")
        value = self.values[self.index]
        self.index += 1
        if not 0 <= value < stop:
            raise AssertionError(f"ScriptedRNG value {value} out of range for stop={stop}")
        return value

    @property
    def exhausted(self) -> bool:
        return self.index == len(self.values)


@pytest.fixture
def scripted():
    return ScriptedRNG
