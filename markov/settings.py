"""Defaults for building reply chains."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping


@dataclass(frozen=True)
class ReplySettings:
    order: int = 2  # N-gram order
    max_length: int = 100  # Max tokens in a reply

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ReplySettings":
        """Build settings from a plain config dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: max(int(v), 1) for k, v in data.items() if k in known}
        return cls(**values)
