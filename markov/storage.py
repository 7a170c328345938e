"""SQLite storage handler for Markov chain snapshots."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

import aiosqlite

from .chain import SNAPSHOT_VERSION, Chain, RandomSource
from .errors import StorageError

log = logging.getLogger("Markov.storage")


class MarkovStorage:
    """Async SQLite storage for one named chain."""

    def __init__(self, data_path: Path, name: str):
        """Initialize storage for a chain.

        Args:
            data_path: Directory holding the database files.
            name: Chain name, e.g. a channel ID. Used as the file name.
        """
        self.name = name
        self.db_path = data_path / f"{name}.db"
        self._connection: Optional[aiosqlite.Connection] = None

    async def init(self) -> None:
        """Initialize the database and create tables."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self.db_path)
        await self._create_tables()
        log.info(f"Markov storage initialized at {self.db_path}")

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
            log.info(f"Markov storage closed for {self.name}")

    async def __aenter__(self) -> "MarkovStorage":
        await self.init()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise StorageError("storage used before init()")
        return self._connection

    async def _create_tables(self) -> None:
        """Create database tables if they don't exist."""
        await self._connection.executescript(
            """
            CREATE TABLE IF NOT EXISTS meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS symbols (
                id INTEGER PRIMARY KEY,
                kind TEXT NOT NULL,
                value TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS transitions (
                state_id INTEGER NOT NULL,
                next_id INTEGER NOT NULL,
                count INTEGER NOT NULL CHECK(count > 0),
                PRIMARY KEY (state_id, next_id)
            );
            """
        )
        await self._connection.commit()

    async def save_chain(self, chain: Chain) -> None:
        """Replace the stored snapshot with `chain`.

        Args:
            chain: The chain to persist.
        """
        db = self.connection
        snapshot = chain.to_dict()

        try:
            await db.execute("DELETE FROM meta")
            await db.execute("DELETE FROM symbols")
            await db.execute("DELETE FROM transitions")

            await db.executemany(
                "INSERT INTO meta (key, value) VALUES (?, ?)",
                [("version", str(snapshot["version"])), ("order", str(snapshot["order"]))],
            )
            await db.executemany(
                "INSERT INTO symbols (id, kind, value) VALUES (?, ?, ?)",
                [
                    (index, "state" if isinstance(symbol, list) else "token", json.dumps(symbol))
                    for index, symbol in enumerate(snapshot["symbols"])
                ],
            )
            await db.executemany(
                "INSERT INTO transitions (state_id, next_id, count) VALUES (?, ?, ?)",
                [
                    (int(state), int(next_id), count)
                    for state, row in snapshot["rows"].items()
                    for next_id, count in row.items()
                ],
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        stats = chain.stats()
        log.info(
            f"Saved chain {self.name}: {stats['state_count']} states, "
            f"{stats['transition_count']} transitions"
        )

    async def load_chain(self, rng: Optional[RandomSource] = None) -> Optional[Chain]:
        """Load the stored chain.

        Args:
            rng: Random source handed to the restored chain.

        Returns:
            The chain, or None if nothing has been saved yet.
        """
        db = self.connection
        cursor = await db.execute("SELECT key, value FROM meta")
        meta = {row[0]: row[1] for row in await cursor.fetchall()}
        if "order" not in meta:
            return None

        version = int(meta.get("version", SNAPSHOT_VERSION))
        if version > SNAPSHOT_VERSION:
            raise StorageError(f"{self.db_path} holds snapshot version {version}, expected {SNAPSHOT_VERSION}")

        cursor = await db.execute("SELECT value FROM symbols ORDER BY id")
        symbols = [json.loads(row[0]) for row in await cursor.fetchall()]

        rows: Dict[str, Dict[str, int]] = {}
        cursor = await db.execute("SELECT state_id, next_id, count FROM transitions")
        for state_id, next_id, count in await cursor.fetchall():
            rows.setdefault(str(state_id), {})[str(next_id)] = count

        return Chain.from_dict(
            {"version": version, "order": int(meta["order"]), "symbols": symbols, "rows": rows},
            rng=rng,
        )

    async def get_stats(self) -> Dict[str, int]:
        """Get stored chain statistics without loading it."""
        cursor = await self.connection.execute(
            "SELECT COUNT(DISTINCT state_id), COALESCE(SUM(count), 0) FROM transitions"
        )
        row = await cursor.fetchone()
        cursor = await self.connection.execute("SELECT COUNT(*) FROM symbols")
        symbols = await cursor.fetchone()

        return {
            "state_count": row[0] or 0,
            "transition_count": row[1] or 0,
            "symbol_count": symbols[0] or 0,
        }

    async def clear(self) -> None:
        """Clear the stored chain."""
        await self.connection.executescript(
            """
            DELETE FROM meta;
            DELETE FROM symbols;
            DELETE FROM transitions;
            """
        )
        await self.connection.commit()
