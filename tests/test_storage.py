import sqlite3

import pytest

from markov import END_TOKEN, START_TOKEN, Chain, MarkovStorage, StorageError


@pytest.fixture
async def storage(tmp_path):
    store = MarkovStorage(tmp_path, "123456")
    await store.init()
    yield store
    await store.close()


@pytest.fixture
def chain():
    chain = Chain(2)
    chain.add(["the", "quick", "brown", "fox", "the", "quick", "red", "fox"])
    chain.add([])
    return chain


async def test_load_before_save(storage):
    assert await storage.load_chain() is None
    assert await storage.get_stats() == {
        "state_count": 0,
        "transition_count": 0,
        "symbol_count": 0,
    }


async def test_save_and_load(storage, chain, scripted):
    await storage.save_chain(chain)
    assert storage.db_path.name == "123456.db"

    loaded = await storage.load_chain(rng=scripted([1]))
    assert loaded.order == 2
    assert loaded.to_dict() == chain.to_dict()
    assert loaded.generate(("the", "quick")) == "red"
    assert loaded.transition_probability(END_TOKEN, (START_TOKEN, START_TOKEN)) == 0.5
    assert await storage.get_stats() == chain.stats()


async def test_save_replaces_previous_snapshot(storage, chain):
    await storage.save_chain(chain)

    small = Chain(1)
    small.add(["x"])
    await storage.save_chain(small)

    loaded = await storage.load_chain()
    assert loaded.order == 1
    assert loaded.to_dict() == small.to_dict()


async def test_clear(storage, chain):
    await storage.save_chain(chain)
    await storage.clear()
    assert await storage.load_chain() is None


async def test_reopen_keeps_data(tmp_path, chain):
    async with MarkovStorage(tmp_path, "chan") as store:
        await store.save_chain(chain)

    async with MarkovStorage(tmp_path, "chan") as store:
        loaded = await store.load_chain()

    assert loaded.stats() == chain.stats()


async def test_newer_snapshot_is_rejected(tmp_path, chain):
    async with MarkovStorage(tmp_path, "chan") as store:
        await store.save_chain(chain)

    with sqlite3.connect(tmp_path / "chan.db") as db:
        db.execute("UPDATE meta SET value = '99' WHERE key = 'version'")

    async with MarkovStorage(tmp_path, "chan") as store:
        with pytest.raises(StorageError):
            await store.load_chain()


async def test_use_before_init(tmp_path, chain):
    store = MarkovStorage(tmp_path, "chan")
    with pytest.raises(StorageError):
        await store.save_chain(chain)


async def test_failed_save_keeps_previous_snapshot(storage, chain, monkeypatch):
    await storage.save_chain(chain)

    broken = Chain(1)
    broken.add(["x"])
    snapshot = broken.to_dict()
    snapshot["rows"] = {state: {k: 0 for k in row} for state, row in snapshot["rows"].items()}
    monkeypatch.setattr(broken, "to_dict", lambda: snapshot)

    with pytest.raises(sqlite3.IntegrityError):
        await storage.save_chain(broken)

    loaded = await storage.load_chain()
    assert loaded.to_dict() == chain.to_dict()
