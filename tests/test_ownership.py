import numpy as np

from coopcache.network.entities import CacheStorage, File, SmallCell
from coopcache.network.ownership import move_client, move_small_cell, record_demand

from conftest import client_with_demand


def totals(entities, period_id, files):
    return {f: sum(e.popularity.period(period_id).get(f, 0) for e in entities) for f in files}


def test_move_client_carries_demand_into_cell_and_storage():
    storage = CacheStorage(0)
    cell = SmallCell(0)
    move_small_cell(cell, storage)
    c = client_with_demand("u", {"a": 2, "b": 1})
    move_client(c, cell)
    assert c.small_cell is cell
    assert cell.clients == {"u": c}
    assert cell.popularity.accumulated(0) == {"a": 2, "b": 1}
    assert storage.popularity.accumulated(0) == {"a": 2, "b": 1}


def test_move_client_between_cells():
    s0, s1 = CacheStorage(0), CacheStorage(1)
    c0, c1 = SmallCell(0), SmallCell(1)
    move_small_cell(c0, s0)
    move_small_cell(c1, s1)
    c = client_with_demand("u", {"a": 2})
    move_client(c, c0)
    move_client(c, c1)
    assert "u" not in c0.clients
    assert c0.popularity.accumulated(0)["a"] == 0
    assert s0.popularity.accumulated(0)["a"] == 0
    assert s1.popularity.accumulated(0)["a"] == 2


def test_move_small_cell_updates_both_sides():
    s0, s1 = CacheStorage(0), CacheStorage(1)
    cell = SmallCell(0)
    cell.popularity.add(0, "a", 4)
    cell.popularity.add(3, "b", 1)
    move_small_cell(cell, s0)
    move_small_cell(cell, s1)
    assert cell.cache_storage is s1
    assert s0.small_cells == []
    assert s1.small_cells == [cell]
    assert s0.popularity.accumulated(3) == {"a": 0, "b": 0}
    assert s1.popularity.accumulated(3) == {"a": 4, "b": 1}
    assert s1.popularity.period(3) == {"b": 1}


def test_record_demand_rolls_up():
    storage = CacheStorage(0)
    cell = SmallCell(0)
    move_small_cell(cell, storage)
    c = client_with_demand("u", {})
    move_client(c, cell)
    f = File("x", 10)
    record_demand(2, c, f)
    for e in (f, c, cell, storage):
        assert e.popularity.period(2) == {"x": 1}


def test_aggregation_conservation_under_random_moves():
    rng = np.random.default_rng(5)
    files = [f"f{i}" for i in range(6)]
    storages = [CacheStorage(i) for i in range(3)]
    cells = [SmallCell(i) for i in range(5)]
    for i, sc in enumerate(cells):
        move_small_cell(sc, storages[i % 3])
    clients = []
    for i in range(12):
        demand = {f: int(rng.integers(0, 4)) for f in files}
        c = client_with_demand(f"u{i}", demand, period_id=int(rng.integers(0, 3)))
        move_client(c, cells[i % 5])
        clients.append(c)

    for step in range(200):
        if rng.random() < 0.3:
            move_small_cell(cells[rng.integers(0, 5)], storages[rng.integers(0, 3)])
        elif rng.random() < 0.5:
            move_client(clients[rng.integers(0, 12)], cells[rng.integers(0, 5)])
        else:
            record_demand(int(rng.integers(0, 4)), clients[rng.integers(0, 12)],
                          File(files[rng.integers(0, 6)]))

        for p in range(4):
            assert totals(storages, p, files) == totals(cells, p, files)
            assert totals(cells, p, files) == totals(clients, p, files)
        assert sorted(sc.id for s in storages for sc in s.small_cells) == list(range(5))
        for sc in cells:
            assert sc in sc.cache_storage.small_cells
