# src/coopcache/network/ownership.py
"""
Ownership transfer between network entities.

A small cell's popularity is the sum over its clients, and a cache storage's
popularity is the sum over its small cells. Moving an entity moves its whole
popularity history with it, period by period, so the aggregates stay equal to
the sum of their members without ever being rebuilt.
"""
from coopcache.network.entities import CacheStorage, Client, SmallCell


def move_small_cell(cell: SmallCell, storage: CacheStorage):
    """Attach `cell` to `storage`, detaching it from its previous storage."""
    old = cell.cache_storage
    if old is storage:
        return
    if old is not None:
        old.small_cells.remove(cell)
        old.popularity.merge(cell.popularity, sign=-1)
    storage.popularity.merge(cell.popularity)
    storage.small_cells.append(cell)
    cell.cache_storage = storage


def move_client(client: Client, cell: SmallCell):
    """Assign `client` to `cell`, carrying its demand into the new aggregates."""
    old = client.small_cell
    if old is cell:
        return
    if old is not None:
        del old.clients[client.id]
        old.popularity.merge(client.popularity, sign=-1)
        if old.cache_storage is not None:
            old.cache_storage.popularity.merge(client.popularity, sign=-1)
    cell.popularity.merge(client.popularity)
    if cell.cache_storage is not None:
        cell.cache_storage.popularity.merge(client.popularity)
    cell.clients[client.id] = client
    client.small_cell = cell


def record_demand(period_id: int, client: Client, file, count: int = 1):
    """Count a request of `client` for `file` on every level it rolls up to."""
    file.popularity.add(period_id, file.id, count)
    client.popularity.add(period_id, file.id, count)
    cell = client.small_cell
    if cell is not None:
        cell.popularity.add(period_id, file.id, count)
        if cell.cache_storage is not None:
            cell.cache_storage.popularity.add(period_id, file.id, count)
