# src/coopcache/network/assignment.py
"""Placing clients into small cells."""
from typing import Iterable, List, Optional

from coopcache.network.clustering import client_vector
from coopcache.network.entities import Client, SmallCell
from coopcache.network.ownership import move_client
from coopcache.network.similarity import SimilarityFormula, point_similarity


def least_clients(cells: List[SmallCell]) -> SmallCell:
    """Cell with the fewest clients; ties go to the earliest cell in the list."""
    return min(cells, key=len)


def assign_with_clustering_model(ctx, client: Client) -> SmallCell:
    """Place `client` in the cell of the cluster the oracle predicts for it."""
    guess = ctx.oracle.predict(client_vector(client, ctx.training, ctx.period_no))
    cell = ctx.small_cells[guess]
    move_client(client, cell)
    return cell


def assign_with_similarity(ctx, client: Client,
                           formula: SimilarityFormula = SimilarityFormula.COSINE,
                           file_filter: Optional[Iterable] = None) -> SmallCell:
    """
    Place `client` in the least loaded cell of the most similar cache storage.

    Ties between storages keep the first one found. When no storage shares any
    demand with the client, the least loaded cell of the whole network is used.
    """
    pop = client.popularity.accumulated(ctx.period_no)
    storages = ctx.cache_storages
    sim = point_similarity(pop, [cs.popularity.accumulated(ctx.period_no) for cs in storages],
                           formula, file_filter)
    best, best_sim = -1, 0.0
    for i, s in enumerate(sim):
        if s > best_sim:
            best, best_sim = i, s
    if best == -1:
        cell = least_clients(ctx.small_cells)
    else:
        cell = least_clients(storages[best].small_cells)
    move_client(client, cell)
    return cell


def assign_new_client(ctx, client: Client, file_id) -> SmallCell:
    """First-touch placement: prefer cells whose cache storage already holds `file_id`."""
    cells = [sc for cs in ctx.cache_storages if cs.has_file(file_id) for sc in cs.small_cells]
    if not cells:
        cells = ctx.small_cells
    cell = least_clients(cells)
    move_client(client, cell)
    return cell


def assign(ctx, client: Client, cfg, file_filter: Optional[Iterable] = None) -> SmallCell:
    if cfg.IS_ASSIGN_CLUSTERING:
        return assign_with_clustering_model(ctx, client)
    return assign_with_similarity(ctx, client, cfg.SIMILARITY, file_filter)
