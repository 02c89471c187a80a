# src/coopcache/network/cooperation.py
import logging
from typing import Callable, List, Optional

from coopcache.network.entities import CacheStorage, SmallCell
from coopcache.network.ownership import move_small_cell
from coopcache.network.similarity import SimilarityFormula, pairwise_similarity

logger = logging.getLogger(__name__)


def group_small_cells(small_cells: List[SmallCell], threshold: float,
                      formula: SimilarityFormula = SimilarityFormula.COSINE,
                      period_id: int = 0) -> List[List[SmallCell]]:
    """
    Greedy anchor-based partition of small cells.

    Cells are visited in list order. The first unclaimed cell anchors a new
    group and every later unclaimed cell whose similarity to the anchor is at
    least `threshold` joins it. Admission is decided against the anchor only,
    so two members of a group need not be similar to each other.

    A negative threshold disables cooperation: every cell is its own group.
    """
    if threshold < 0:
        return [[sc] for sc in small_cells]

    pops = [sc.popularity.accumulated(period_id) for sc in small_cells]
    sim = pairwise_similarity(pops, formula)
    claimed = [False] * len(small_cells)
    groups = []
    for i, anchor in enumerate(small_cells):
        if claimed[i]:
            continue
        group = [anchor]
        claimed[i] = True
        for j in range(i + 1, len(small_cells)):
            if claimed[j]:
                continue
            if sim[i, j] >= threshold:
                group.append(small_cells[j])
                claimed[j] = True
        groups.append(group)
    return groups


def arrange_cooperation(small_cells: List[SmallCell], threshold: float,
                        formula: SimilarityFormula = SimilarityFormula.COSINE,
                        period_id: int = 0,
                        make_content: Optional[Callable] = None) -> List[CacheStorage]:
    """Replace the current grouping with fresh cache storages, one per group."""
    groups = group_small_cells(small_cells, threshold, formula, period_id)
    storages = []
    for i, group in enumerate(groups):
        content = make_content() if make_content is not None else None
        storage = CacheStorage(i, content)
        for sc in group:
            move_small_cell(sc, storage)
        storages.append(storage)
    logger.info("Arranged %d small cells into %d cache storages (threshold=%s, formula=%s)",
                len(small_cells), len(storages), threshold, formula.value)
    return storages
