# src/coopcache/network/similarity.py
"""
Similarity between popularity distributions.

Two distributions are compared only over the files both have demand for
(optionally restricted further by a file filter). Each side is normalised
over that common file set before the formula is applied.
"""
from enum import Enum
from typing import Iterable, Optional, Sequence

import numpy as np

from coopcache.errors import ConfigError
from coopcache.network.popularity import Popularities


def exponential(v: np.ndarray, w: np.ndarray) -> float:
    """1 - exp(-<v, w>)"""
    return float(1.0 - np.exp(-np.dot(v, w)))


def cosine(v: np.ndarray, w: np.ndarray) -> float:
    norm = np.linalg.norm(v) * np.linalg.norm(w)
    if norm == 0:
        return 0.0
    return float(np.dot(v, w) / norm)


class SimilarityFormula(Enum):
    COSINE = "cosine"
    EXPONENTIAL = "exponential"

    @classmethod
    def from_name(cls, name):
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).lower())
        except ValueError:
            raise ConfigError(f"Unknown SIMILARITY_FORMULA: {name}") from None

    def __call__(self, v: np.ndarray, w: np.ndarray) -> float:
        if self is SimilarityFormula.COSINE:
            return cosine(v, w)
        return exponential(v, w)


def common_files(p1: Popularities, p2: Popularities, file_filter: Optional[Iterable] = None):
    files = set(p1.files()).intersection(p2.files())
    if file_filter is not None:
        files.intersection_update(file_filter)
    # fixed order so that sim(a, b) and sim(b, a) sum the same terms
    return sorted(files, key=str)


def popularity_similarity(p1: Popularities, p2: Popularities,
                          formula: SimilarityFormula = SimilarityFormula.COSINE,
                          file_filter: Optional[Iterable] = None) -> float:
    files = common_files(p1, p2, file_filter)
    if not files:
        return 0.0
    v = np.array([p1[f] for f in files], dtype=float)
    w = np.array([p2[f] for f in files], dtype=float)
    return formula(v / v.sum(), w / w.sum())


def pairwise_similarity(pops: Sequence[Popularities],
                        formula: SimilarityFormula = SimilarityFormula.COSINE,
                        file_filter: Optional[Iterable] = None) -> np.ndarray:
    """Symmetric |pops| x |pops| matrix with a zero diagonal."""
    if file_filter is not None:
        file_filter = set(file_filter)
    n = len(pops)
    sim = np.zeros((n, n))
    for i in range(n):
        for j in range(i + 1, n):
            sim[i, j] = popularity_similarity(pops[i], pops[j], formula, file_filter)
            sim[j, i] = sim[i, j]
    return sim


def cross_similarity(pops_a: Sequence[Popularities], pops_b: Sequence[Popularities],
                     formula: SimilarityFormula = SimilarityFormula.COSINE,
                     file_filter: Optional[Iterable] = None) -> np.ndarray:
    """|pops_a| x |pops_b| matrix."""
    if file_filter is not None:
        file_filter = set(file_filter)
    sim = np.zeros((len(pops_a), len(pops_b)))
    for i, p in enumerate(pops_a):
        for j, q in enumerate(pops_b):
            sim[i, j] = popularity_similarity(p, q, formula, file_filter)
    return sim


def point_similarity(pop: Popularities, pops: Sequence[Popularities],
                     formula: SimilarityFormula = SimilarityFormula.COSINE,
                     file_filter: Optional[Iterable] = None) -> np.ndarray:
    """Similarity of one distribution to each member of a set."""
    return cross_similarity([pop], pops, formula, file_filter)[0]
