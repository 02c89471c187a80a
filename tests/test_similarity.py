import math

import numpy as np
import pytest

from coopcache.errors import ConfigError
from coopcache.network.popularity import Popularities
from coopcache.network.similarity import (SimilarityFormula, cosine, pairwise_similarity,
                                          point_similarity, popularity_similarity)

FORMULAS = [SimilarityFormula.COSINE, SimilarityFormula.EXPONENTIAL]


def random_pops(n, seed=3):
    rng = np.random.default_rng(seed)
    out = []
    for _ in range(n):
        files = rng.choice(12, size=int(rng.integers(1, 8)), replace=False)
        out.append(Popularities({f"f{i}": int(rng.integers(1, 20)) for i in files}))
    return out


def test_identical_distributions():
    p = Popularities({"a": 1, "b": 1})
    assert popularity_similarity(p, p, SimilarityFormula.COSINE) == pytest.approx(1.0)
    assert popularity_similarity(p, p, SimilarityFormula.EXPONENTIAL) == pytest.approx(1 - math.exp(-0.5))


@pytest.mark.parametrize("formula", FORMULAS)
def test_symmetry(formula):
    pops = random_pops(15)
    for a in pops:
        for b in pops:
            assert popularity_similarity(a, b, formula) == popularity_similarity(b, a, formula)


@pytest.mark.parametrize("formula", FORMULAS)
def test_bounds(formula):
    pops = random_pops(15, seed=11)
    for a in pops:
        for b in pops:
            s = popularity_similarity(a, b, formula)
            assert 0.0 <= s <= 1.0 + 1e-12


@pytest.mark.parametrize("formula", FORMULAS)
def test_disjoint_files_give_zero(formula):
    a = Popularities({"a": 3, "b": 1})
    b = Popularities({"c": 2})
    assert popularity_similarity(a, b, formula) == 0.0


def test_zero_counts_do_not_overlap():
    a = Popularities({"a": 3, "b": 0})
    b = Popularities({"b": 2})
    assert popularity_similarity(a, b) == 0.0


def test_filter_restricts_common_files():
    a = Popularities({"a": 1, "b": 3})
    b = Popularities({"a": 2, "b": 1})
    assert popularity_similarity(a, b, SimilarityFormula.COSINE, ["a"]) == pytest.approx(1.0)
    assert popularity_similarity(a, b, SimilarityFormula.EXPONENTIAL, ["a"]) == pytest.approx(1 - math.exp(-1))
    assert popularity_similarity(a, b, SimilarityFormula.COSINE, []) == 0.0
    assert popularity_similarity(a, b, SimilarityFormula.COSINE, None) < 1.0


def test_cosine_of_zero_vector_is_zero():
    assert cosine(np.zeros(3), np.ones(3)) == 0.0


def test_pairwise_matrix_is_symmetric_with_zero_diagonal():
    pops = random_pops(6)
    sim = pairwise_similarity(pops)
    assert sim.shape == (6, 6)
    assert np.array_equal(sim, sim.T)
    assert np.all(np.diag(sim) == 0)
    assert sim[1, 4] == popularity_similarity(pops[1], pops[4])


def test_point_similarity():
    pops = random_pops(4)
    sim = point_similarity(pops[0], pops)
    assert sim.shape == (4,)
    assert sim[0] == pytest.approx(1.0)
    assert point_similarity(pops[0], []).shape == (0,)


def test_formula_from_name():
    assert SimilarityFormula.from_name("Exponential") is SimilarityFormula.EXPONENTIAL
    assert SimilarityFormula.from_name(SimilarityFormula.COSINE) is SimilarityFormula.COSINE
    with pytest.raises(ConfigError):
        SimilarityFormula.from_name("jaccard")
