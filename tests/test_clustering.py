import numpy as np
import pytest

from coopcache.errors import OracleFailure
from coopcache.network.clustering import (ClusteringOracle, client_popularity_vectors,
                                          train_small_cells, training_clients)
from coopcache.network.entities import Period, Request
from coopcache.network.ownership import record_demand
from coopcache.simulation.context import SimulationContext

BLOBS = [[1.0, 0.0], [0.9, 0.1], [0.0, 1.0], [0.1, 0.9]]


def test_oracle_fit_and_predict():
    oracle = ClusteringOracle(2, random_state=0).fit(BLOBS)
    labels = oracle.labels
    assert labels[0] == labels[1]
    assert labels[2] == labels[3]
    assert labels[0] != labels[2]
    assert oracle.centroids.shape == (2, 2)
    assert oracle.predict([0.95, 0.05]) == labels[0]


def test_fit_failure_is_oracle_failure():
    with pytest.raises(OracleFailure):
        ClusteringOracle(10).fit(BLOBS)


def test_predict_failures():
    with pytest.raises(OracleFailure):
        ClusteringOracle(2).predict([1.0, 0.0])
    oracle = ClusteringOracle(2, random_state=0).fit(BLOBS)
    with pytest.raises(OracleFailure):
        oracle.predict([1.0, 0.0, 0.0])


def two_community_context(cfg):
    """Clients u0-u3 request only a/b, clients v0-v3 only c/d, all in period 0."""
    requests = []
    t = 0
    for i in range(4):
        for f in ("a", "a", "b"):
            requests.append(Request(t, f, f"u{i}"))
            t += 1
        for f in ("c", "d", "d"):
            requests.append(Request(t, f, f"v{i}"))
            t += 1
    ctx = SimulationContext(cfg)
    ctx.periods = [Period(0, 0, t, requests)]
    for r in requests:
        record_demand(0, ctx.client(r.client_id), ctx.file(r.file_id))
    return ctx


def test_training_clients_in_first_appearance_order(cfg):
    ctx = two_community_context(cfg)
    assert training_clients(ctx.periods) == ["u0", "v0", "u1", "v1", "u2", "v2", "u3", "v3"]


def test_popularity_vectors_are_unit_rows(cfg):
    ctx = two_community_context(cfg)
    clients = list(ctx.clients.values())
    data = client_popularity_vectors(clients, list(ctx.files), 0, 0)
    assert data.shape == (8, 4)
    assert np.allclose(np.linalg.norm(data, axis=1), 1.0)


@pytest.mark.parametrize("similarity_mode", [False, True])
def test_train_small_cells(cfg, similarity_mode):
    ctx = two_community_context(cfg)
    result = train_small_cells(ctx, 0, 0, 2, similarity_mode=similarity_mode, random_state=0)
    assert len(ctx.small_cells) == 2
    assert ctx.oracle is result.oracle
    assert ctx.training is result
    cells = {cid: ctx.clients[cid].small_cell for cid in result.client_ids}
    assert len({id(cells[f"u{i}"]) for i in range(4)}) == 1
    assert len({id(cells[f"v{i}"]) for i in range(4)}) == 1
    assert cells["u0"] is not cells["v0"]
    for sc in ctx.small_cells:
        assert len(sc.clients) == 4
        total = sum(c.popularity.accumulated(0).sum() for c in sc.clients.values())
        assert sc.popularity.accumulated(0).sum() == total
    frame = result.to_frame()
    assert list(frame.columns) == ["client_id", "cluster"]
    assert len(frame) == 8
