# src/coopcache/network/clustering.py
"""
K-means clustering of clients into small cells.

The k-means fit itself is delegated to scikit-learn. This module builds the
training vectors from client demand, creates one small cell per centroid and
places every training client into the cell of its cluster.
"""
import logging
from dataclasses import dataclass, field
from typing import Hashable, List, Optional

import numpy as np
import pandas as pd
from sklearn.cluster import KMeans
from sklearn.exceptions import NotFittedError
from sklearn.preprocessing import normalize

from coopcache.errors import OracleFailure
from coopcache.network.ownership import move_client
from coopcache.network.popularity import Popularities
from coopcache.network.similarity import (SimilarityFormula, pairwise_similarity,
                                          popularity_similarity)

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 50


class ClusteringOracle:
    """fit/predict wrapper around sklearn's KMeans with a bounded iteration budget."""

    def __init__(self, n_clusters: int, max_iter: int = MAX_ITERATIONS, random_state=None):
        self.n_clusters = n_clusters
        self.max_iter = max_iter
        self.random_state = random_state
        self.model: Optional[KMeans] = None

    def fit(self, vectors) -> "ClusteringOracle":
        data = np.asarray(vectors, dtype=float)
        try:
            self.model = KMeans(n_clusters=self.n_clusters, max_iter=self.max_iter,
                                n_init=10, random_state=self.random_state).fit(data)
        except ValueError as e:
            raise OracleFailure(f"Clustering error: {e}") from e
        return self

    def predict(self, vector) -> int:
        if self.model is None:
            raise OracleFailure("prediction error: oracle is not fitted")
        point = np.asarray(vector, dtype=float).reshape(1, -1)
        try:
            return int(self.model.predict(point)[0])
        except (ValueError, NotFittedError) as e:
            raise OracleFailure(f"prediction error: {e}") from e

    @property
    def centroids(self) -> np.ndarray:
        if self.model is None:
            raise OracleFailure("oracle is not fitted")
        return self.model.cluster_centers_

    @property
    def labels(self) -> np.ndarray:
        if self.model is None:
            raise OracleFailure("oracle is not fitted")
        return self.model.labels_


@dataclass
class ClusteringResult:
    """Outcome of one training: which cluster each training client landed in."""
    oracle: ClusteringOracle
    client_ids: List[Hashable]
    guesses: List[int]
    file_ids: List[Hashable]
    similarity_mode: bool = False
    formula: SimilarityFormula = SimilarityFormula.COSINE
    # net demand of each training client, used to place new clients in similarity mode
    reference: List[Popularities] = field(default_factory=list)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"client_id": self.client_ids, "cluster": self.guesses})


def training_clients(periods) -> List[Hashable]:
    """Ids of the clients requesting inside `periods`, by first appearance."""
    seen = {}
    for p in periods:
        for r in p.requests:
            seen.setdefault(r.client_id, None)
    return list(seen)


def client_popularity_vectors(clients, file_ids, start: int, end: int) -> np.ndarray:
    data = np.zeros((len(clients), len(file_ids)))
    for i, c in enumerate(clients):
        demand = c.popularity.net_demand(start, end)
        data[i] = [demand.get(f, 0) for f in file_ids]
    return normalize(data)


def client_similarity_vectors(demands: List[Popularities],
                              formula: SimilarityFormula) -> np.ndarray:
    data = pairwise_similarity(demands, formula)
    for i, d in enumerate(demands):
        data[i, i] = popularity_similarity(d, d, formula)
    return normalize(data)


def client_vector(client, result: ClusteringResult, period_id: int) -> np.ndarray:
    """The point handed to the oracle for a client outside the training set."""
    pop = client.popularity.accumulated(period_id)
    if result.similarity_mode:
        point = [popularity_similarity(pop, ref, result.formula) for ref in result.reference]
    else:
        point = [pop.get(f, 0) for f in result.file_ids]
    return normalize(np.asarray(point, dtype=float).reshape(1, -1))[0]


def train_small_cells(ctx, start: int, end: int, n_clusters: int,
                      similarity_mode: bool = False,
                      formula: SimilarityFormula = SimilarityFormula.COSINE,
                      random_state=None) -> ClusteringResult:
    """Fit the oracle on the training window and build the small cells from it."""
    client_ids = training_clients(ctx.periods[start:end + 1])
    clients = [ctx.client(cid) for cid in client_ids]
    file_ids = list(ctx.files)
    if not clients or not file_ids:
        raise OracleFailure(f"Clustering error: no training clients in periods {start}-{end}")
    logger.info("Clustering %d clients over periods %d-%d into %d clusters",
                len(clients), start, end, n_clusters)

    reference = []
    if similarity_mode:
        reference = [c.popularity.net_demand(start, end) for c in clients]
        vectors = client_similarity_vectors(reference, formula)
    else:
        vectors = client_popularity_vectors(clients, file_ids, start, end)

    oracle = ClusteringOracle(n_clusters, random_state=random_state).fit(vectors)
    guesses = [int(g) for g in oracle.labels]
    result = ClusteringResult(oracle, client_ids, guesses, file_ids,
                              similarity_mode, formula, reference)
    assign_training_clients(ctx, result)
    return result


def assign_training_clients(ctx, result: ClusteringResult):
    """One small cell per centroid; every training client joins its cluster's cell."""
    cells = ctx.reset_small_cells(len(result.oracle.centroids))
    for cid, guess in zip(result.client_ids, result.guesses):
        move_client(ctx.client(cid), cells[guess])
    ctx.oracle = result.oracle
    ctx.training = result
