import pytest

from coopcache.config import make_config
from coopcache.network.entities import Client, SmallCell
from coopcache.network.popularity import Popularities
from coopcache.simulation.context import SimulationContext


def pops(**counts):
    return Popularities(counts)


def client_with_demand(client_id, demand, period_id=0):
    """Client whose demand in `period_id` is the mapping `demand`."""
    c = Client(client_id)
    for f, n in demand.items():
        c.popularity.add(period_id, f, n)
    return c


@pytest.fixture
def cfg():
    return make_config(FILE_SIZE=10, CACHE_STORAGE_SIZE=10000, CLUSTER_NUMBER=2,
                       TRAIN_START_PERIOD=0, TRAIN_END_PERIOD=0, TEST_START_PERIOD=1,
                       COOPERATION_THRESHOLD=0.5)


@pytest.fixture
def ctx(cfg):
    ctx = SimulationContext(cfg)
    ctx.small_cells = [SmallCell(0), SmallCell(1)]
    return ctx


@pytest.fixture
def small_cfg():
    return make_config(NUM_FILES=50, NUM_CLIENTS=40, NUM_COMMUNITIES=2, REQUESTS_PER_CLIENT=20,
                       NUM_PERIODS=6, PERIOD_DURATION=10.0, CLUSTER_NUMBER=3,
                       TRAIN_START_PERIOD=0, TRAIN_END_PERIOD=1, TEST_START_PERIOD=2,
                       CACHE_STORAGE_SIZE=1000, FILE_SIZE=10, NUM_RUNS=1)
