import pytest

from coopcache import config
from coopcache.caching.admission import CachePolicy
from coopcache.config import make_config
from coopcache.errors import ConfigError
from coopcache.network.similarity import SimilarityFormula


def test_make_config_resolves_strategies():
    cfg = make_config(SIMILARITY_FORMULA="exponential", CACHE_POLICY="none")
    assert cfg.SIMILARITY is SimilarityFormula.EXPONENTIAL
    assert cfg.CACHE is CachePolicy.NONE


def test_make_config_copies_are_independent():
    a = make_config()
    b = make_config()
    a.COOPERATION_THRESHOLD = 0.9
    assert b.COOPERATION_THRESHOLD == config.COOPERATION_THRESHOLD


@pytest.mark.parametrize("overrides", [
    dict(SIMILARITY_FORMULA="euclid"),
    dict(CACHE_POLICY="lfu"),
    dict(TRAIN_START_PERIOD=3, TRAIN_END_PERIOD=2),
    dict(TRAIN_END_PERIOD=4, TEST_START_PERIOD=4),
    dict(CLUSTER_NUMBER=0),
    dict(FILE_SIZE=0),
    dict(NO_SUCH_KEY=1),
])
def test_invalid_config(overrides):
    with pytest.raises(ConfigError):
        make_config(**overrides)
