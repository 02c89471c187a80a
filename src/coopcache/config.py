"""Simulation configuration parameters (cooperative caching baseline)."""
from types import SimpleNamespace

from coopcache.caching.admission import CachePolicy
from coopcache.errors import ConfigError
from coopcache.network.similarity import SimilarityFormula

# Random seed for reproducibility
RANDOM_SEED = 2025

# ------------------------------
# Synthetic workload
# ------------------------------
NUM_FILES = 500         # total unique files in catalog
ZIPF_ALPHA = 0.9        # Zipf skew of each community's ranking
NUM_CLIENTS = 300       # clients observed over the whole run
NUM_COMMUNITIES = 4     # groups of clients sharing a popularity ranking
REQUESTS_PER_CLIENT = 60
NUM_PERIODS = 12
PERIOD_DURATION = 3600.0  # seconds per period

# ------------------------------
# Monte Carlo runs
# ------------------------------
NUM_RUNS = 5            # independent workloads per configuration

# ------------------------------
# Clustering (small cells)
# ------------------------------
CLUSTER_NUMBER = 8           # number of small cells
TRAIN_START_PERIOD = 0
TRAIN_END_PERIOD = 3
TEST_START_PERIOD = 4
IS_TRAINED = False           # reuse the clustering of the previous run in a batch
IS_SIMILARITY_CLUSTERING = False  # cluster on client x client similarity instead of demand

# ------------------------------
# Cooperation (cache storages)
# ------------------------------
COOPERATION_THRESHOLD = 0.5  # < 0 disables cooperation
SIMILARITY_FORMULA = "cosine"  # Options: "cosine", "exponential"

# ------------------------------
# Assignment
# ------------------------------
IS_ASSIGN_CLUSTERING = False  # True: oracle prediction, False: similarity
IS_PERIOD_SIMILARITY = False  # restrict end-of-period reassignment to this+next top files
FILES_LIMIT = 0               # serve only the period's top-N files (<= 0: all)

# ------------------------------
# Cache
# ------------------------------
CACHE_POLICY = "fill"         # Options: "fill", "none"
CACHE_STORAGE_SIZE = 20000    # bytes per cache storage
FILE_SIZE = 100               # bytes per file


def defaults() -> dict:
    return {k: v for k, v in globals().items() if k.isupper()}


def make_config(**overrides) -> SimpleNamespace:
    """Fresh copy of the defaults with `overrides` applied, validated."""
    values = defaults()
    for key, value in overrides.items():
        if key not in values:
            raise ConfigError(f"Unknown configuration key: {key}")
        values[key] = value
    return validate_config(SimpleNamespace(**values))


def validate_config(cfg):
    """Resolve named strategies and check bounds before any simulation starts."""
    cfg.SIMILARITY = SimilarityFormula.from_name(cfg.SIMILARITY_FORMULA)
    cfg.CACHE = CachePolicy.from_name(cfg.CACHE_POLICY)
    if not cfg.TRAIN_START_PERIOD <= cfg.TRAIN_END_PERIOD < cfg.TEST_START_PERIOD:
        raise ConfigError(
            f"Need TRAIN_START_PERIOD <= TRAIN_END_PERIOD < TEST_START_PERIOD, got "
            f"{cfg.TRAIN_START_PERIOD}, {cfg.TRAIN_END_PERIOD}, {cfg.TEST_START_PERIOD}")
    if cfg.TRAIN_START_PERIOD < 0:
        raise ConfigError("TRAIN_START_PERIOD must be >= 0")
    if cfg.CLUSTER_NUMBER < 1:
        raise ConfigError(f"CLUSTER_NUMBER must be >= 1, got {cfg.CLUSTER_NUMBER}")
    if cfg.FILE_SIZE <= 0 or cfg.CACHE_STORAGE_SIZE < 0:
        raise ConfigError("FILE_SIZE must be > 0 and CACHE_STORAGE_SIZE >= 0")
    return cfg


def replace_config(cfg, **overrides) -> SimpleNamespace:
    """Copy of an existing configuration with `overrides` applied."""
    values = {k: v for k, v in vars(cfg).items() if k in defaults()}
    values.update(overrides)
    return make_config(**values)
