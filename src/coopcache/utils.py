# src/coopcache/utils.py
import numpy as np
import pandas as pd


def set_seed(seed: int):
    """Set numpy random seed for reproducibility."""
    np.random.seed(seed)


def sample_zipf_catalog(num_files: int, alpha: float, size: int, ranking=None):
    """
    Sample `size` file requests from a Zipf distribution over a finite catalog.

    Args:
        num_files (int): total number of unique files in the catalog
        alpha (float): Zipf skew parameter (>0). Higher alpha = more skew.
        size (int): number of requests to generate
        ranking (np.ndarray, optional): file index at each popularity rank.
            Defaults to the identity ranking (file 0 most popular).

    Returns:
        np.ndarray: array of requested file indices [0 .. num_files-1]
    """
    # ranks 1..N
    ranks = np.arange(1, num_files + 1)
    # compute unnormalized probabilities ~ 1/r^alpha
    weights = 1.0 / np.power(ranks, alpha)
    # normalize
    probs = weights / weights.sum()
    if ranking is None:
        ranking = np.arange(num_files)
    # sample ranks, then map to files
    return ranking[np.random.choice(num_files, size=size, p=probs)]


def generate_requests(cfg, seed=None) -> pd.DataFrame:
    """
    Synthetic request stream with community structure.

    Clients are split into NUM_COMMUNITIES communities; each community draws
    from the same Zipf law over its own shuffled ranking of the catalog.
    Clients join at a random period and request uniformly over the remaining
    time.

    Returns:
        pd.DataFrame with columns time, file_id, client_id sorted by time
    """
    if seed is not None:
        set_seed(seed)
    horizon = cfg.NUM_PERIODS * cfg.PERIOD_DURATION
    rankings = [np.random.permutation(cfg.NUM_FILES) for _ in range(cfg.NUM_COMMUNITIES)]

    frames = []
    for c in range(cfg.NUM_CLIENTS):
        community = c % cfg.NUM_COMMUNITIES
        files = sample_zipf_catalog(cfg.NUM_FILES, cfg.ZIPF_ALPHA, cfg.REQUESTS_PER_CLIENT,
                                    ranking=rankings[community])
        joined = np.random.randint(cfg.NUM_PERIODS) * cfg.PERIOD_DURATION
        times = np.random.uniform(joined, horizon, size=cfg.REQUESTS_PER_CLIENT)
        frames.append(pd.DataFrame({
            "time": times,
            "file_id": [f"f{int(f)}" for f in files],
            "client_id": f"c{c}",
        }))
    df = pd.concat(frames, ignore_index=True)
    return df.sort_values("time", kind="stable").reset_index(drop=True)
