# src/coopcache/experiments/run_experiments.py
import logging

import pandas as pd
import matplotlib.pyplot as plt
from coopcache.config import make_config
from coopcache.simulation import coop_caching_sim


def sweep_thresholds(thresholds, **overrides):
    results = []
    for th in thresholds:
        cfg = make_config(COOPERATION_THRESHOLD=th, **overrides)
        df = coop_caching_sim.run_mc_runs(cfg)
        results.append({
            "threshold": th,
            "hit_rate": df["hit_rate"].mean(),
            "cache_storages": df["num_cache_storages"].mean()
        })
    return pd.DataFrame(results)


def sweep_cache_sizes(sizes, **overrides):
    results = []
    for csize in sizes:
        cfg = make_config(CACHE_STORAGE_SIZE=csize, **overrides)
        df = coop_caching_sim.run_mc_runs(cfg)
        results.append({
            "cache_size": csize,
            "hit_rate": df["hit_rate"].mean()
        })
    return pd.DataFrame(results)


def sweep_files_limit(limits, **overrides):
    results = []
    for limit in limits:
        cfg = make_config(FILES_LIMIT=limit, **overrides)
        df = coop_caching_sim.run_mc_runs(cfg)
        results.append({
            "files_limit": limit,
            "hit_rate": df["hit_rate"].mean()
        })
    return pd.DataFrame(results)


def plot_results(df, x, y, ylabel, title, filename):
    plt.figure()
    plt.plot(df[x], df[y], marker="o")
    plt.xlabel(x)
    plt.ylabel(ylabel)
    plt.title(title)
    plt.grid(True)
    plt.savefig(filename)
    plt.close()
    print(f"Saved plot: {filename}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    thresholds = [-1, 0.2, 0.4, 0.6, 0.8, 0.95]
    cache_sizes = [2000, 5000, 10000, 20000, 40000]
    files_limits = [0, 50, 100, 200]

    print("Running cooperation threshold sweep...")
    df_th = sweep_thresholds(thresholds)
    plot_results(df_th, "threshold", "hit_rate", "Hit Rate", "Cooperation Threshold vs Hit Rate", "threshold_vs_hit.png")
    plot_results(df_th, "threshold", "cache_storages", "Cache Storages", "Cooperation Threshold vs Groups", "threshold_vs_groups.png")

    print("Running cache size sweep...")
    df_cache = sweep_cache_sizes(cache_sizes)
    plot_results(df_cache, "cache_size", "hit_rate", "Hit Rate", "Cache Size vs Hit Rate", "cache_vs_hit.png")

    print("Running files limit sweep...")
    df_limit = sweep_files_limit(files_limits)
    plot_results(df_limit, "files_limit", "hit_rate", "Hit Rate", "Files Limit vs Hit Rate", "limit_vs_hit.png")
