import logging

import pandas as pd
import matplotlib.pyplot as plt
import numpy as np
from coopcache.config import make_config
from coopcache.simulation.coop_caching_sim import run_configs
from coopcache.simulation.workload import build_workload
from coopcache.utils import generate_requests

POLICIES = {
    "similarity_cosine": dict(IS_ASSIGN_CLUSTERING=False, SIMILARITY_FORMULA="cosine"),
    "similarity_exponential": dict(IS_ASSIGN_CLUSTERING=False, SIMILARITY_FORMULA="exponential"),
    "clustering": dict(IS_ASSIGN_CLUSTERING=True, IS_TRAINED=True),
    "no_cooperation": dict(COOPERATION_THRESHOLD=-1, IS_TRAINED=True),
}


def run_all_policies():
    base = make_config()
    all_results = []

    for run in range(base.NUM_RUNS):
        seed = base.RANDOM_SEED + run
        requests = generate_requests(base, seed=seed)
        workload = build_workload(requests, base.PERIOD_DURATION, origin=0.0)
        configs = [make_config(**overrides) for overrides in POLICIES.values()]
        names = {id(c): name for c, name in zip(configs, POLICIES)}
        # one clustering per workload, reused by the IS_TRAINED policies
        results = run_configs(workload, configs, abort_on_failure=False)
        for res in results:
            pol = names[id(res.cfg)]
            df = res.periods_frame()
            df["policy"] = pol
            df["run_idx"] = run + 1
            all_results.append(df)
            print(f"Run {run+1}/{base.NUM_RUNS}: policy={pol}, hit_rate={res.hit_rate:.4f}")

    combined = pd.concat(all_results, ignore_index=True)
    combined.to_csv("results_all_policies.csv", index=False)
    print("\nAll results saved to results_all_policies.csv")

    # --- Compute averages ---
    summary = combined.groupby("policy").agg(
        mean_hit_rate=("hit_rate", "mean"),
        std_hit_rate=("hit_rate", "std"),
        new_clients=("new_clients", "sum"),
    ).reset_index()
    summary = summary.fillna(0)  # handle NaN std
    summary.to_csv("policy_summary.csv", index=False)
    print("\nPolicy summary saved to policy_summary.csv")
    print(summary)

    best_hit = summary.loc[summary["mean_hit_rate"].idxmax()]
    print(f"\nHighest Hit Rate: {best_hit['policy']} "
          f"(avg={best_hit['mean_hit_rate']:.4f}, std={best_hit['std_hit_rate']:.4f})")

    # --- Hit rate per period (first run) ---
    plt.figure(figsize=(10, 5))
    first = combined[combined["run_idx"] == 1]
    for pol in summary["policy"]:
        subset = first[first["policy"] == pol]
        plt.plot(subset["period"], subset["hit_rate"], marker="o", label=pol)
    plt.title("Hit Rate per Period")
    plt.xlabel("Period")
    plt.ylabel("Hit Rate")
    plt.legend()
    plt.grid(True)
    plt.savefig("hit_rate_per_period.png", dpi=300)
    plt.close()

    # --- Bar chart (averages) ---
    plt.figure(figsize=(8, 5))
    plt.bar(summary["policy"], summary["mean_hit_rate"],
            yerr=summary["std_hit_rate"], capsize=5)
    plt.title("Average Hit Rate per Policy")
    plt.ylabel("Hit Rate")
    plt.savefig("avg_hit_rate.png", dpi=300)
    plt.close()

    # --- CDF plot ---
    plt.figure(figsize=(8, 5))
    for pol in summary["policy"]:
        subset = combined[combined["policy"] == pol]["hit_rate"].sort_values()
        yvals = np.arange(1, len(subset)+1) / float(len(subset))
        plt.plot(subset, yvals, label=pol)
    plt.title("CDF of Period Hit Rates")
    plt.xlabel("Hit Rate")
    plt.ylabel("Cumulative Probability")
    plt.grid(True)
    plt.legend()
    plt.savefig("hit_rate_cdf.png", dpi=300)
    plt.close()

    print("\nPlots saved:")
    print("   hit_rate_per_period.png, avg_hit_rate.png, hit_rate_cdf.png")


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    run_all_policies()
