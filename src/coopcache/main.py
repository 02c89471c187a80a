# src/coopcache/main.py
import logging

from coopcache.config import make_config
from coopcache.simulation.coop_caching_sim import run_configs
from coopcache.simulation.workload import build_workload
from coopcache.utils import generate_requests


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")
    cfg = make_config()
    requests = generate_requests(cfg, seed=cfg.RANDOM_SEED)
    workload = build_workload(requests, cfg.PERIOD_DURATION, origin=0.0)

    res, = run_configs(workload, [cfg])
    # save results
    res.periods_frame().to_csv("results_periods.csv", index=False)
    res.popularity_frame("small_cell").to_csv(
        f"cluster_file_popularity_{cfg.TRAIN_START_PERIOD}_{cfg.TRAIN_END_PERIOD}.csv")
    res.clustering.to_frame().to_csv("clustering_result.csv", index=False)
    print(f"Overall hit rate: {res.hit_rate:.4f}")
    print("Results saved to results_periods.csv")


if __name__ == "__main__":
    main()
