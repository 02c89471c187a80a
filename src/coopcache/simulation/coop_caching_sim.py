# src/coopcache/simulation/coop_caching_sim.py
import logging
import time
from dataclasses import dataclass
from typing import List, Optional

import pandas as pd

from coopcache.errors import ConfigError, OracleFailure
from coopcache.network.assignment import assign, assign_new_client
from coopcache.network.clustering import (ClusteringResult, assign_training_clients,
                                          train_small_cells)
from coopcache.network.cooperation import arrange_cooperation
from coopcache.network.entities import Period, PeriodState
from coopcache.network.ownership import record_demand
from coopcache.simulation.context import SimulationContext
from coopcache.simulation.workload import build_workload
from coopcache.utils import generate_requests

logger = logging.getLogger(__name__)


def observe_period(ctx: SimulationContext, period: Period):
    """Record the demand of a period that precedes testing. Nothing is served."""
    ctx.period_no = period.id
    for r in period.requests:
        record_demand(period.id, ctx.client(r.client_id), ctx.file(r.file_id))


def prepare(ctx: SimulationContext, cfg):
    """Group the small cells into cache storages and size files and storages."""
    last_trained = cfg.TEST_START_PERIOD - 1
    ctx.cache_storages = arrange_cooperation(
        ctx.small_cells, cfg.COOPERATION_THRESHOLD, cfg.SIMILARITY, last_trained,
        make_content=lambda: cfg.CACHE.build(cfg.CACHE_STORAGE_SIZE))
    for f in ctx.files.values():
        f.size = cfg.FILE_SIZE
    for cs in ctx.cache_storages:
        cs.set_popular_files(last_trained)


def serve_period(ctx: SimulationContext, period: Period, cfg, file_filter=None):
    """Serve every request of `period` against the current assignment."""
    period.advance(PeriodState.SERVING)
    ctx.period_no = period.id
    active = set(file_filter) if file_filter else None
    for r in period.requests:
        if active is not None and r.file_id not in active:
            continue
        client = ctx.client(r.client_id)
        file = ctx.file(r.file_id)
        if client.small_cell is None:
            if client.popularity.is_empty(period.id - 1):
                assign_new_client(ctx, client, file.id)
                period.new_clients.append(client)
            else:
                assign(ctx, client, cfg, file_filter)
        record_demand(period.id, client, file)

        cs = client.small_cell.cache_storage
        size_cached, cf = cs.cache_file(file)
        cf.count += 1
        cf.last_request = r.time
        cs.served += size_cached
        cs.downloaded += file.size - size_cached
        period.served += size_cached
        period.downloaded += file.size - size_cached


def end_period(ctx: SimulationContext, period: Period, cfg, file_filter=None):
    """Compute the hit rate and place this period's new clients by policy."""
    period.advance(PeriodState.ENDING)
    period.cal_rate()
    for c in period.new_clients:
        assign(ctx, c, cfg, file_filter)
    for cs in ctx.cache_storages:
        cs.set_popular_files(period.id)
    period.advance(PeriodState.CLOSED)
    logger.info("End Period %d (%s): hit_rate=%.4f, new_clients=%d",
                period.id, period.end, period.hit_rate, len(period.new_clients))


def reassignment_filter(period: Period, next_period: Optional[Period], limit: int):
    """Files popular in both this and the next period. None without a next period."""
    if next_period is None:
        return None
    this = period.top_files(limit) or period.popular_files
    nxt = set(next_period.top_files(limit) or next_period.popular_files)
    return [f for f in this if f in nxt]


def serve_periods(ctx: SimulationContext, cfg, periods: List[Period]):
    logger.info("Start testing %d periods", len(periods))
    for pn, p in enumerate(periods):
        serve_period(ctx, p, cfg, p.top_files(cfg.FILES_LIMIT))
        if cfg.IS_PERIOD_SIMILARITY:
            nxt = periods[pn + 1] if pn + 1 < len(periods) else None
            end_period(ctx, p, cfg, reassignment_filter(p, nxt, cfg.FILES_LIMIT))
        else:
            end_period(ctx, p, cfg, None)
    logger.info("All periods tested")


@dataclass
class SimulationResult:
    cfg: object
    ctx: SimulationContext
    clustering: ClusteringResult

    @property
    def tested(self) -> List[Period]:
        return self.ctx.periods[self.cfg.TEST_START_PERIOD:]

    @property
    def hit_rate(self) -> float:
        served = sum(p.served for p in self.tested)
        downloaded = sum(p.downloaded for p in self.tested)
        return served / (served + downloaded) if served + downloaded > 0 else 0.0

    def periods_frame(self) -> pd.DataFrame:
        return pd.DataFrame([{
            "period": p.id,
            "end": p.end,
            "served": p.served,
            "downloaded": p.downloaded,
            "hit_rate": p.hit_rate,
            "new_clients": len(p.new_clients),
        } for p in self.tested])

    def popularity_frame(self, level: str = "cache_storage") -> pd.DataFrame:
        """Accumulated popularity per entity (rows) and file (columns) at the last period."""
        entities = self.ctx.cache_storages if level == "cache_storage" else self.ctx.small_cells
        last = self.ctx.periods[-1].id
        file_ids = list(self.ctx.files)
        rows = {e.id: [e.popularity.accumulated(last).get(f, 0) for f in file_ids]
                for e in entities}
        return pd.DataFrame.from_dict(rows, orient="index", columns=file_ids)


def run_single_config(workload, cfg, clustering: Optional[ClusteringResult] = None) -> SimulationResult:
    """Train (or reuse a clustering), group cells and serve the test periods."""
    ctx = SimulationContext(cfg, workload)
    if cfg.TEST_START_PERIOD >= len(ctx.periods):
        raise ConfigError(f"TEST_START_PERIOD={cfg.TEST_START_PERIOD} but workload "
                          f"has {len(ctx.periods)} periods")
    for p in ctx.periods[:cfg.TEST_START_PERIOD]:
        observe_period(ctx, p)

    if cfg.IS_TRAINED and clustering is not None:
        logger.info("Reusing clustering of %d clients", len(clustering.client_ids))
        assign_training_clients(ctx, clustering)
    else:
        clustering = train_small_cells(ctx, cfg.TRAIN_START_PERIOD, cfg.TRAIN_END_PERIOD,
                                       cfg.CLUSTER_NUMBER, cfg.IS_SIMILARITY_CLUSTERING,
                                       cfg.SIMILARITY, random_state=cfg.RANDOM_SEED)

    prepare(ctx, cfg)
    serve_periods(ctx, cfg, ctx.periods[cfg.TEST_START_PERIOD:])
    return SimulationResult(cfg, ctx, clustering)


def run_configs(workload, configs, abort_on_failure: bool = True) -> List[SimulationResult]:
    """
    Run each configuration on its own context.

    An OracleFailure aborts the whole batch, or only the failing configuration
    when abort_on_failure is False.
    """
    results = []
    clustering = None
    for i, cfg in enumerate(configs):
        try:
            res = run_single_config(workload, cfg, clustering)
        except OracleFailure:
            if abort_on_failure:
                raise
            logger.exception("Configuration %d aborted", i)
            continue
        clustering = res.clustering
        results.append(res)
    return results


def run_single_experiment(seed, cfg):
    requests = generate_requests(cfg, seed=seed)
    workload = build_workload(requests, cfg.PERIOD_DURATION, origin=0.0)
    res = run_single_config(workload, cfg)
    periods = res.periods_frame()
    return {
        "seed": seed,
        "total_requests": workload.num_requests,
        "served": int(periods["served"].sum()),
        "downloaded": int(periods["downloaded"].sum()),
        "hit_rate": res.hit_rate,
        "num_small_cells": len(res.ctx.small_cells),
        "num_cache_storages": len(res.ctx.cache_storages),
        "num_clients": len(res.ctx.clients),
    }


def run_mc_runs(cfg):
    results = []
    for run in range(cfg.NUM_RUNS):
        seed = cfg.RANDOM_SEED + run
        out = run_single_experiment(seed, cfg)
        results.append(out)
        print(
            f"Run {run+1}/{cfg.NUM_RUNS}: "
            f"formula={cfg.SIMILARITY.value}, "
            f"threshold={cfg.COOPERATION_THRESHOLD}, "
            f"assign={'clustering' if cfg.IS_ASSIGN_CLUSTERING else 'similarity'}, "
            f"hit_rate={out['hit_rate']:.4f}, "
            f"storages={out['num_cache_storages']}/{out['num_small_cells']}"
        )
    df = pd.DataFrame(results)
    return df


if __name__ == "__main__":
    from coopcache.config import make_config
    logging.basicConfig(level=logging.WARNING)
    cfg = make_config()
    t0 = time.time()
    df = run_mc_runs(cfg)
    print("\nSummary:")
    print(df[["seed", "hit_rate", "num_cache_storages", "total_requests"]].to_string(index=False))
    print(f"\nMean hit_rate = {df['hit_rate'].mean():.4f} (std={df['hit_rate'].std():.4f})")
    print(f"Elapsed: {time.time()-t0:.2f}s")
