#!/usr/bin/env python3
"""Run a baseline economic simulation and print per-tick metrics."""

import logging
import sys
from pathlib import Path

from econsim.core.config import ExperimentConfig
from econsim.core.engine import SimulationEngine
from econsim.metrics.collector import export_filename, export_metrics_json


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = ExperimentConfig(
        experiment_id="BASELINE",
        random_seed=1337,
        active_institutions=(
            "bond_yield_payout",
            "standard_bankruptcy",
            "income_tax",
            "emergency_welfare",
        ),
    )
    ticks = 60

    print(f"=== Economic simulator: {config.name} ({config.experiment_id}) ===")
    print(f"Seed: {config.random_seed}")
    print(f"Households / firms / banks: "
          f"{config.initial_households} / {config.initial_firms} / {config.initial_banks}")
    print(f"Markets: {', '.join(config.active_markets)}")
    print(f"Institutions: {', '.join(config.active_institutions)}")
    print()

    engine = SimulationEngine()
    state = engine.initialize(config)

    print(f"{'Tick':>4} {'GDP':>8} {'CPI':>7} {'Unemp':>6} {'M1':>10} "
          f"{'Txns':>5} {'Wage':>7} {'Firms':>5} {'Gini':>5}")
    print("-" * 68)

    for state in engine.iterate(state, ticks):
        m = state.latest_metrics
        print(
            f"{m.tick:4d} {m.gdp:8.1f} {m.cpi:7.2f} "
            f"{m.unemployment_rate * 100:5.1f}% {m.money_supply:10.1f} "
            f"{m.transaction_count:5d} {m.avg_wage:7.2f} "
            f"{m.active_firms:5d} {m.gini_coefficient:5.2f}"
        )
        for diag in state.diagnostics:
            print(f"     ! {diag.kind}: {diag.message}")

    out_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    if out_dir is not None:
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / export_filename(state)
        path.write_text(export_metrics_json(state))
        print(f"\nMetrics written to {path}")


if __name__ == "__main__":
    main()
