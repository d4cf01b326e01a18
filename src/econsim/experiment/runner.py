"""
Experiment Runner — batches of independent economies.

Thin caller of the kernel: every run starts from its own config and shares
no mutable state with any other run, so results depend only on the configs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from econsim.core.agent import AgentType
from econsim.core.config import ExperimentConfig
from econsim.core.engine import SimulationEngine
from econsim.core.world import WorldState
from econsim.mechanisms.registry import MechanismRegistry
from econsim.metrics.collector import TickMetrics


@dataclass
class ExperimentResult:
    """Final world plus headline numbers for one economy."""
    config: ExperimentConfig
    final_state: WorldState
    metrics: list[TickMetrics]
    ticks_run: int
    mean_gdp: float
    mean_unemployment: float
    final_money_supply: float
    final_active_firms: int
    bankruptcies: int


@dataclass
class ComparisonResult:
    """Named results and each variant's config delta against the first."""
    results: dict[str, ExperimentResult]
    config_diffs: dict[str, Any]


class ExperimentRunner:
    """
    Drives whole runs through a single :class:`SimulationEngine`.

    The engine is stateless between runs, so one runner can be reused for
    any number of experiments.
    """

    def __init__(self, registry: MechanismRegistry | None = None):
        self.engine = SimulationEngine(registry)

    def run_experiment(
        self, config: ExperimentConfig, ticks: int = 50,
    ) -> ExperimentResult:
        """Initialize *config*, advance *ticks* times and summarize."""
        state = self._advance(self.engine.initialize(config), ticks)
        history = list(state.metrics_history)
        latest = state.latest_metrics
        firms = [a for a in state.agents.values() if a.type == AgentType.FIRM]

        return ExperimentResult(
            config=config,
            final_state=state,
            metrics=history,
            ticks_run=state.tick,
            mean_gdp=_mean([m.gdp for m in history]),
            mean_unemployment=_mean([m.unemployment_rate for m in history]),
            final_money_supply=latest.money_supply if latest else 0.0,
            final_active_firms=sum(1 for f in firms if f.active),
            bankruptcies=sum(1 for f in firms if not f.active),
        )

    def compare_experiments(
        self, configs: dict[str, ExperimentConfig], ticks: int = 50,
    ) -> ComparisonResult:
        """
        Run every config; diff each one against the first.

        Diff keys read ``"<first>_vs_<other>"``.
        """
        results = {
            label: self.run_experiment(config, ticks)
            for label, config in configs.items()
        }

        diffs: dict[str, Any] = {}
        labels = list(configs)
        if labels:
            baseline_label = labels[0]
            baseline = configs[baseline_label]
            for label in labels[1:]:
                diffs[f"{baseline_label}_vs_{label}"] = baseline.diff(configs[label])

        return ComparisonResult(results=results, config_diffs=diffs)

    def run_ab_test(
        self,
        config_a: ExperimentConfig,
        config_b: ExperimentConfig,
        label_a: str = "A",
        label_b: str = "B",
        ticks: int = 50,
    ) -> ComparisonResult:
        """Two-way comparison with ``config_a`` as the baseline."""
        return self.compare_experiments(
            {label_a: config_a, label_b: config_b}, ticks=ticks,
        )

    def run_parameter_sweep(
        self,
        base_config: ExperimentConfig,
        param_name: str,
        values: list[Any],
        ticks: int = 50,
    ) -> dict[str, ExperimentResult]:
        """
        One run per value of a single config field.

        Args:
            base_config: Config every variant is derived from
            param_name: ExperimentConfig field to vary
            values: Values assigned to that field, in run order
            ticks: Ticks per run

        Returns:
            ``"<param_name>=<value>"`` -> ExperimentResult
        """
        results: dict[str, ExperimentResult] = {}
        for value in values:
            label = f"{param_name}={value}"
            variant = base_config.replace(
                **{param_name: value},
                experiment_id=f"{base_config.experiment_id}_sweep_{label}",
            )
            results[label] = self.run_experiment(variant, ticks)
        return results

    def run_multi_seed(
        self, config: ExperimentConfig, seeds: list[int], ticks: int = 50,
    ) -> list[ExperimentResult]:
        """Same economy under several seeds, for spread across outcomes."""
        return [
            self.run_experiment(
                config.replace(
                    random_seed=seed,
                    experiment_id=f"{config.experiment_id}_seed{seed}",
                ),
                ticks,
            )
            for seed in seeds
        ]

    def _advance(self, state: WorldState, ticks: int) -> WorldState:
        for state in self.engine.iterate(state, ticks):
            pass
        return state


def _mean(values: list[float]) -> float:
    return float(np.mean(values)) if values else 0.0
