"""
Metrics Collector — per-tick macro statistics.

Derives GDP, CPI, unemployment, money supply and friends from the current
tick's ledger slice and the agent table. Provides time series extraction
and a JSON export of the metrics history for charting front-ends.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from econsim.core.agent import AgentType
from econsim.core.ledger import TransferReason

if TYPE_CHECKING:
    from econsim.core.world import WorldState


@dataclass(frozen=True)
class TickMetrics:
    """Aggregate read of one tick."""
    tick: int
    gdp: float                 # value of goods purchases this tick
    cpi: float                 # mean goods price this tick (stale when no trades)
    unemployment_rate: float
    money_supply: float        # all non-sovereign cash
    transaction_count: int
    avg_wage: float
    active_firms: int
    active_households: int = 0
    gini_coefficient: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TickMetrics:
        return cls(**d)


def gini_coefficient(values: list[float]) -> float:
    """Gini of a wealth distribution (0 = equal, 1 = maximally unequal)."""
    if not values:
        return 0.0
    wealth = np.sort(np.asarray(values, dtype=float))
    total = wealth.sum()
    if total <= 0:
        return 0.0
    n = len(wealth)
    ranks = np.arange(1, n + 1)
    return float((2.0 * np.sum(ranks * wealth)) / (n * total) - (n + 1) / n)


class MetricsCollector:
    """
    Computes one :class:`TickMetrics` from a world state.

    CPI and average wage fall back to the previous snapshot when the tick
    saw no goods trades / no wage payments, so a long trade drought keeps
    reporting the last observed price.
    """

    def __init__(self, initial_cpi: float = 10.0):
        self.initial_cpi = initial_cpi

    def collect(self, state: WorldState, money_supply: float) -> TickMetrics:
        tick_entries = [e for e in state.ledger if e.tick == state.tick]
        previous = state.metrics_history[-1] if state.metrics_history else None

        sales = [
            e.amount for e in tick_entries
            if e.reason == TransferReason.PURCHASE_GOODS
        ]
        gdp = float(sum(sales))
        if sales:
            cpi = gdp / len(sales)
        else:
            cpi = previous.cpi if previous is not None else self.initial_cpi

        wages = [
            e.amount for e in tick_entries
            if e.reason == TransferReason.WAGE_PAYMENT
        ]
        if wages:
            avg_wage = float(sum(wages)) / len(wages)
        else:
            avg_wage = previous.avg_wage if previous is not None else 0.0

        households = state.active_agents(AgentType.HOUSEHOLD)
        unemployed = sum(1 for h in households if h.employed_at is None)
        unemployment = unemployed / len(households) if households else 0.0

        return TickMetrics(
            tick=state.tick,
            gdp=gdp,
            cpi=cpi,
            unemployment_rate=unemployment,
            money_supply=money_supply,
            transaction_count=len(tick_entries),
            avg_wage=avg_wage,
            active_firms=len(state.active_agents(AgentType.FIRM)),
            active_households=len(households),
            gini_coefficient=gini_coefficient([h.cash for h in households]),
        )


def get_time_series(state: WorldState, field_name: str) -> list[Any]:
    """Extract a time series for a specific metric field."""
    return [getattr(m, field_name) for m in state.metrics_history]


def export_for_visualization(state: WorldState) -> list[dict[str, Any]]:
    """All retained metrics as JSON-serializable dicts."""
    return [m.to_dict() for m in state.metrics_history]


def export_metrics_json(state: WorldState, indent: int = 2) -> str:
    """Serialize the metrics history, keyed by experiment id and tick."""
    payload = {
        "experiment_id": state.config.experiment_id,
        "tick": state.tick,
        "metrics": export_for_visualization(state),
    }
    return json.dumps(payload, indent=indent)


def export_filename(state: WorldState) -> str:
    return f"econ_sim_{state.config.experiment_id}_tick_{state.tick}.json"
