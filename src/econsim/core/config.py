"""
Master configuration for an economic simulation run.

ALL tunable parameters live here. Mechanism-specific knobs live with the
mechanism (``get_default_config``) and are overridden per run through
``mechanisms``. A config is frozen: once a run starts it never changes.
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class ExperimentConfig:
    """
    Immutable experiment recipe.

    Use ``replace()`` to derive a variant and ``to_dict()`` / ``from_dict()``
    for serialization and comparison.
    """

    # === Experiment identity ===
    experiment_id: str = "BASELINE"
    name: str = "Baseline"
    description: str = "Random-matching labor and goods markets with a flat income tax."
    random_seed: int = 1337

    # === Population ===
    initial_households: int = 50
    initial_firms: int = 10
    initial_banks: int = 1

    # === Starting prices ===
    initial_goods_price: float = 10.0
    initial_wage: float = 20.0

    # === Mechanism selection ===
    # Markets run in exactly this order.
    active_markets: tuple[str, ...] = (
        "standard_labor_market",
        "standard_goods_market",
    )
    # Membership only; order within a phase is the registry's.
    active_institutions: tuple[str, ...] = (
        "bond_yield_payout",
        "standard_bankruptcy",
        "income_tax",
    )
    # Agent type value -> behavior id
    agent_behaviors: Mapping[str, str] = field(default_factory=lambda: {
        "HOUSEHOLD": "bounded_rational_household",
        "FIRM": "heuristic_firm",
        "BANK": "passive_bank",
    })

    # === Fiscal parameters ===
    tax_rate: float = 0.15
    sales_tax: float = 0.05
    subsidy_rate: float = 0.0
    money_printing_enabled: bool = False

    # === Kernel constants ===
    ema_alpha: float = 0.2
    food_need: int = 1                       # consumer goods per household per tick
    ledger_capacity: int = 2000
    metrics_history_length: int = 100
    negative_cash_tolerance: float = 1e-4

    # === Mechanism overrides (mechanism id -> {param: value}) ===
    mechanisms: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Lists coming from JSON are normalized to tuples
        object.__setattr__(self, "active_markets", tuple(self.active_markets))
        object.__setattr__(self, "active_institutions", tuple(self.active_institutions))
        # Mappings are wrapped read-only; states cloned from one run share this object
        object.__setattr__(
            self, "agent_behaviors", MappingProxyType(dict(self.agent_behaviors)),
        )
        object.__setattr__(self, "mechanisms", MappingProxyType({
            mid: MappingProxyType(dict(params))
            for mid, params in self.mechanisms.items()
        }))

    # ------------------------------------------------------------------
    # Mechanism parameters
    # ------------------------------------------------------------------
    def mechanism_params(
        self, mechanism_id: str, defaults: dict[str, Any],
    ) -> dict[str, Any]:
        """Merge a mechanism's defaults with this run's overrides."""
        merged = dict(defaults)
        merged.update(self.mechanisms.get(mechanism_id, {}))
        return merged

    def behavior_for(self, agent_type: str) -> str | None:
        return self.agent_behaviors.get(agent_type)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        d: dict[str, Any] = {}
        for f in dataclasses.fields(self):
            v = getattr(self, f.name)
            if isinstance(v, tuple):
                v = list(v)
            elif isinstance(v, Mapping):
                v = json.loads(json.dumps(_thaw(v)))
            d[f.name] = v
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ExperimentConfig:
        """Deserialize from a dict, ignoring unknown keys."""
        names = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in names})

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    @classmethod
    def from_json(cls, s: str) -> ExperimentConfig:
        return cls.from_dict(json.loads(s))

    def replace(self, **changes: Any) -> ExperimentConfig:
        """Return a copy with *changes* applied."""
        return dataclasses.replace(self, **changes)

    def with_mechanism_params(self, mechanism_id: str, **params: Any) -> ExperimentConfig:
        """Return a copy with extra overrides for one mechanism."""
        mechanisms = {k: dict(v) for k, v in self.mechanisms.items()}
        mechanisms.setdefault(mechanism_id, {}).update(params)
        return self.replace(mechanisms=mechanisms)

    def diff(self, other: ExperimentConfig) -> dict[str, tuple[Any, Any]]:
        """Return parameters that differ between two configs."""
        diffs: dict[str, tuple[Any, Any]] = {}
        for k in self.to_dict():
            v1 = getattr(self, k)
            v2 = getattr(other, k)
            if v1 != v2:
                diffs[k] = (v1, v2)
        return diffs


def _thaw(mapping: Mapping[str, Any]) -> dict[str, Any]:
    """Plain nested dicts from (possibly read-only) mappings."""
    return {
        k: _thaw(v) if isinstance(v, Mapping) else v
        for k, v in mapping.items()
    }
