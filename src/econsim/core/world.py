"""
World state — the whole simulated universe at one tick.

A world state at tick T+1 is a pure function of the state at tick T. The
kernel never mutates its input: it works on :meth:`WorldState.clone`,
which makes replaying a tick or branching into alternative futures a
matter of keeping the old object around.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any

from econsim.core.agent import Agent, AgentType
from econsim.core.config import ExperimentConfig
from econsim.core.ledger import Diagnostic, LedgerEntry
from econsim.metrics.collector import TickMetrics


@dataclass
class WorldState:
    """Agents, ledger, metrics history, config and generator state."""
    tick: int
    agents: dict[str, Agent]
    config: ExperimentConfig
    rng_state: int
    ledger: list[LedgerEntry] = field(default_factory=list)
    metrics_history: list[TickMetrics] = field(default_factory=list)
    # Non-fatal problems seen while computing the latest tick
    diagnostics: list[Diagnostic] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get(self, agent_id: str | None) -> Agent | None:
        if agent_id is None:
            return None
        return self.agents.get(agent_id)

    def active_agents(self, agent_type: AgentType | None = None) -> list[Agent]:
        """Active agents in mapping order, optionally of one type."""
        return [
            a for a in self.agents.values()
            if a.active and (agent_type is None or a.type == agent_type)
        ]

    @property
    def government_id(self) -> str | None:
        """Id of the first active government, if there is one."""
        for a in self.agents.values():
            if a.type == AgentType.GOVERNMENT and a.active:
                return a.id
        return None

    def tick_entries(self) -> list[LedgerEntry]:
        """Ledger entries logged during the current tick."""
        return [e for e in self.ledger if e.tick == self.tick]

    @property
    def latest_metrics(self) -> TickMetrics | None:
        return self.metrics_history[-1] if self.metrics_history else None

    # ------------------------------------------------------------------
    # Copying & serialization
    # ------------------------------------------------------------------
    def clone(self) -> WorldState:
        """Deep copy of mutable parts; ledger entries and config are shared."""
        return WorldState(
            tick=self.tick,
            agents={aid: copy.deepcopy(a) for aid, a in self.agents.items()},
            config=self.config,
            rng_state=self.rng_state,
            ledger=list(self.ledger),
            metrics_history=list(self.metrics_history),
            diagnostics=list(self.diagnostics),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tick": self.tick,
            "rng_state": self.rng_state,
            "config": self.config.to_dict(),
            "agents": {aid: a.to_dict() for aid, a in self.agents.items()},
            "ledger": [e.to_dict() for e in self.ledger],
            "metrics_history": [m.to_dict() for m in self.metrics_history],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> WorldState:
        return cls(
            tick=d["tick"],
            rng_state=d["rng_state"],
            config=ExperimentConfig.from_dict(d["config"]),
            agents={aid: Agent.from_dict(a) for aid, a in d["agents"].items()},
            ledger=[LedgerEntry.from_dict(e) for e in d.get("ledger", [])],
            metrics_history=[
                TickMetrics.from_dict(m) for m in d.get("metrics_history", [])
            ],
            diagnostics=[Diagnostic(**x) for x in d.get("diagnostics", [])],
        )

    def to_json(self, indent: int | None = None) -> str:
        """
        Deterministic JSON; identical states give identical strings.

        Key order follows the agent mapping so a restored state iterates
        agents in the same order as the original.
        """
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, s: str) -> WorldState:
        return cls.from_dict(json.loads(s))

    def __repr__(self) -> str:
        return (
            f"WorldState(tick={self.tick}, agents={len(self.agents)}, "
            f"ledger={len(self.ledger)}, experiment={self.config.experiment_id!r})"
        )
