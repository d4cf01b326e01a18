"""
Base classes for swappable simulation mechanisms.

Three capability families, each keyed by a stable string id and selected
per run by the experiment configuration:

    Market       — ``resolve(state, rng)``: match and settle one good/factor
    AgentBehavior — ``decide(agent, state, rng)``: one agent's own update
    Institution  — ``apply(state)``: system-wide rule with enforcement power

Adding a rule means subclassing one of these and registering it; the
kernel never changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any

from econsim.core.agent import AgentType

if TYPE_CHECKING:
    from econsim.core.agent import Agent
    from econsim.core.config import ExperimentConfig
    from econsim.core.rng import DeterministicRNG
    from econsim.core.world import WorldState


class InstitutionPhase(str, Enum):
    """Where in the tick an institution runs."""
    MAINTENANCE = "maintenance"  # before cognition
    FISCAL = "fiscal"            # after markets


class Mechanism(ABC):
    """Common identity and parameter handling for all mechanisms."""

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique registry key."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description."""

    def get_default_config(self) -> dict[str, Any]:
        """Default tunables; overridden per run via ``config.mechanisms``."""
        return {}

    def params(self, config: ExperimentConfig) -> dict[str, Any]:
        return config.mechanism_params(self.id, self.get_default_config())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


class Market(Mechanism):
    """Resolves all trades of one good or factor for the tick."""

    @abstractmethod
    def resolve(self, state: WorldState, rng: DeterministicRNG) -> None:
        """Match and settle; every transfer goes through the ledger guard."""


class AgentBehavior(Mechanism):
    """
    Per-agent cognition for one agent type.

    ``decide`` reads the current world and writes only the agent's own
    fields; refused transfers are simply skipped.
    """

    @property
    @abstractmethod
    def agent_type(self) -> AgentType:
        """The agent type this behavior governs."""

    @abstractmethod
    def decide(
        self, agent: Agent, state: WorldState, rng: DeterministicRNG,
    ) -> None:
        """Update *agent* for this tick."""


class Institution(Mechanism):
    """System-wide rule applied once per tick in its phase."""

    @property
    @abstractmethod
    def phase(self) -> InstitutionPhase:
        """Maintenance (pre-cognition) or fiscal (post-market)."""

    @abstractmethod
    def apply(self, state: WorldState) -> None:
        """Apply the rule to the whole world."""
