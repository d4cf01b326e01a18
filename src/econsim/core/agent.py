"""
Core agent dataclass for the economic simulator.

One record type covers every actor kind; type-specific fields simply stay
at their defaults for the kinds that do not use them. Agents are never
removed from the world: bankruptcy flips ``active`` to False and the record
is kept for ledger and history integrity.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from econsim.core.rng import DeterministicRNG


class AgentType(str, Enum):
    """Kinds of economic actor."""
    HOUSEHOLD = "HOUSEHOLD"
    FIRM = "FIRM"
    BANK = "BANK"
    GOVERNMENT = "GOVERNMENT"
    CENTRAL_BANK = "CENTRAL_BANK"


class ResourceType(str, Enum):
    """Kinds of inventory an agent can hold."""
    LABOR = "LABOR"
    RAW_MATERIALS = "RAW_MATERIALS"
    CONSUMER_GOODS = "CONSUMER_GOODS"
    CAPITAL_EQUIPMENT = "CAPITAL_EQUIPMENT"


# Sovereign agents create and destroy money, so they may overdraft.
SOVEREIGN_TYPES: frozenset[AgentType] = frozenset({
    AgentType.GOVERNMENT, AgentType.CENTRAL_BANK,
})

GOVERNMENT_ID = "GOVT_01"
CENTRAL_BANK_ID = "CB_01"


def empty_inventory() -> dict[ResourceType, float]:
    return {r: 0.0 for r in ResourceType}


@dataclass
class AgentMemory:
    """Exponential moving averages an agent keeps about itself."""
    avg_profit: float = 0.0
    avg_revenue: float = 0.0
    avg_inventory: float = 0.0
    avg_expenses: float = 0.0


@dataclass
class Agent:
    """A single economic actor."""

    # === Identity ===
    id: str
    type: AgentType

    # === Balance sheet ===
    cash: float = 0.0
    inventory: dict[ResourceType, float] = field(default_factory=empty_inventory)
    bonds: float = 0.0
    debt: float = 0.0

    # === Beliefs ===
    price_beliefs: dict[ResourceType, float] = field(default_factory=empty_inventory)
    wage_expectation: float = 0.0  # reservation wage (household) / wage offer (firm)
    memory: AgentMemory = field(default_factory=AgentMemory)

    # === Lifecycle ===
    active: bool = True

    # === Firm ===
    sales_price: float = 0.0
    production_target: int = 0
    insolvency_streak: int = 0
    last_profit: float = 0.0
    last_revenue: float = 0.0   # revenue accumulated during the current tick
    last_expenses: float = 0.0

    # === Household ===
    current_utility: float = 0.0
    needs_satisfaction: float = 1.0
    employed_at: str | None = None
    starvation_streak: int = 0
    skill_level: float = 1.0

    @property
    def is_sovereign(self) -> bool:
        return self.type in SOVEREIGN_TYPES

    @property
    def stock(self) -> float:
        """Consumer goods on hand."""
        return self.inventory.get(ResourceType.CONSUMER_GOODS, 0.0)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["type"] = self.type.value
        d["inventory"] = {r.value: q for r, q in self.inventory.items()}
        d["price_beliefs"] = {r.value: p for r, p in self.price_beliefs.items()}
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Agent:
        data = dict(d)
        data["type"] = AgentType(data["type"])
        data["inventory"] = {
            ResourceType(k): v for k, v in data.get("inventory", {}).items()
        }
        data["price_beliefs"] = {
            ResourceType(k): v for k, v in data.get("price_beliefs", {}).items()
        }
        data["memory"] = AgentMemory(**data.get("memory", {}))
        return cls(**data)

    def __repr__(self) -> str:
        status = "active" if self.active else "inactive"
        return (
            f"Agent(id={self.id!r}, type={self.type.value}, "
            f"cash={self.cash:.2f}, {status})"
        )


def make_agent(
    agent_type: AgentType,
    agent_id: str,
    rng: DeterministicRNG | None = None,
    goods_price: float = 10.0,
    wage: float = 20.0,
    **overrides: Any,
) -> Agent:
    """
    Build an agent with the type-dependent starting values.

    Households draw their initial skill from *rng* when one is given
    (uniform in [0.8, 1.2)); without it they start at skill 1.0.
    Keyword *overrides* replace any field afterwards.
    """
    beliefs = empty_inventory()
    beliefs[ResourceType.LABOR] = wage
    beliefs[ResourceType.CONSUMER_GOODS] = goods_price
    beliefs[ResourceType.RAW_MATERIALS] = 10.0
    beliefs[ResourceType.CAPITAL_EQUIPMENT] = 100.0

    agent = Agent(id=agent_id, type=agent_type, price_beliefs=beliefs)

    if agent_type == AgentType.FIRM:
        agent.cash = 800.0
        agent.inventory[ResourceType.CONSUMER_GOODS] = 10.0
        agent.wage_expectation = wage
        agent.production_target = 2
        agent.sales_price = goods_price
        agent.memory.avg_inventory = 10.0
    elif agent_type == AgentType.HOUSEHOLD:
        skill = 1.0 if rng is None else 0.8 + rng.next() * 0.4
        agent.cash = 150.0
        agent.inventory[ResourceType.CONSUMER_GOODS] = 2.0
        agent.skill_level = skill
        agent.wage_expectation = wage * skill
        agent.current_utility = 10.0
    elif agent_type == AgentType.BANK:
        agent.cash = 10000.0
    elif agent_type == AgentType.GOVERNMENT:
        agent.cash = 5000.0
    elif agent_type == AgentType.CENTRAL_BANK:
        agent.cash = 1000000.0

    for key, value in overrides.items():
        if not hasattr(agent, key):
            raise AttributeError(f"Agent has no field '{key}'")
        setattr(agent, key, value)
    return agent
