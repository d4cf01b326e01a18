"""
Agent behaviors — per-agent cognition run once per tick.

A behavior reads the current world and rewrites only its own agent. The
one exception is household saving: bond purchases and redemptions are
settled with the government through the accounting guard, so they are
logged and refused like any other transfer.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from econsim.core.agent import AgentType, ResourceType
from econsim.core.ledger import TransferReason, transfer_money
from econsim.mechanisms.base import AgentBehavior

if TYPE_CHECKING:
    from econsim.core.agent import Agent
    from econsim.core.rng import DeterministicRNG
    from econsim.core.world import WorldState


def update_ema(current: float, value: float, alpha: float) -> float:
    """One step of an exponential moving average."""
    return current * (1.0 - alpha) + value * alpha


class BoundedRationalHousehold(AgentBehavior):
    """
    Household with adaptive expectations.

    Each tick: skill drifts with employment, food is eaten from inventory,
    utility is scored, the reservation wage adapts, and surplus cash is
    parked in government bonds (or bonds are cashed in when short).
    """

    @property
    def id(self) -> str:
        return "bounded_rational_household"

    @property
    def description(self) -> str:
        return "Household with bounded rationality and adaptive wage expectations"

    @property
    def agent_type(self) -> AgentType:
        return AgentType.HOUSEHOLD

    def get_default_config(self) -> dict[str, Any]:
        return {
            "min_skill": 0.5,
            "max_skill": 2.0,
            "skill_learn_rate": 0.01,
            "skill_decay_rate": 0.005,
            "starvation_threshold": 3,
            "wage_decay": 0.95,
            "panic_wage_decay": 0.8,
            "min_reservation_wage": 1.0,
            "happy_utility": 5.0,
            "wage_rise_base": 1.01,
            "wage_rise_spread": 0.02,
            "leisure_utility": 2.0,
            "buffer_multiple": 3.0,
            "savings_ratio": 0.5,
        }

    def decide(
        self, agent: Agent, state: WorldState, rng: DeterministicRNG,
    ) -> None:
        p = self.params(state.config)
        need = state.config.food_need
        employed = agent.employed_at is not None

        # Skill dynamics
        if employed:
            agent.skill_level = min(
                p["max_skill"], agent.skill_level + p["skill_learn_rate"],
            )
        else:
            agent.skill_level = max(
                p["min_skill"], agent.skill_level - p["skill_decay_rate"],
            )

        # Consumption
        food = agent.inventory.get(ResourceType.CONSUMER_GOODS, 0.0)
        consumed = min(food, need)
        agent.inventory[ResourceType.CONSUMER_GOODS] = food - consumed
        if consumed < need:
            agent.starvation_streak += 1
        else:
            agent.starvation_streak = 0
        agent.needs_satisfaction = consumed / need if need > 0 else 1.0

        agent.current_utility = (
            math.log(consumed + 1) * 10
            + (0.0 if employed else p["leisure_utility"])
        )

        # Reservation wage
        if not employed:
            decay = p["wage_decay"]
            if agent.starvation_streak >= p["starvation_threshold"]:
                decay = p["panic_wage_decay"]
            agent.wage_expectation = max(
                p["min_reservation_wage"], agent.wage_expectation * decay,
            )
        elif agent.current_utility > p["happy_utility"]:
            rise = p["wage_rise_base"] + rng.next() * p["wage_rise_spread"]
            agent.wage_expectation *= rise

        self._manage_savings(agent, state, p, need)

    def _manage_savings(
        self, agent: Agent, state: WorldState, p: dict[str, Any], need: int,
    ) -> None:
        latest = state.latest_metrics
        cpi = latest.cpi if latest is not None else state.config.initial_goods_price
        cost_of_living = cpi * need
        buffer = cost_of_living * p["buffer_multiple"]
        govt_id = state.government_id

        if agent.cash > buffer:
            amount = (agent.cash - buffer) * p["savings_ratio"]
            if transfer_money(
                state, agent.id, govt_id, amount, TransferReason.BOND_PURCHASE,
            ) is not None:
                agent.bonds += amount
        elif agent.cash < cost_of_living and agent.bonds > 0:
            amount = min(agent.bonds, cost_of_living - agent.cash)
            if transfer_money(
                state, govt_id, agent.id, amount, TransferReason.BOND_REDEMPTION,
            ) is not None:
                agent.bonds -= amount


class HeuristicFirm(AgentBehavior):
    """
    Firm steering price and output from smoothed signals.

    Keeps EMAs of its profit, revenue, expenses and inventory; tracks an
    insolvency streak; cuts price hard on a glut and nudges it otherwise;
    and moves its production target one unit at a time, with occasional
    noise drawn from the generator.
    """

    @property
    def id(self) -> str:
        return "heuristic_firm"

    @property
    def description(self) -> str:
        return "Firm with heuristic pricing and production planning"

    @property
    def agent_type(self) -> AgentType:
        return AgentType.FIRM

    def get_default_config(self) -> dict[str, Any]:
        return {
            "min_cash": 50.0,
            "loss_threshold": -5.0,
            "fire_sale_inventory_mult": 5.0,
            "fire_sale_factor": 0.8,
            "glut_weeks": 3.0,
            "shortage_weeks": 0.5,
            "price_step_down": 0.98,
            "price_step_up": 1.02,
            "min_price": 0.1,
            "expansion_cash": 200.0,
            "decision_noise": 0.05,
        }

    def decide(
        self, agent: Agent, state: WorldState, rng: DeterministicRNG,
    ) -> None:
        p = self.params(state.config)
        alpha = state.config.ema_alpha
        inventory = agent.stock
        mem = agent.memory

        mem.avg_profit = update_ema(mem.avg_profit, agent.last_profit, alpha)
        mem.avg_expenses = update_ema(mem.avg_expenses, agent.last_expenses, alpha)
        mem.avg_revenue = update_ema(
            mem.avg_revenue, agent.last_profit + agent.last_expenses, alpha,
        )
        mem.avg_inventory = update_ema(mem.avg_inventory, inventory, alpha)

        if agent.cash < p["min_cash"] or mem.avg_profit < p["loss_threshold"]:
            agent.insolvency_streak += 1
        else:
            agent.insolvency_streak = max(0, agent.insolvency_streak - 1)

        # Pricing
        target = agent.production_target or 1
        inventory_weeks = mem.avg_inventory / target
        price = agent.sales_price
        if inventory > target * p["fire_sale_inventory_mult"]:
            price *= p["fire_sale_factor"]
        elif inventory_weeks > p["glut_weeks"]:
            price *= p["price_step_down"]
        elif inventory_weeks < p["shortage_weeks"]:
            price *= p["price_step_up"]
        agent.sales_price = max(p["min_price"], price)

        # Production planning
        planned = agent.production_target or 1
        if mem.avg_inventory > planned * 2:
            planned = max(1, planned - 1)
        elif mem.avg_inventory < planned * 0.5 and agent.cash > p["expansion_cash"]:
            planned += 1

        if rng.next() < p["decision_noise"]:
            planned += 1 if rng.next() > 0.5 else -1
        agent.production_target = max(0, planned)


class PassiveBank(AgentBehavior):
    """Bank that holds its balance and does nothing else yet."""

    @property
    def id(self) -> str:
        return "passive_bank"

    @property
    def description(self) -> str:
        return "Commercial bank, passive custody only"

    @property
    def agent_type(self) -> AgentType:
        return AgentType.BANK

    def decide(
        self, agent: Agent, state: WorldState, rng: DeterministicRNG,
    ) -> None:
        return None
