"""
Institutions — system-wide rules of the game.

Unlike behaviors, institutions see and act on the whole world. Maintenance
institutions run before cognition (so a firm that failed last tick cannot
trade this tick); fiscal institutions run after the markets so they act on
this tick's realized flows. All money still moves through the ledger.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any

from econsim.core.agent import AgentType
from econsim.core.ledger import TransferReason, transfer_money
from econsim.mechanisms.base import Institution, InstitutionPhase

if TYPE_CHECKING:
    from econsim.core.agent import Agent
    from econsim.core.world import WorldState

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------

class BondYieldPayout(Institution):
    """Government pays interest on every bond holding."""

    @property
    def id(self) -> str:
        return "bond_yield_payout"

    @property
    def description(self) -> str:
        return "Sovereign bond yield"

    @property
    def phase(self) -> InstitutionPhase:
        return InstitutionPhase.MAINTENANCE

    def get_default_config(self) -> dict[str, Any]:
        return {"yield_rate": 0.005}

    def apply(self, state: WorldState) -> None:
        rate = self.params(state.config)["yield_rate"]
        govt_id = state.government_id
        for agent in state.active_agents():
            if agent.bonds > 0:
                transfer_money(
                    state, govt_id, agent.id, agent.bonds * rate,
                    TransferReason.BOND_INTEREST,
                )


class StandardBankruptcy(Institution):
    """
    Liquidates firms whose insolvency streak reached the threshold.

    The firm's workers are released, its remaining cash is swept to the
    government, and it is deactivated for good.
    """

    @property
    def id(self) -> str:
        return "standard_bankruptcy"

    @property
    def description(self) -> str:
        return "State liquidation after a short insolvency streak"

    @property
    def phase(self) -> InstitutionPhase:
        return InstitutionPhase.MAINTENANCE

    def get_default_config(self) -> dict[str, Any]:
        return {"insolvency_threshold": 3}

    def apply(self, state: WorldState) -> None:
        threshold = self.params(state.config)["insolvency_threshold"]
        for firm in state.active_agents(AgentType.FIRM):
            if firm.insolvency_streak >= threshold:
                self._liquidate(state, firm)

    def _liquidate(self, state: WorldState, firm: Agent) -> None:
        for other in state.agents.values():
            if other.employed_at == firm.id:
                other.employed_at = None
        if firm.cash > 0:
            transfer_money(
                state, firm.id, state.government_id, firm.cash,
                TransferReason.BANKRUPTCY_LIQUIDATION,
            )
        firm.active = False
        logger.info(
            "Tick %d: firm %s declared bankrupt (%s, streak %d)",
            state.tick, firm.id, self.id, firm.insolvency_streak,
        )


class ForgivingBankruptcy(StandardBankruptcy):
    """Same liquidation, but only after a longer insolvency streak."""

    @property
    def id(self) -> str:
        return "forgiving_bankruptcy"

    @property
    def description(self) -> str:
        return "Forgiving bankruptcy law"

    def get_default_config(self) -> dict[str, Any]:
        return {"insolvency_threshold": 6}


# ---------------------------------------------------------------------------
# Fiscal
# ---------------------------------------------------------------------------

class IncomeTax(Institution):
    """Flat tax on wages households received this tick."""

    @property
    def id(self) -> str:
        return "income_tax"

    @property
    def description(self) -> str:
        return "Flat income tax"

    @property
    def phase(self) -> InstitutionPhase:
        return InstitutionPhase.FISCAL

    def apply(self, state: WorldState) -> None:
        tax_rate = state.config.tax_rate
        if tax_rate <= 0:
            return

        income: dict[str, float] = {}
        for entry in state.tick_entries():
            if entry.reason == TransferReason.WAGE_PAYMENT:
                income[entry.to_id] = income.get(entry.to_id, 0.0) + entry.amount

        govt_id = state.government_id
        for hh in state.active_agents(AgentType.HOUSEHOLD):
            earned = income.get(hh.id, 0.0)
            if earned <= 0:
                continue
            tax = math.floor(earned * tax_rate * 100) / 100
            if tax > 0:
                transfer_money(state, hh.id, govt_id, tax, TransferReason.INCOME_TAX)


class WealthTaxStabilizer(Institution):
    """Taxes non-sovereign cash above a threshold."""

    @property
    def id(self) -> str:
        return "wealth_tax_stabilizer"

    @property
    def description(self) -> str:
        return "Wealth tax stabilizer"

    @property
    def phase(self) -> InstitutionPhase:
        return InstitutionPhase.FISCAL

    def get_default_config(self) -> dict[str, Any]:
        return {"threshold": 2000.0, "rate": 0.02, "min_tax": 1.0}

    def apply(self, state: WorldState) -> None:
        p = self.params(state.config)
        govt_id = state.government_id
        for agent in state.active_agents():
            if agent.is_sovereign or agent.cash <= p["threshold"]:
                continue
            tax = (agent.cash - p["threshold"]) * p["rate"]
            if tax > p["min_tax"]:
                transfer_money(state, agent.id, govt_id, tax, TransferReason.WEALTH_TAX)


class EmergencyWelfare(Institution):
    """Tops up households whose cash falls below the cost of a meal."""

    @property
    def id(self) -> str:
        return "emergency_welfare"

    @property
    def description(self) -> str:
        return "Emergency welfare"

    @property
    def phase(self) -> InstitutionPhase:
        return InstitutionPhase.FISCAL

    def get_default_config(self) -> dict[str, Any]:
        return {"food_cost": 10.0}

    def apply(self, state: WorldState) -> None:
        food_cost = self.params(state.config)["food_cost"]
        govt_id = state.government_id
        for hh in state.active_agents(AgentType.HOUSEHOLD):
            if hh.cash < food_cost:
                transfer_money(
                    state, govt_id, hh.id, food_cost - hh.cash,
                    TransferReason.EMERGENCY_WELFARE,
                )


class WageSubsidy(Institution):
    """
    Government refunds firms a share of the wages they paid this tick.

    Without money printing the government only pays what its cash covers.
    """

    @property
    def id(self) -> str:
        return "wage_subsidy"

    @property
    def description(self) -> str:
        return "Wage subsidy"

    @property
    def phase(self) -> InstitutionPhase:
        return InstitutionPhase.FISCAL

    def apply(self, state: WorldState) -> None:
        rate = state.config.subsidy_rate
        if rate <= 0:
            return
        govt = state.get(state.government_id)
        if govt is None:
            return

        wages: dict[str, float] = {}
        for entry in state.tick_entries():
            if entry.reason == TransferReason.WAGE_PAYMENT:
                wages[entry.from_id] = wages.get(entry.from_id, 0.0) + entry.amount

        for firm in state.active_agents(AgentType.FIRM):
            amount = wages.get(firm.id, 0.0) * rate
            if amount <= 0:
                continue
            if not state.config.money_printing_enabled and govt.cash < amount:
                continue
            transfer_money(state, govt.id, firm.id, amount, TransferReason.SUBSIDY)
