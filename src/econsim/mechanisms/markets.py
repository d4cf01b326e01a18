"""
Market mechanisms — random-matching labor and goods markets.

Both markets settle each match immediately through the accounting guard,
serially, so a unit of goods or a worker can never be sold twice.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any

from econsim.core.agent import AgentType, ResourceType
from econsim.core.ledger import TransferReason, transfer_money, transfer_resource
from econsim.mechanisms.base import Market

if TYPE_CHECKING:
    from econsim.core.rng import DeterministicRNG
    from econsim.core.world import WorldState

logger = logging.getLogger(__name__)


class StandardLaborMarket(Market):
    """
    Random-matching labor market followed by production.

    Households are shuffled once. Each firm first sheds workers above its
    production target, then walks the shuffled list hiring unemployed
    households whose reservation wage is at or below its offer. The wage
    is paid on the spot; a refused payment means no hire. Production then
    turns the employed skill into consumer goods.
    """

    @property
    def id(self) -> str:
        return "standard_labor_market"

    @property
    def description(self) -> str:
        return "Random matching labor market with immediate wage settlement"

    def get_default_config(self) -> dict[str, Any]:
        return {"productivity": 2.0}

    def resolve(self, state: WorldState, rng: DeterministicRNG) -> None:
        params = self.params(state.config)
        firms = state.active_agents(AgentType.FIRM)
        households = state.active_agents(AgentType.HOUSEHOLD)

        # Detach workers from employers that no longer exist or failed
        for hh in households:
            if hh.employed_at is not None:
                employer = state.get(hh.employed_at)
                if employer is None or not employer.active:
                    hh.employed_at = None

        shuffled = rng.shuffle(list(households))

        for firm in firms:
            needed = max(0, firm.production_target)
            workers = [h for h in shuffled if h.employed_at == firm.id]
            hired = len(workers)

            if hired > needed:
                for worker in workers[:hired - needed]:
                    worker.employed_at = None
                hired = needed

            wage_offer = firm.wage_expectation
            for hh in shuffled:
                if hired >= needed:
                    break
                if hh.employed_at is not None:
                    continue
                if wage_offer >= hh.wage_expectation:
                    entry = transfer_money(
                        state, firm.id, hh.id, wage_offer,
                        TransferReason.WAGE_PAYMENT,
                    )
                    if entry is not None:
                        hh.employed_at = firm.id
                        hired += 1

        productivity = params["productivity"]
        for firm in firms:
            total_skill = sum(
                h.skill_level for h in households if h.employed_at == firm.id
            )
            output = math.floor(total_skill * productivity)
            firm.inventory[ResourceType.CONSUMER_GOODS] = firm.stock + output

        logger.debug(
            "Tick %d labor market: %d employed of %d households",
            state.tick,
            sum(1 for h in households if h.employed_at is not None),
            len(households),
        )


class StandardGoodsMarket(Market):
    """
    Random-matching consumer goods market.

    Firms are shuffled once (this breaks price ties). Each household then
    buys one unit at a time from the cheapest stocked firm it can afford
    until it has bought its full need for the tick or nothing affordable
    is left. What it already holds does not reduce the purchase.
    """

    @property
    def id(self) -> str:
        return "standard_goods_market"

    @property
    def description(self) -> str:
        return "Random matching goods market, cheapest seller first"

    def resolve(self, state: WorldState, rng: DeterministicRNG) -> None:
        need = state.config.food_need
        shuffled_firms = rng.shuffle(state.active_agents(AgentType.FIRM))
        households = state.active_agents(AgentType.HOUSEHOLD)

        for hh in households:
            bought = 0
            while bought < need:
                seller = self._cheapest_affordable(shuffled_firms, hh.cash)
                if seller is None:
                    break
                price = seller.sales_price
                entry = transfer_money(
                    state, hh.id, seller.id, price, TransferReason.PURCHASE_GOODS,
                )
                if entry is None:
                    break
                transfer_resource(
                    state, seller.id, hh.id, ResourceType.CONSUMER_GOODS, 1,
                )
                seller.last_revenue += price
                bought += 1

    @staticmethod
    def _cheapest_affordable(firms, cash: float):
        stocked = sorted(
            (f for f in firms if f.stock >= 1),
            key=lambda f: f.sales_price,
        )
        for firm in stocked:
            if cash >= firm.sales_price:
                return firm
        return None
