"""
Mechanism registry.

Maps configuration ids to concrete markets, behaviors and institutions.
Lookups of unknown ids return *None*; the kernel reports those as
configuration errors and skips them rather than failing the run.
"""

from __future__ import annotations

from typing import Iterable

from econsim.mechanisms.base import (
    AgentBehavior,
    Institution,
    InstitutionPhase,
    Market,
)


class MechanismRegistry:
    """
    Holds every available mechanism, one table per family.

    Usage::

        registry = MechanismRegistry()
        registry.register_market(StandardLaborMarket())
        registry.register_institution(IncomeTax())
        registry.market("standard_labor_market")
    """

    def __init__(self) -> None:
        self._markets: dict[str, Market] = {}
        self._behaviors: dict[str, AgentBehavior] = {}
        self._institutions: dict[str, Institution] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register_market(self, market: Market) -> None:
        if market.id in self._markets:
            raise KeyError(f"Market '{market.id}' is already registered")
        self._markets[market.id] = market

    def register_behavior(self, behavior: AgentBehavior) -> None:
        if behavior.id in self._behaviors:
            raise KeyError(f"Behavior '{behavior.id}' is already registered")
        self._behaviors[behavior.id] = behavior

    def register_institution(self, institution: Institution) -> None:
        if institution.id in self._institutions:
            raise KeyError(f"Institution '{institution.id}' is already registered")
        if not isinstance(institution.phase, InstitutionPhase):
            raise ValueError(
                f"Institution '{institution.id}' has unknown phase {institution.phase!r}"
            )
        self._institutions[institution.id] = institution

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def market(self, market_id: str) -> Market | None:
        return self._markets.get(market_id)

    def behavior(self, behavior_id: str) -> AgentBehavior | None:
        return self._behaviors.get(behavior_id)

    def institution(self, institution_id: str) -> Institution | None:
        return self._institutions.get(institution_id)

    def institutions_for_phase(
        self, phase: InstitutionPhase, active_ids: Iterable[str],
    ) -> list[Institution]:
        """Active institutions of *phase*, in registration order."""
        active = set(active_ids)
        return [
            inst for inst_id, inst in self._institutions.items()
            if inst_id in active and inst.phase == phase
        ]

    def unknown_institutions(self, active_ids: Iterable[str]) -> list[str]:
        """Configured institution ids with no registered implementation."""
        return [i for i in active_ids if i not in self._institutions]

    @property
    def market_ids(self) -> list[str]:
        return list(self._markets.keys())

    @property
    def behavior_ids(self) -> list[str]:
        return list(self._behaviors.keys())

    @property
    def institution_ids(self) -> list[str]:
        return list(self._institutions.keys())


def default_registry() -> MechanismRegistry:
    """Registry pre-loaded with every shipped mechanism."""
    from econsim.mechanisms.behaviors import (
        BoundedRationalHousehold,
        HeuristicFirm,
        PassiveBank,
    )
    from econsim.mechanisms.institutions import (
        BondYieldPayout,
        EmergencyWelfare,
        ForgivingBankruptcy,
        IncomeTax,
        StandardBankruptcy,
        WageSubsidy,
        WealthTaxStabilizer,
    )
    from econsim.mechanisms.markets import StandardGoodsMarket, StandardLaborMarket

    registry = MechanismRegistry()
    registry.register_market(StandardLaborMarket())
    registry.register_market(StandardGoodsMarket())

    registry.register_behavior(BoundedRationalHousehold())
    registry.register_behavior(HeuristicFirm())
    registry.register_behavior(PassiveBank())

    # Registration order is execution order within a phase
    registry.register_institution(BondYieldPayout())
    registry.register_institution(StandardBankruptcy())
    registry.register_institution(ForgivingBankruptcy())
    registry.register_institution(IncomeTax())
    registry.register_institution(WealthTaxStabilizer())
    registry.register_institution(EmergencyWelfare())
    registry.register_institution(WageSubsidy())
    return registry
