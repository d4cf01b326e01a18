"""Swappable markets, agent behaviors and institutions."""

from econsim.mechanisms.base import (
    AgentBehavior,
    Institution,
    InstitutionPhase,
    Market,
    Mechanism,
)
from econsim.mechanisms.registry import MechanismRegistry, default_registry
from econsim.mechanisms.markets import StandardGoodsMarket, StandardLaborMarket
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

__all__ = [
    "AgentBehavior",
    "Institution",
    "InstitutionPhase",
    "Market",
    "Mechanism",
    "MechanismRegistry",
    "default_registry",
    "StandardLaborMarket",
    "StandardGoodsMarket",
    "BoundedRationalHousehold",
    "HeuristicFirm",
    "PassiveBank",
    "BondYieldPayout",
    "StandardBankruptcy",
    "ForgivingBankruptcy",
    "IncomeTax",
    "WealthTaxStabilizer",
    "EmergencyWelfare",
    "WageSubsidy",
]
