"""
Ledger and accounting guard.

Every movement of money or goods between agents goes through
:func:`transfer_money` or :func:`transfer_resource`. Both either apply the
whole transfer or do nothing at all; a refusal is a normal result
(``None`` / ``False``) that the caller branches on, never an exception.

:func:`validate_invariants` is the once-per-tick diagnostic pass. Only a
non-finite money supply is fatal.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from econsim.core.agent import ResourceType

if TYPE_CHECKING:
    from econsim.core.world import WorldState

logger = logging.getLogger(__name__)


class TransferReason(str, Enum):
    """Closed vocabulary of reasons a ledger entry can carry."""
    WAGE_PAYMENT = "WAGE_PAYMENT"
    PURCHASE_GOODS = "PURCHASE_GOODS"
    INCOME_TAX = "INCOME_TAX"
    WEALTH_TAX = "WEALTH_TAX"
    SUBSIDY = "SUBSIDY"
    EMERGENCY_WELFARE = "EMERGENCY_WELFARE"
    BANKRUPTCY_LIQUIDATION = "BANKRUPTCY_LIQUIDATION"
    BOND_INTEREST = "BOND_INTEREST"
    BOND_PURCHASE = "BOND_PURCHASE"
    BOND_REDEMPTION = "BOND_REDEMPTION"


@dataclass(frozen=True)
class LedgerEntry:
    """One completed money transfer. Never mutated after creation."""
    tick: int
    from_id: str
    to_id: str
    amount: float
    reason: TransferReason

    def to_dict(self) -> dict[str, Any]:
        return {
            "tick": self.tick,
            "from_id": self.from_id,
            "to_id": self.to_id,
            "amount": self.amount,
            "reason": self.reason.value,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> LedgerEntry:
        return cls(
            tick=d["tick"], from_id=d["from_id"], to_id=d["to_id"],
            amount=d["amount"], reason=TransferReason(d["reason"]),
        )


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem observed while computing a tick."""
    tick: int
    kind: str  # 'negative_cash' | 'unknown_mechanism' | 'behavior_type_mismatch'
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"tick": self.tick, "kind": self.kind, "message": self.message}


class InvariantViolation(RuntimeError):
    """Raised when the accounting state can no longer be trusted."""


def transfer_money(
    state: WorldState,
    from_id: str | None,
    to_id: str | None,
    amount: float,
    reason: TransferReason,
) -> LedgerEntry | None:
    """
    Move *amount* of cash from one agent to another and log it.

    Refused (returns ``None``, no state change) when the amount is not
    positive, either id does not resolve to an active agent, or a
    non-sovereign sender cannot cover the amount.
    """
    reason = TransferReason(reason)
    if not amount > 0:
        return None
    sender = state.agents.get(from_id) if from_id is not None else None
    receiver = state.agents.get(to_id) if to_id is not None else None
    if sender is None or receiver is None:
        return None
    if not sender.active or not receiver.active:
        return None
    if not sender.is_sovereign and sender.cash < amount:
        return None

    sender.cash -= amount
    receiver.cash += amount

    entry = LedgerEntry(
        tick=state.tick, from_id=sender.id, to_id=receiver.id,
        amount=amount, reason=reason,
    )
    state.ledger.append(entry)
    return entry


def transfer_resource(
    state: WorldState,
    from_id: str | None,
    to_id: str | None,
    resource: ResourceType,
    amount: float,
) -> bool:
    """Move inventory between agents; ``False`` means nothing moved."""
    if not amount > 0:
        return False
    sender = state.agents.get(from_id) if from_id is not None else None
    receiver = state.agents.get(to_id) if to_id is not None else None
    if sender is None or receiver is None:
        return False
    if not sender.active or not receiver.active:
        return False

    resource = ResourceType(resource)
    if sender.inventory.get(resource, 0.0) < amount:
        return False

    sender.inventory[resource] = sender.inventory.get(resource, 0.0) - amount
    receiver.inventory[resource] = receiver.inventory.get(resource, 0.0) + amount
    return True


def validate_invariants(
    state: WorldState, tolerance: float = 1e-4,
) -> tuple[float, list[Diagnostic]]:
    """
    Recompute the money supply and report accounting anomalies.

    Returns ``(money_supply, diagnostics)`` where money supply is the sum
    of all non-sovereign cash, active or not. Negative cash beyond
    *tolerance* on a non-sovereign agent is reported, not corrected.

    Raises:
        InvariantViolation: if the money supply is not a finite number.
    """
    money_supply = 0.0
    diagnostics: list[Diagnostic] = []

    for agent in state.agents.values():
        if agent.is_sovereign:
            continue
        money_supply += agent.cash
        if agent.cash < -tolerance:
            message = f"Agent {agent.id} has negative cash: {agent.cash}"
            logger.warning("Invariant violation at tick %d: %s", state.tick, message)
            diagnostics.append(Diagnostic(state.tick, "negative_cash", message))

    if not math.isfinite(money_supply):
        raise InvariantViolation(
            f"Money supply became non-finite at tick {state.tick}: {money_supply}"
        )
    return money_supply, diagnostics
