"""Tests for the accounting guard and invariant check."""

import math

import pytest

from econsim.core.agent import (
    AgentType,
    CENTRAL_BANK_ID,
    GOVERNMENT_ID,
    ResourceType,
    make_agent,
)
from econsim.core.ledger import (
    InvariantViolation,
    LedgerEntry,
    TransferReason,
    transfer_money,
    transfer_resource,
    validate_invariants,
)


def _make_pair(make_world, sender_cash=100.0, receiver_cash=0.0):
    a = make_agent(AgentType.HOUSEHOLD, "HH_A", cash=sender_cash)
    b = make_agent(AgentType.FIRM, "FIRM_B", cash=receiver_cash)
    return make_world(a, b, tick=4), a, b


class TestTransferMoney:
    def test_successful_transfer(self, make_world):
        state, a, b = _make_pair(make_world)
        entry = transfer_money(state, "HH_A", "FIRM_B", 33.3, TransferReason.PURCHASE_GOODS)

        assert isinstance(entry, LedgerEntry)
        assert entry.tick == 4
        assert entry.from_id == "HH_A"
        assert entry.to_id == "FIRM_B"
        assert entry.amount == 33.3
        assert entry.reason == TransferReason.PURCHASE_GOODS
        assert a.cash == 100.0 - 33.3
        assert b.cash == 0.0 + 33.3
        assert state.ledger == [entry]

    def test_reason_accepts_string(self, make_world):
        state, _, _ = _make_pair(make_world)
        entry = transfer_money(state, "HH_A", "FIRM_B", 5.0, "WAGE_PAYMENT")
        assert entry.reason is TransferReason.WAGE_PAYMENT

    def test_exact_balance_allowed(self, make_world):
        state, a, _ = _make_pair(make_world, sender_cash=10.0)
        assert transfer_money(state, "HH_A", "FIRM_B", 10.0, TransferReason.PURCHASE_GOODS)
        assert a.cash == 0.0

    def test_insufficient_funds_refused(self, make_world):
        state, a, b = _make_pair(make_world, sender_cash=10.0)
        entry = transfer_money(state, "HH_A", "FIRM_B", 10.01, TransferReason.PURCHASE_GOODS)
        assert entry is None
        assert a.cash == 10.0
        assert b.cash == 0.0
        assert state.ledger == []

    @pytest.mark.parametrize("amount", [0.0, -5.0, math.nan])
    def test_non_positive_amount_refused(self, make_world, amount):
        state, a, _ = _make_pair(make_world)
        assert transfer_money(state, "HH_A", "FIRM_B", amount, TransferReason.SUBSIDY) is None
        assert a.cash == 100.0
        assert state.ledger == []

    def test_unknown_agent_refused(self, make_world):
        state, a, _ = _make_pair(make_world)
        assert transfer_money(state, "HH_A", "NOBODY", 1.0, TransferReason.SUBSIDY) is None
        assert transfer_money(state, "NOBODY", "HH_A", 1.0, TransferReason.SUBSIDY) is None
        assert transfer_money(state, "HH_A", None, 1.0, TransferReason.SUBSIDY) is None
        assert a.cash == 100.0
        assert state.ledger == []

    def test_inactive_agent_refused(self, make_world):
        state, a, b = _make_pair(make_world)
        b.active = False
        assert transfer_money(state, "HH_A", "FIRM_B", 1.0, TransferReason.PURCHASE_GOODS) is None
        assert transfer_money(state, "FIRM_B", "HH_A", 1.0, TransferReason.WAGE_PAYMENT) is None
        assert a.cash == 100.0
        assert state.ledger == []

    @pytest.mark.parametrize("agent_type,agent_id", [
        (AgentType.GOVERNMENT, GOVERNMENT_ID),
        (AgentType.CENTRAL_BANK, CENTRAL_BANK_ID),
    ])
    def test_sovereign_may_overdraw(self, make_world, agent_type, agent_id):
        sovereign = make_agent(agent_type, agent_id, cash=0.0)
        hh = make_agent(AgentType.HOUSEHOLD, "HH_0", cash=0.0)
        state = make_world(sovereign, hh)

        entry = transfer_money(state, agent_id, "HH_0", 250.0, TransferReason.EMERGENCY_WELFARE)
        assert entry is not None
        assert sovereign.cash == -250.0
        assert hh.cash == 250.0

    def test_refusal_is_idempotent(self, make_world):
        state, a, b = _make_pair(make_world, sender_cash=3.0)
        snapshot = state.to_json()
        for _ in range(3):
            assert transfer_money(state, "HH_A", "FIRM_B", 4.0, TransferReason.PURCHASE_GOODS) is None
        assert state.to_json() == snapshot


class TestTransferResource:
    def test_moves_goods(self, make_world):
        state, a, b = _make_pair(make_world)
        assert transfer_resource(state, "FIRM_B", "HH_A", ResourceType.CONSUMER_GOODS, 1)
        assert b.stock == 9.0
        assert a.stock == 3.0

    def test_insufficient_stock_refused(self, make_world):
        state, a, b = _make_pair(make_world)
        b.inventory[ResourceType.CONSUMER_GOODS] = 0.5
        assert not transfer_resource(state, "FIRM_B", "HH_A", ResourceType.CONSUMER_GOODS, 1)
        assert b.stock == 0.5
        assert a.stock == 2.0

    def test_resource_transfers_not_logged(self, make_world):
        state, _, _ = _make_pair(make_world)
        transfer_resource(state, "FIRM_B", "HH_A", ResourceType.CONSUMER_GOODS, 2)
        assert state.ledger == []

    def test_non_positive_refused(self, make_world):
        state, _, _ = _make_pair(make_world)
        assert not transfer_resource(state, "FIRM_B", "HH_A", ResourceType.CONSUMER_GOODS, 0)


class TestValidateInvariants:
    def test_money_supply_excludes_sovereigns(self, make_world):
        govt = make_agent(AgentType.GOVERNMENT, GOVERNMENT_ID)
        hh = make_agent(AgentType.HOUSEHOLD, "HH_0", cash=40.0)
        firm = make_agent(AgentType.FIRM, "FIRM_0", cash=60.0)
        state = make_world(govt, hh, firm)

        supply, diagnostics = validate_invariants(state)
        assert supply == 100.0
        assert diagnostics == []

    def test_inactive_agents_counted(self, make_world):
        firm = make_agent(AgentType.FIRM, "FIRM_0", cash=60.0, active=False)
        state = make_world(firm)
        supply, _ = validate_invariants(state)
        assert supply == 60.0

    def test_negative_cash_reported(self, make_world):
        hh = make_agent(AgentType.HOUSEHOLD, "HH_0", cash=-5.0)
        state = make_world(hh, tick=2)
        supply, diagnostics = validate_invariants(state)

        assert supply == -5.0
        assert len(diagnostics) == 1
        assert diagnostics[0].kind == "negative_cash"
        assert diagnostics[0].tick == 2
        assert "HH_0" in diagnostics[0].message
        # Reported, never corrected
        assert hh.cash == -5.0

    def test_tiny_negative_within_tolerance(self, make_world):
        hh = make_agent(AgentType.HOUSEHOLD, "HH_0", cash=-1e-6)
        _, diagnostics = validate_invariants(make_world(hh))
        assert diagnostics == []

    def test_negative_sovereign_not_reported(self, make_world):
        govt = make_agent(AgentType.GOVERNMENT, GOVERNMENT_ID, cash=-1000.0)
        _, diagnostics = validate_invariants(make_world(govt))
        assert diagnostics == []

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_non_finite_supply_raises(self, make_world, bad):
        hh = make_agent(AgentType.HOUSEHOLD, "HH_0", cash=bad)
        with pytest.raises(InvariantViolation):
            validate_invariants(make_world(hh))
