"""Tests for the labor and goods markets."""

import pytest

from econsim.core.agent import AgentType, ResourceType, make_agent
from econsim.core.config import ExperimentConfig
from econsim.core.ledger import TransferReason
from econsim.core.rng import DeterministicRNG
from econsim.mechanisms.markets import StandardGoodsMarket, StandardLaborMarket


def _firm(agent_id="FIRM_0", **kwargs):
    return make_agent(AgentType.FIRM, agent_id, **kwargs)


def _household(agent_id="HH_0", **kwargs):
    return make_agent(AgentType.HOUSEHOLD, agent_id, **kwargs)


def _hungry(agent_id="HH_0", **kwargs):
    hh = _household(agent_id, **kwargs)
    hh.inventory[ResourceType.CONSUMER_GOODS] = 0.0
    return hh


def _employed(state, firm_id):
    return [a.id for a in state.active_agents(AgentType.HOUSEHOLD) if a.employed_at == firm_id]


class TestLaborMarketHiring:
    def test_hires_and_pays_wage(self, make_world):
        firm = _firm(production_target=1, wage_expectation=20.0)
        hh = _household(wage_expectation=15.0)
        state = make_world(firm, hh, tick=1)

        StandardLaborMarket().resolve(state, DeterministicRNG(1))

        assert hh.employed_at == "FIRM_0"
        assert firm.cash == 780.0
        assert hh.cash == 170.0
        assert len(state.ledger) == 1
        entry = state.ledger[0]
        assert entry.reason == TransferReason.WAGE_PAYMENT
        assert entry.amount == 20.0
        assert entry.tick == 1

    def test_reservation_above_offer_not_hired(self, make_world):
        firm = _firm(production_target=1, wage_expectation=20.0)
        hh = _household(wage_expectation=25.0)
        state = make_world(firm, hh)

        StandardLaborMarket().resolve(state, DeterministicRNG(1))

        assert hh.employed_at is None
        assert state.ledger == []

    def test_unaffordable_wage_means_no_hire(self, make_world):
        firm = _firm(production_target=1, wage_expectation=20.0, cash=5.0)
        hh = _household(wage_expectation=10.0)
        state = make_world(firm, hh)

        StandardLaborMarket().resolve(state, DeterministicRNG(1))

        assert hh.employed_at is None
        assert firm.cash == 5.0

    def test_hires_up_to_target(self, make_world):
        firm = _firm(production_target=2, wage_expectation=20.0)
        households = [_household(f"HH_{i}", wage_expectation=10.0) for i in range(5)]
        state = make_world(firm, *households)

        StandardLaborMarket().resolve(state, DeterministicRNG(9))

        assert len(_employed(state, "FIRM_0")) == 2
        assert firm.cash == 760.0

    def test_fires_surplus_workers(self, make_world):
        firm = _firm(production_target=1)
        households = [
            _household(f"HH_{i}", employed_at="FIRM_0") for i in range(3)
        ]
        state = make_world(firm, *households)

        StandardLaborMarket().resolve(state, DeterministicRNG(4))

        assert len(_employed(state, "FIRM_0")) == 1
        # Existing workers are not paid again
        assert state.ledger == []

    def test_detaches_from_failed_employer(self, make_world):
        dead = _firm("FIRM_X", active=False)
        alive = _firm("FIRM_0", production_target=0)
        hh = _household(employed_at="FIRM_X")
        state = make_world(dead, alive, hh)

        StandardLaborMarket().resolve(state, DeterministicRNG(2))

        assert hh.employed_at is None

    def test_inactive_household_never_hired(self, make_world):
        firm = _firm(production_target=1)
        hh = _household(wage_expectation=1.0, active=False)
        state = make_world(firm, hh)

        StandardLaborMarket().resolve(state, DeterministicRNG(2))

        assert hh.employed_at is None
        assert state.ledger == []


class TestProduction:
    def test_output_is_floor_of_skill_times_productivity(self, make_world):
        firm = _firm(production_target=2, wage_expectation=20.0)
        a = _household("HH_0", wage_expectation=10.0, skill_level=1.3)
        b = _household("HH_1", wage_expectation=10.0, skill_level=0.9)
        state = make_world(firm, a, b)

        StandardLaborMarket().resolve(state, DeterministicRNG(3))

        # floor((1.3 + 0.9) * 2.0) = 4
        assert firm.stock == 14.0

    def test_productivity_override(self, make_world):
        config = ExperimentConfig().with_mechanism_params(
            "standard_labor_market", productivity=3.0,
        )
        firm = _firm(production_target=1, wage_expectation=20.0)
        hh = _household(wage_expectation=10.0)
        state = make_world(firm, hh, config=config)

        StandardLaborMarket().resolve(state, DeterministicRNG(3))

        assert firm.stock == 13.0

    def test_no_workers_no_output(self, make_world):
        firm = _firm(production_target=0)
        state = make_world(firm)
        StandardLaborMarket().resolve(state, DeterministicRNG(3))
        assert firm.stock == 10.0


class TestGoodsMarket:
    def test_buys_from_cheapest(self, make_world):
        pricey = _firm("FIRM_0", sales_price=12.0)
        cheap = _firm("FIRM_1", sales_price=8.0)
        hh = _hungry(cash=100.0)
        state = make_world(pricey, cheap, hh, tick=2)

        StandardGoodsMarket().resolve(state, DeterministicRNG(5))

        assert hh.cash == 92.0
        assert hh.stock == 1.0
        assert cheap.stock == 9.0
        assert pricey.stock == 10.0
        assert cheap.last_revenue == 8.0
        assert [e.to_id for e in state.ledger] == ["FIRM_1"]
        assert state.ledger[0].reason == TransferReason.PURCHASE_GOODS
        assert state.ledger[0].tick == 2

    def test_cannot_afford_anything(self, make_world):
        firm = _firm(sales_price=8.0)
        hh = _hungry(cash=5.0)
        state = make_world(firm, hh)

        StandardGoodsMarket().resolve(state, DeterministicRNG(5))

        assert hh.cash == 5.0
        assert hh.stock == 0.0
        assert state.ledger == []

    def test_skips_out_of_stock_seller(self, make_world):
        empty = _firm("FIRM_0", sales_price=1.0)
        empty.inventory[ResourceType.CONSUMER_GOODS] = 0.0
        stocked = _firm("FIRM_1", sales_price=10.0)
        hh = _hungry(cash=50.0)
        state = make_world(empty, stocked, hh)

        StandardGoodsMarket().resolve(state, DeterministicRNG(5))

        assert hh.stock == 1.0
        assert state.ledger[0].to_id == "FIRM_1"

    def test_holding_does_not_reduce_purchase(self, make_world):
        firm = _firm(sales_price=10.0)
        hh = _household()  # starts with two units
        state = make_world(firm, hh)

        StandardGoodsMarket().resolve(state, DeterministicRNG(5))

        assert [e.reason for e in state.ledger] == [TransferReason.PURCHASE_GOODS]
        assert hh.cash == 140.0
        assert hh.stock == 3.0
        assert firm.stock == 9.0

    def test_fractional_stock_seller_skipped(self, make_world):
        scrap = _firm("FIRM_0", sales_price=1.0)
        scrap.inventory[ResourceType.CONSUMER_GOODS] = 0.5
        full = _firm("FIRM_1", sales_price=10.0)
        hh = _hungry(cash=100.0)
        state = make_world(scrap, full, hh)

        StandardGoodsMarket().resolve(state, DeterministicRNG(5))

        assert scrap.stock == 0.5
        assert scrap.cash == 800.0
        assert full.cash == 810.0
        assert hh.cash == 90.0
        assert hh.stock == 1.0

    def test_larger_need_spans_sellers(self, make_world):
        config = ExperimentConfig(food_need=3)
        cheap = _firm("FIRM_0", sales_price=8.0)
        cheap.inventory[ResourceType.CONSUMER_GOODS] = 2.0
        other = _firm("FIRM_1", sales_price=12.0)
        hh = _hungry(cash=100.0)
        state = make_world(cheap, other, hh, config=config)

        StandardGoodsMarket().resolve(state, DeterministicRNG(5))

        assert hh.stock == 3.0
        assert hh.cash == 72.0
        assert cheap.last_revenue == 16.0
        assert other.last_revenue == 12.0
        assert cheap.stock == 0.0

    def test_inactive_firm_never_sells(self, make_world):
        dead = _firm("FIRM_0", sales_price=1.0, active=False)
        alive = _firm("FIRM_1", sales_price=10.0)
        hh = _hungry(cash=50.0)
        state = make_world(dead, alive, hh)

        StandardGoodsMarket().resolve(state, DeterministicRNG(5))

        assert dead.stock == 10.0
        assert state.ledger[0].to_id == "FIRM_1"

    def test_goods_are_conserved(self, make_world):
        firms = [_firm(f"FIRM_{i}", sales_price=5.0 + i) for i in range(3)]
        households = [_hungry(f"HH_{i}", cash=30.0) for i in range(10)]
        state = make_world(*firms, *households)
        before = sum(a.stock for a in state.agents.values())

        StandardGoodsMarket().resolve(state, DeterministicRNG(5))

        assert sum(a.stock for a in state.agents.values()) == pytest.approx(before)
        assert len(state.ledger) == 10
