"""
Simulation kernel.

Owns the canonical tick pipeline and is the only component that knows
what a tick is. It knows nothing about economics: markets, behaviors and
institutions are looked up by id in a :class:`MechanismRegistry`.

Phases per tick:
1. Restore the generator, clone the world
2. Maintenance institutions (bond interest, bankruptcy)
3. Agent cognition
4. Markets, in configured order
5. Fiscal institutions (taxes, welfare, subsidies)
6. Metrics and invariant check
7. Bookkeeping: firm profit roll, ledger pruning, persist generator
"""

from __future__ import annotations

import logging
from typing import Iterator

from econsim.core.agent import (
    CENTRAL_BANK_ID,
    GOVERNMENT_ID,
    AgentType,
    make_agent,
)
from econsim.core.config import ExperimentConfig
from econsim.core.ledger import Diagnostic, validate_invariants
from econsim.core.rng import DeterministicRNG
from econsim.core.world import WorldState
from econsim.mechanisms.base import InstitutionPhase
from econsim.mechanisms.registry import MechanismRegistry, default_registry
from econsim.metrics.collector import MetricsCollector

logger = logging.getLogger(__name__)


class SimulationEngine:
    """
    Pure step function over world states.

    ``initialize(config)`` builds tick 0; ``step(state)`` returns the next
    state and never touches its input. Engines hold no run state, so one
    engine can drive any number of independent runs.
    """

    def __init__(self, registry: MechanismRegistry | None = None):
        self.registry = registry if registry is not None else default_registry()
        self._warned: set[str] = set()

    # ------------------------------------------------------------------
    # Initial world
    # ------------------------------------------------------------------
    def initialize(self, config: ExperimentConfig | None = None) -> WorldState:
        """Generate the founding population for *config*."""
        config = config if config is not None else ExperimentConfig()
        rng = DeterministicRNG(config.random_seed)
        price = config.initial_goods_price
        wage = config.initial_wage

        agents = {}
        for agent_type, agent_id in (
            (AgentType.GOVERNMENT, GOVERNMENT_ID),
            (AgentType.CENTRAL_BANK, CENTRAL_BANK_ID),
        ):
            agents[agent_id] = make_agent(agent_type, agent_id, goods_price=price, wage=wage)

        for i in range(config.initial_firms):
            agent_id = f"FIRM_{i}"
            agents[agent_id] = make_agent(
                AgentType.FIRM, agent_id, goods_price=price, wage=wage,
            )
        for i in range(config.initial_households):
            agent_id = f"HH_{i}"
            agents[agent_id] = make_agent(
                AgentType.HOUSEHOLD, agent_id, rng=rng, goods_price=price, wage=wage,
            )
        for i in range(config.initial_banks):
            agent_id = f"BANK_{i}"
            agents[agent_id] = make_agent(
                AgentType.BANK, agent_id, goods_price=price, wage=wage,
            )

        logger.debug(
            "Initialized %s with %d agents (seed %d)",
            config.experiment_id, len(agents), config.random_seed,
        )
        return WorldState(tick=0, agents=agents, config=config, rng_state=rng.state)

    # ------------------------------------------------------------------
    # Tick pipeline
    # ------------------------------------------------------------------
    def step(self, state: WorldState) -> WorldState:
        """
        Compute the world at ``state.tick + 1``.

        Raises:
            InvariantViolation: if the money supply stops being finite.
        """
        # === Phase 1: Restore generator, clone ===
        rng = DeterministicRNG(state.rng_state)
        world = state.clone()
        world.tick = state.tick + 1
        world.diagnostics = []
        config = world.config

        # === Phase 2: Maintenance institutions ===
        self._check_institutions(world)
        self._run_institutions(world, InstitutionPhase.MAINTENANCE)

        # === Phase 3: Agent cognition ===
        for agent in list(world.agents.values()):
            if not agent.active:
                continue
            behavior_id = config.behavior_for(agent.type.value)
            if behavior_id is None:
                continue
            behavior = self.registry.behavior(behavior_id)
            if behavior is None:
                self._report_unknown(world, "behavior", behavior_id)
                continue
            if behavior.agent_type != agent.type:
                self._report(
                    world, "behavior_type_mismatch",
                    f"Behavior '{behavior_id}' governs {behavior.agent_type.value}, "
                    f"not {agent.type.value}; skipped",
                )
                continue
            behavior.decide(agent, world, rng)

        # === Phase 4: Markets ===
        for market_id in config.active_markets:
            market = self.registry.market(market_id)
            if market is None:
                self._report_unknown(world, "market", market_id)
                continue
            market.resolve(world, rng)

        # === Phase 5: Fiscal institutions ===
        self._run_institutions(world, InstitutionPhase.FISCAL)

        # === Phase 6: Metrics ===
        money_supply, problems = validate_invariants(
            world, tolerance=config.negative_cash_tolerance,
        )
        world.diagnostics.extend(problems)
        collector = MetricsCollector(initial_cpi=config.initial_goods_price)
        world.metrics_history.append(collector.collect(world, money_supply))
        if len(world.metrics_history) > config.metrics_history_length:
            world.metrics_history = world.metrics_history[-config.metrics_history_length:]

        # === Phase 7: Bookkeeping ===
        self._roll_firm_profits(world)
        if len(world.ledger) > config.ledger_capacity:
            world.ledger = world.ledger[-config.ledger_capacity:]
        world.rng_state = rng.state

        return world

    def run(
        self, config: ExperimentConfig | None = None, ticks: int = 1,
    ) -> WorldState:
        """Initialize a world and advance it *ticks* times."""
        state = self.initialize(config)
        for state in self.iterate(state, ticks):
            pass
        return state

    def iterate(self, state: WorldState, ticks: int) -> Iterator[WorldState]:
        """Yield each successive state for *ticks* steps."""
        for _ in range(ticks):
            state = self.step(state)
            yield state

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _run_institutions(self, world: WorldState, phase: InstitutionPhase) -> None:
        for institution in self.registry.institutions_for_phase(
            phase, world.config.active_institutions,
        ):
            institution.apply(world)

    def _check_institutions(self, world: WorldState) -> None:
        for inst_id in self.registry.unknown_institutions(
            world.config.active_institutions,
        ):
            self._report_unknown(world, "institution", inst_id)

    def _report_unknown(self, world: WorldState, family: str, mechanism_id: str) -> None:
        self._report(
            world, "unknown_mechanism", f"Unknown {family} '{mechanism_id}' skipped",
        )

    def _report(self, world: WorldState, kind: str, message: str) -> None:
        """Record a configuration problem once per tick; log it once per engine."""
        if any(d.message == message for d in world.diagnostics):
            return
        world.diagnostics.append(Diagnostic(world.tick, kind, message))
        if message not in self._warned:
            self._warned.add(message)
            logger.warning(
                "Experiment %s: %s", world.config.experiment_id, message,
            )

    def _roll_firm_profits(self, world: WorldState) -> None:
        """Profit = revenue booked this tick minus everything the firm paid out."""
        expenses: dict[str, float] = {}
        for entry in world.tick_entries():
            expenses[entry.from_id] = expenses.get(entry.from_id, 0.0) + entry.amount

        for firm in world.active_agents(AgentType.FIRM):
            spent = expenses.get(firm.id, 0.0)
            firm.last_profit = firm.last_revenue - spent
            firm.last_expenses = spent
            firm.last_revenue = 0.0


_default_engine: SimulationEngine | None = None


def _engine() -> SimulationEngine:
    global _default_engine
    if _default_engine is None:
        _default_engine = SimulationEngine()
    return _default_engine


def initialize(config: ExperimentConfig | None = None) -> WorldState:
    """Build tick 0 with the default mechanism registry."""
    return _engine().initialize(config)


def step(state: WorldState) -> WorldState:
    """Advance one tick with the default mechanism registry."""
    return _engine().step(state)
