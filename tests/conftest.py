"""
Shared fixtures.

``make_world`` builds small hand-wired worlds so each market and
institution can be exercised in isolation.
"""

from __future__ import annotations

import pytest

from econsim.core.config import ExperimentConfig
from econsim.core.engine import SimulationEngine
from econsim.core.rng import DeterministicRNG
from econsim.core.world import WorldState


def _build_world(*agents, config=None, tick=0, seed=1337):
    config = config if config is not None else ExperimentConfig(random_seed=seed)
    return WorldState(
        tick=tick,
        agents={a.id: a for a in agents},
        config=config,
        rng_state=DeterministicRNG(seed).state,
    )


@pytest.fixture
def make_world():
    """Factory: ``make_world(*agents, config=None, tick=0, seed=1337)``."""
    return _build_world


@pytest.fixture
def engine():
    return SimulationEngine()


@pytest.fixture
def small_config():
    return ExperimentConfig(
        experiment_id="SMALL",
        initial_households=12,
        initial_firms=3,
        random_seed=42,
    )
