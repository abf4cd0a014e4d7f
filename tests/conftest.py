"""
Shared fixtures: a scripted random source, a fake clock, ready-made heroes
and a Game wired to the in-memory store.
"""
import random

import pytest

from game.hero import create_hero
from game.services import Game
from game.storage import MemoryHeroStore

from .support import FakeClock, ScriptedRandom


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scripted():
    return ScriptedRandom()


# =============================================================================
# Heroes
# =============================================================================


@pytest.fixture
def warrior(clock):
    """Fresh level-1 Warrior named Aria."""
    return create_hero("Aria", "Warrior", now=clock())


@pytest.fixture
def guardian(clock):
    return create_hero("Brom", "Guardian", now=clock())


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def game(clock):
    return Game(store=MemoryHeroStore(), rng=random.Random(1234), clock=clock)


@pytest.fixture
def stored_hero(game):
    return game.heroes.create("Aria", "Warrior")
