import os
import tempfile

# Kivy reads these at import time: keep it from parsing pytest's argv and
# from writing config/logs into the real home directory.
os.environ.setdefault("KIVY_NO_ARGS", "1")
os.environ.setdefault("KIVY_NO_CONSOLELOG", "1")
os.environ.setdefault("KIVY_NO_FILELOG", "1")
os.environ.setdefault("KIVY_HOME", tempfile.mkdtemp(prefix="kivy-home-"))

import pytest

from models.pastry import Pastry, PastryUpgrade, UpgradeType
from models.scaled_number import ScaledNumber
from services.persistence import MemoryKeyValueStore, Persistence
from services.state import GameState


def make_catalog():
    """Two-pastry catalog with one upgrade of every type."""
    return (
        Pastry(
            id=1, name="Bread", rank=1, level=1, base_build_time=1000,
            base_revenue=ScaledNumber(1, 0), base_cost=ScaledNumber(1, 1), cost_multiplier=1.15,
            upgrades=[
                PastryUpgrade(101, "Better Flour", "", UpgradeType.SELL_MULTIPLIER, 2, ScaledNumber(1, 1), 2),
                PastryUpgrade(102, "Conveyor Oven", "", UpgradeType.SPEED_MULTIPLIER, 2, ScaledNumber(2, 1), 2),
                PastryUpgrade(103, "Bread Machine", "", UpgradeType.AUTOMATION, 1, ScaledNumber(3, 1), 3),
            ],
        ),
        Pastry(
            id=2, name="Croissant", rank=2, base_build_time=2000,
            base_revenue=ScaledNumber(5, 0), base_cost=ScaledNumber(1, 2), cost_multiplier=1.2,
            upgrades=[
                PastryUpgrade(201, "Display Case", "", UpgradeType.GLOBAL_SELL_MULTIPLIER, 1.5, ScaledNumber(1, 2), 1),
                PastryUpgrade(202, "Convection Fans", "", UpgradeType.GLOBAL_SPEED_MULTIPLIER, 2, ScaledNumber(2, 2), 1),
                PastryUpgrade(203, "Apprentice", "", UpgradeType.AUTOMATION, 1, ScaledNumber(5, 2), 2),
            ],
        ),
    )


@pytest.fixture
def catalog():
    return make_catalog()


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def persistence(store):
    return Persistence(store)


@pytest.fixture
def state(catalog):
    """Engine without persistence."""
    return GameState(catalog=catalog)


@pytest.fixture
def saved_state(catalog, persistence):
    """Engine that autosaves into the in-memory store."""
    return GameState(catalog=catalog, persistence=persistence)
