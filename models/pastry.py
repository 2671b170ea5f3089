# models/pastry.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional

from models.scaled_number import ScaledNumber


class UpgradeType(str, Enum):
    """Effect kinds an upgrade can apply once purchased."""
    SELL_MULTIPLIER = "sellMultiplier"
    SPEED_MULTIPLIER = "speedMultiplier"
    AUTOMATION = "automation"
    GLOBAL_SELL_MULTIPLIER = "globalSellMultiplier"
    GLOBAL_SPEED_MULTIPLIER = "globalSpeedMultiplier"


@dataclass
class PastryUpgrade:
    """
    One-time, permanent purchasable effect owned by a pastry.

    Fields:
        id: Identifier, unique within the owning pastry.
        name: Display name.
        description: Short tooltip text.
        type: Which multiplier or flag the upgrade changes.
        value: Multiplier factor, or 1 for Automation.
        cost: Purchase price.
        level_requirement: Minimum pastry level before it can be bought.
        purchased: One-way flag, reset only by clearing the save.
    """
    id: int
    name: str
    description: str
    type: UpgradeType
    value: float
    cost: ScaledNumber
    level_requirement: int = 0
    purchased: bool = False

    def __post_init__(self) -> None:
        """Validate and normalize fields."""
        self.type = UpgradeType(self.type)
        if not isinstance(self.cost, ScaledNumber):
            raise ValueError("cost must be a ScaledNumber.")
        if not isinstance(self.level_requirement, int) or self.level_requirement < 0:
            raise ValueError("level_requirement must be a non-negative integer.")

    def clone(self) -> "PastryUpgrade":
        """Fresh, unpurchased copy (ScaledNumber is immutable so it is shared)."""
        return replace(self, purchased=False)

    def to_dict(self) -> Dict[str, object]:
        """Serialize the mutable subset kept in a save."""
        return {"id": self.id, "purchased": self.purchased}


@dataclass
class Pastry:
    """
    A production unit that earns money each time a build completes.

    Fields:
        id: Stable identifier assigned by the catalog.
        name: Display name.
        rank: Display ordering within the shop.
        level: Non-negative; level 0 cannot build and earns nothing.
        base_build_time: Milliseconds per build at speed 1.
        base_revenue: Earnings per build per level.
        base_cost: Price of the first level.
        cost_multiplier: Exponential cost growth per level (> 1).
        sell_multiplier: Revenue factor composed from purchased upgrades.
        speed_multiplier: Build speed factor composed from purchased upgrades.
        automation: True once the pastry builds on its own.
        upgrades: Ordered upgrade slots.
    """
    id: int
    name: str
    base_build_time: int
    base_revenue: ScaledNumber
    base_cost: ScaledNumber
    cost_multiplier: float
    rank: int = 0
    level: int = 0
    sell_multiplier: float = 1.0
    speed_multiplier: float = 1.0
    automation: bool = False
    upgrades: List[PastryUpgrade] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate invariants."""
        if not isinstance(self.level, int) or self.level < 0:
            raise ValueError("level must be a non-negative integer.")
        if self.base_build_time <= 0:
            raise ValueError("base_build_time must be positive.")
        if self.cost_multiplier <= 1:
            raise ValueError("cost_multiplier must be greater than 1.")
        if not isinstance(self.base_revenue, ScaledNumber) or not isinstance(self.base_cost, ScaledNumber):
            raise ValueError("base_revenue and base_cost must be ScaledNumber.")
        ids = [u.id for u in self.upgrades]
        if len(ids) != len(set(ids)):
            raise ValueError("upgrade ids must be unique within a pastry.")

    def clone(self) -> "Pastry":
        """Deep copy with fresh upgrade records, so mutation never reaches the template."""
        return replace(self, upgrades=[u.clone() for u in self.upgrades])

    def get_upgrade(self, upgrade_id: int) -> Optional[PastryUpgrade]:
        """Lookup an upgrade by id."""
        return next((u for u in self.upgrades if u.id == upgrade_id), None)

    def reset_effects(self) -> None:
        """Drop every upgrade-derived effect back to its default."""
        self.sell_multiplier = 1.0
        self.speed_multiplier = 1.0
        self.automation = False

    def build_time_ms(self, global_speed: float = 1.0) -> float:
        """Effective milliseconds per build for the given global speed factor."""
        return self.base_build_time / (self.speed_multiplier * global_speed)

    def to_dict(self) -> Dict[str, object]:
        """Serialize the mutable subset kept in a save."""
        return {
            "id": self.id,
            "level": self.level,
            "upgrades": [u.to_dict() for u in self.upgrades],
        }
