# services/catalog.py
"""
Static pastry catalog.

Templates here are never mutated: the engine works on clone_catalog() copies
taken once per session, and reset restores from find_template().
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from models.pastry import Pastry, PastryUpgrade, UpgradeType
from models.scaled_number import ScaledNumber as N


BREAD_UPGRADES: Tuple[PastryUpgrade, ...] = (
    PastryUpgrade(101, "Better Flour", "Switch to higher quality flour, doubling bread loaf value.",
                  UpgradeType.SELL_MULTIPLIER, 2, N(1, 1), level_requirement=2),
    PastryUpgrade(102, "Golden Crust", "A crispy golden crust makes loaves twice as valuable.",
                  UpgradeType.SELL_MULTIPLIER, 2, N(2, 1), level_requirement=4),
    PastryUpgrade(103, "Secret Family Recipe", "Adds irresistible flavor, doubling bread loaf sell price.",
                  UpgradeType.SELL_MULTIPLIER, 2, N(3, 1), level_requirement=6),
    PastryUpgrade(104, "Conveyor Oven", "Automated oven halves the baking time.",
                  UpgradeType.SPEED_MULTIPLIER, 2, N(4, 1), level_requirement=8),
    PastryUpgrade(105, "Self-Slicing Bread Machine", "Loaves bake and sell automatically.",
                  UpgradeType.AUTOMATION, 1, N(5, 1), level_requirement=10),
)

CROISSANT_UPGRADES: Tuple[PastryUpgrade, ...] = (
    PastryUpgrade(201, "French Butter", "Richer layers double croissant value.",
                  UpgradeType.SELL_MULTIPLIER, 2, N(5, 2), level_requirement=5),
    PastryUpgrade(202, "Lamination Press", "Folding dough by machine doubles baking speed.",
                  UpgradeType.SPEED_MULTIPLIER, 2, N(2, 3), level_requirement=10),
    PastryUpgrade(203, "Display Case", "Every pastry in the shop sells for 50% more.",
                  UpgradeType.GLOBAL_SELL_MULTIPLIER, 1.5, N(1, 4), level_requirement=15),
    PastryUpgrade(204, "Croissant Apprentice", "An apprentice bakes croissants automatically.",
                  UpgradeType.AUTOMATION, 1, N(5, 4), level_requirement=20),
)

CUPCAKE_UPGRADES: Tuple[PastryUpgrade, ...] = (
    PastryUpgrade(301, "Buttercream Swirl", "Fancy frosting doubles cupcake value.",
                  UpgradeType.SELL_MULTIPLIER, 2, N(2, 4), level_requirement=5),
    PastryUpgrade(302, "Convection Fans", "Hot air circulates through every oven, doubling all baking speed.",
                  UpgradeType.GLOBAL_SPEED_MULTIPLIER, 2, N(1, 5), level_requirement=10),
    PastryUpgrade(303, "Cupcake Carousel", "Cupcakes bake and sell automatically.",
                  UpgradeType.AUTOMATION, 1, N(5, 5), level_requirement=20),
)

PIE_UPGRADES: Tuple[PastryUpgrade, ...] = (
    PastryUpgrade(401, "Lattice Top", "A woven crust triples pie value.",
                  UpgradeType.SELL_MULTIPLIER, 3, N(1, 6), level_requirement=5),
    PastryUpgrade(402, "Double-Deck Oven", "Two decks double pie baking speed.",
                  UpgradeType.SPEED_MULTIPLIER, 2, N(5, 6), level_requirement=10),
    PastryUpgrade(403, "Famous Bakery Sign", "Word spreads and everything sells for double.",
                  UpgradeType.GLOBAL_SELL_MULTIPLIER, 2, N(2, 7), level_requirement=20),
    PastryUpgrade(404, "Pie Conveyor", "Pies bake and sell automatically.",
                  UpgradeType.AUTOMATION, 1, N(1, 8), level_requirement=25),
)

CAKE_UPGRADES: Tuple[PastryUpgrade, ...] = (
    PastryUpgrade(501, "Fondant Artistry", "Sculpted fondant quadruples cake value.",
                  UpgradeType.SELL_MULTIPLIER, 4, N(5, 8), level_requirement=5),
    PastryUpgrade(502, "Industrial Mixers", "The whole kitchen bakes 50% faster.",
                  UpgradeType.GLOBAL_SPEED_MULTIPLIER, 1.5, N(2, 9), level_requirement=15),
    PastryUpgrade(503, "Wedding Contracts", "Catering deals double every sale.",
                  UpgradeType.GLOBAL_SELL_MULTIPLIER, 2, N(1, 10), level_requirement=25),
    PastryUpgrade(504, "Cake Factory", "Cakes bake and sell automatically.",
                  UpgradeType.AUTOMATION, 1, N(5, 10), level_requirement=30),
)

PASTRIES: Tuple[Pastry, ...] = (
    Pastry(id=1, name="Bread", rank=1, level=1, base_build_time=1000,
           base_revenue=N(1, 0), base_cost=N(1, 1), cost_multiplier=1.15,
           upgrades=list(BREAD_UPGRADES)),
    Pastry(id=2, name="Croissant", rank=2, base_build_time=3000,
           base_revenue=N(8, 0), base_cost=N(1, 2), cost_multiplier=1.16,
           upgrades=list(CROISSANT_UPGRADES)),
    Pastry(id=3, name="Cupcake", rank=3, base_build_time=6000,
           base_revenue=N(5, 1), base_cost=N(1.2, 3), cost_multiplier=1.17,
           upgrades=list(CUPCAKE_UPGRADES)),
    Pastry(id=4, name="Pie", rank=4, base_build_time=12000,
           base_revenue=N(4, 2), base_cost=N(1.5, 4), cost_multiplier=1.18,
           upgrades=list(PIE_UPGRADES)),
    Pastry(id=5, name="Cake", rank=5, base_build_time=30000,
           base_revenue=N(3, 3), base_cost=N(2, 5), cost_multiplier=1.2,
           upgrades=list(CAKE_UPGRADES)),
)


def clone_catalog(catalog: Sequence[Pastry] = PASTRIES) -> List[Pastry]:
    """Return fresh, unpurchased copies of every template in catalog order."""
    return [p.clone() for p in catalog]


def find_template(pastry_id: int, catalog: Sequence[Pastry] = PASTRIES) -> Optional[Pastry]:
    """Lookup a template by id."""
    return next((p for p in catalog if p.id == pastry_id), None)
