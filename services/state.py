# services/state.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence

from models.pastry import Pastry, PastryUpgrade, UpgradeType
from models.scaled_number import ScaledNumber
from services.catalog import PASTRIES, clone_catalog, find_template
from services.economy import Economy, clamp

if TYPE_CHECKING:
    from services.persistence import Persistence

logger = logging.getLogger("bakery.state")


@dataclass
class GameState:
    """
    The economy engine: one instance per session, owning every mutable value.

    Build it once from a catalog and an optional Persistence adapter; a
    successful load is overlaid immediately and every later commit is saved.
    Observers can subscribe to commits via add_observer().
    """
    catalog: Sequence[Pastry] = field(default=PASTRIES, repr=False)
    persistence: Optional["Persistence"] = field(default=None, repr=False)
    money: ScaledNumber = field(default_factory=ScaledNumber.zero)
    pastries: List[Pastry] = field(default_factory=list, init=False)
    life_lessons: int = 0
    global_sell_multiplier: float = 1.0
    global_speed_multiplier: float = 1.0
    progress: Dict[int, float] = field(default_factory=dict, init=False)
    _observers: List[Callable[[], None]] = field(default_factory=list, repr=False)
    _reset_listeners: List[Callable[[], None]] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        """Clone the catalog, overlay any saved game and wire autosave."""
        self.pastries = clone_catalog(self.catalog)
        self.progress = {p.id: 0.0 for p in self.pastries}
        if self.persistence is not None:
            self.persistence.load(self)
            self.add_observer(lambda: self.persistence.save(self))

    # --- Observers ---
    def add_observer(self, cb: Callable[[], None]) -> None:
        """Register a no-arg callback invoked after every committed mutation."""
        if cb not in self._observers:
            self._observers.append(cb)

    def add_reset_listener(self, cb: Callable[[], None]) -> None:
        """Register a no-arg callback invoked when clear_save() restarts the session."""
        if cb not in self._reset_listeners:
            self._reset_listeners.append(cb)

    def _notify(self) -> None:
        """Invoke all registered observers; a failing observer is logged and skipped."""
        for cb in list(self._observers):
            try:
                cb()
            except Exception:
                logger.exception("Observer failed after commit")

    # --- Queries ---
    def get_pastry(self, pastry_id: int) -> Optional[Pastry]:
        """Lookup a live pastry by id."""
        return next((p for p in self.pastries if p.id == pastry_id), None)

    def get_progress(self, pastry_id: int) -> float:
        return self.progress.get(pastry_id, 0.0)

    @property
    def total_pastry_levels(self) -> int:
        return sum(p.level for p in self.pastries)

    def pending_life_lessons(self) -> int:
        """Life lessons a reset right now would award."""
        return self.total_pastry_levels // Economy.LEVELS_PER_LIFE_LESSON

    def has_enough_money(self, cost: ScaledNumber) -> bool:
        return ScaledNumber.compare(self.money, cost) >= 0

    def get_next_cost(self, pastry: Pastry) -> ScaledNumber:
        """Price of the next level: base_cost * cost_multiplier ** level."""
        try:
            factor = ScaledNumber.from_value(pastry.cost_multiplier ** pastry.level)
        except OverflowError:
            factor = ScaledNumber(Economy.MAX_MANTISSA, Economy.MAX_EXPONENT)
        return pastry.base_cost.multiply(factor)

    def get_earnings(self, pastry: Pastry) -> ScaledNumber:
        """
        Money credited per completed build.

        base_revenue * level * sell_multiplier * global_sell_multiplier
        * (1 + life_lessons * LIFE_LESSON_BONUS); zero at level 0.
        """
        if pastry.level == 0:
            return ScaledNumber.zero()
        prestige = 1 + self.life_lessons * Economy.LIFE_LESSON_BONUS
        return (
            pastry.base_revenue
            .multiply(pastry.level)
            .multiply(pastry.sell_multiplier)
            .multiply(self.global_sell_multiplier)
            .multiply(prestige)
        )

    # --- Money ---
    def add_money(self, amount: ScaledNumber) -> None:
        """Credit amount unconditionally."""
        self.money = self.money.add(amount)
        self._notify()

    def spend_money(self, cost: ScaledNumber) -> bool:
        """Deduct cost if affordable; otherwise leave money untouched and return False."""
        if not self.has_enough_money(cost):
            return False
        self.money = self.money.subtract(cost)
        return True

    # --- Commands ---
    def level_up(self, pastry_id: int) -> bool:
        """Spend the next-level cost and raise the pastry's level by one."""
        pastry = self.get_pastry(pastry_id)
        if pastry is None:
            logger.debug("level_up ignored: unknown pastry %s", pastry_id)
            return False
        if not self.spend_money(self.get_next_cost(pastry)):
            logger.debug("level_up ignored: cannot afford %s", pastry.name)
            return False
        pastry.level += 1
        self._notify()
        return True

    def buy_upgrade(self, pastry_id: int, upgrade_id: int) -> bool:
        """
        Purchase an upgrade and apply its effect exactly once.

        Requires a known pastry and upgrade, an unpurchased upgrade, the
        level requirement met, and enough money. All-or-nothing.
        """
        pastry = self.get_pastry(pastry_id)
        upgrade = pastry.get_upgrade(upgrade_id) if pastry else None
        if pastry is None or upgrade is None:
            logger.debug("buy_upgrade ignored: unknown %s/%s", pastry_id, upgrade_id)
            return False
        if upgrade.purchased or pastry.level < upgrade.level_requirement:
            return False
        if not self.spend_money(upgrade.cost):
            return False
        upgrade.purchased = True
        self.apply_upgrade(pastry, upgrade)
        logger.info("Purchased %s for %s", upgrade.name, pastry.name)
        self._notify()
        return True

    def apply_upgrade(self, pastry: Pastry, upgrade: PastryUpgrade) -> None:
        """Single application path for an upgrade's effect, used by purchase and load."""
        if upgrade.type is UpgradeType.SELL_MULTIPLIER:
            pastry.sell_multiplier *= upgrade.value
        elif upgrade.type is UpgradeType.SPEED_MULTIPLIER:
            pastry.speed_multiplier *= upgrade.value
        elif upgrade.type is UpgradeType.AUTOMATION:
            pastry.automation = True
        elif upgrade.type is UpgradeType.GLOBAL_SELL_MULTIPLIER:
            self.global_sell_multiplier *= upgrade.value
        elif upgrade.type is UpgradeType.GLOBAL_SPEED_MULTIPLIER:
            self.global_speed_multiplier *= upgrade.value

    def reapply_upgrades(self) -> None:
        """Reset all upgrade-derived effects and re-apply every purchased upgrade."""
        self.global_sell_multiplier = 1.0
        self.global_speed_multiplier = 1.0
        for pastry in self.pastries:
            pastry.reset_effects()
        for pastry in self.pastries:
            for upgrade in pastry.upgrades:
                if upgrade.purchased:
                    self.apply_upgrade(pastry, upgrade)

    # --- Production ---
    def can_build(self, pastry_id: int) -> bool:
        """True for a known pastry at level >= 1 with a progress entry."""
        pastry = self.get_pastry(pastry_id)
        return pastry is not None and pastry.level >= 1 and pastry_id in self.progress

    def begin_build(self, pastry_id: int) -> bool:
        if not self.can_build(pastry_id):
            return False
        self.progress[pastry_id] = 0.0
        return True

    def reset_progress(self, pastry_id: int) -> None:
        """Put a pastry's progress back to 0; unknown ids are ignored."""
        if pastry_id in self.progress:
            self.progress[pastry_id] = 0.0

    def advance_build(self, pastry_id: int, elapsed_ms: float, include_global_speed: bool = False) -> bool:
        """
        Advance one pastry's build by elapsed_ms.

        On reaching PROGRESS_COMPLETE the earnings are credited and progress
        restarts at 0 (overshoot is discarded). Returns True on completion.
        """
        pastry = self.get_pastry(pastry_id)
        if pastry is None or pastry_id not in self.progress or pastry.level < 1:
            return False
        global_speed = self.global_speed_multiplier if include_global_speed else 1.0
        increment = elapsed_ms / pastry.build_time_ms(global_speed) * Economy.PROGRESS_COMPLETE
        new_progress = self.progress[pastry_id] + increment
        if new_progress >= Economy.PROGRESS_COMPLETE:
            self.progress[pastry_id] = 0.0
            self.add_money(self.get_earnings(pastry))
            return True
        self.progress[pastry_id] = clamp(new_progress, 0.0, Economy.PROGRESS_COMPLETE)
        return False

    def automation_sweep(self, tick_ms: float = Economy.TICK_MS) -> List[int]:
        """Advance every automated pastry in catalog order; return ids that completed."""
        completed: List[int] = []
        for pastry in self.pastries:
            if not pastry.automation:
                continue
            if self.advance_build(pastry.id, tick_ms, include_global_speed=True):
                completed.append(pastry.id)
        return completed

    # --- Reset ---
    def clear_save(self) -> None:
        """
        Discard the save and restart from catalog defaults, keeping prestige.

        Life lessons earned from the pre-reset level total are added, reset
        listeners are told to drop in-flight work, and the fresh state is
        committed so the earned life lessons persist.
        """
        earned = self.pending_life_lessons()
        if self.persistence is not None:
            self.persistence.clear()

        self.money = ScaledNumber.zero()
        self.global_sell_multiplier = 1.0
        self.global_speed_multiplier = 1.0
        fresh: List[Pastry] = []
        for pastry in self.pastries:
            template = find_template(pastry.id, self.catalog)
            reset = template.clone() if template is not None else pastry.clone()
            reset.reset_effects()
            reset.level = Economy.STARTER_LEVEL if pastry.id == Economy.STARTER_PASTRY_ID else 0
            fresh.append(reset)
        self.pastries = fresh
        self.progress = {p.id: 0.0 for p in self.pastries}
        self.life_lessons += earned
        logger.info("Save cleared; earned %d life lesson(s), total %d", earned, self.life_lessons)

        for cb in list(self._reset_listeners):
            try:
                cb()
            except Exception:
                logger.exception("Reset listener failed")
        self._notify()
