"""
Unit tests for the GameState economy engine

Tests cover:
- Spending and earning
- Cost and earnings formulas
- Level-up and upgrade purchase validation
- Manual builds and the automation sweep
- Clear-save and prestige accrual
"""

import math

import pytest

from models.scaled_number import ScaledNumber
from services.catalog import PASTRIES
from services.economy import Economy
from services.state import GameState


def fund(state, mantissa, exponent=0):
    state.money = ScaledNumber(mantissa, exponent)


class TestSetup:
    """Engine construction from the catalog"""

    def test_pastries_are_clones(self, catalog):
        state = GameState(catalog=catalog)
        bread = state.get_pastry(1)
        bread.level = 50
        bread.upgrades[0].purchased = True
        assert catalog[0].level == 1
        assert catalog[0].upgrades[0].purchased is False

    def test_defaults(self, state):
        assert state.money.is_zero
        assert state.life_lessons == 0
        assert state.global_sell_multiplier == 1
        assert state.global_speed_multiplier == 1
        assert [p.id for p in state.pastries] == [1, 2]
        assert state.progress == {1: 0.0, 2: 0.0}

    def test_default_catalog(self):
        state = GameState()
        assert len(state.pastries) == len(PASTRIES)
        assert state.get_pastry(1).level == 1
        assert all(p.level == 0 for p in state.pastries[1:])


class TestMoney:
    """spend_money / add_money invariants"""

    def test_add_money(self, state):
        state.add_money(ScaledNumber(5, 1))
        assert state.money == ScaledNumber(5, 1)

    def test_spend_money_success(self, state):
        fund(state, 5, 1)
        assert state.spend_money(ScaledNumber(1, 1)) is True
        assert state.money == ScaledNumber(4, 1)

    def test_spend_exact_balance(self, state):
        fund(state, 5, 1)
        assert state.spend_money(ScaledNumber(5, 1)) is True
        assert state.money.is_zero

    def test_spend_money_insufficient(self, state):
        fund(state, 5, 0)
        assert state.spend_money(ScaledNumber(1, 1)) is False
        assert state.money == ScaledNumber(5, 0)

    def test_spend_never_goes_negative(self, state):
        fund(state, 3, 2)
        for _ in range(10):
            state.spend_money(ScaledNumber(7, 1))
        assert ScaledNumber.compare(state.money, ScaledNumber.zero()) >= 0

    def test_has_enough_money(self, state):
        fund(state, 1, 2)
        assert state.has_enough_money(ScaledNumber(1, 2))
        assert not state.has_enough_money(ScaledNumber(1.01, 2))


class TestFormulas:
    """get_next_cost / get_earnings"""

    def test_next_cost_grows_exponentially(self, state):
        bread = state.get_pastry(1)
        bread.level = 0
        assert state.get_next_cost(bread) == ScaledNumber(1, 1)
        bread.level = 3
        expected = 10 * 1.15 ** 3
        assert math.isclose(state.get_next_cost(bread).to_float(), expected, rel_tol=1e-9)

    def test_next_cost_at_extreme_level_is_capped_not_free(self, state):
        bread = state.get_pastry(1)
        bread.level = 100000
        cost = state.get_next_cost(bread)
        assert cost.exponent == 63
        assert cost.mantissa == 9.99

    def test_earnings_scenario(self, state):
        bread = state.get_pastry(1)
        bread.level = 3
        bread.sell_multiplier = 2
        assert state.get_earnings(bread) == ScaledNumber(6, 0)

    def test_earnings_zero_at_level_zero(self, state):
        assert state.get_earnings(state.get_pastry(2)).is_zero

    def test_earnings_include_global_and_prestige(self, state):
        croissant = state.get_pastry(2)
        croissant.level = 2
        state.global_sell_multiplier = 1.5
        state.life_lessons = 10
        # 5 * 2 * 1 * 1.5 * 1.10
        assert math.isclose(state.get_earnings(croissant).to_float(), 16.5, rel_tol=1e-9)

    def test_earnings_saturate_for_levels_beyond_float_range(self, state):
        bread = state.get_pastry(1)
        bread.level = 10 ** 400
        earnings = state.get_earnings(bread)
        assert earnings.exponent == Economy.MAX_EXPONENT
        assert earnings.mantissa == Economy.MAX_MANTISSA


class TestLevelUp:
    """level_up validation and effects"""

    def test_level_up_success(self, state):
        bread = state.get_pastry(1)
        bread.level = 0
        fund(state, 5, 1)
        assert state.level_up(1) is True
        assert state.money == ScaledNumber(4, 1)
        assert bread.level == 1

    def test_level_up_unaffordable(self, state):
        bread = state.get_pastry(1)
        bread.level = 0
        fund(state, 5, 0)
        assert state.level_up(1) is False
        assert state.money == ScaledNumber(5, 0)
        assert bread.level == 0

    def test_level_up_unknown_pastry(self, state):
        fund(state, 1, 9)
        assert state.level_up(99) is False
        assert state.money == ScaledNumber(1, 9)

    def test_level_up_notifies_observers(self, state):
        calls = []
        state.add_observer(lambda: calls.append(state.get_pastry(1).level))
        fund(state, 1, 3)
        state.level_up(1)
        assert calls == [2]

    def test_failing_observer_does_not_break_command(self, state):
        def broken():
            raise RuntimeError("boom")

        state.add_observer(broken)
        fund(state, 1, 3)
        assert state.level_up(1) is True
        assert state.get_pastry(1).level == 2


class TestBuyUpgrade:
    """buy_upgrade preconditions and effect application"""

    def test_sell_multiplier(self, state):
        state.get_pastry(1).level = 2
        fund(state, 1, 1)
        assert state.buy_upgrade(1, 101) is True
        bread = state.get_pastry(1)
        assert bread.sell_multiplier == 2
        assert bread.get_upgrade(101).purchased
        assert state.money.is_zero

    def test_speed_multiplier(self, state):
        state.get_pastry(1).level = 2
        fund(state, 2, 1)
        assert state.buy_upgrade(1, 102)
        assert state.get_pastry(1).speed_multiplier == 2

    def test_automation(self, state):
        state.get_pastry(1).level = 3
        fund(state, 3, 1)
        assert state.buy_upgrade(1, 103)
        assert state.get_pastry(1).automation is True

    def test_global_multipliers(self, state):
        state.get_pastry(2).level = 1
        fund(state, 3, 2)
        assert state.buy_upgrade(2, 201)
        assert state.buy_upgrade(2, 202)
        assert state.global_sell_multiplier == 1.5
        assert state.global_speed_multiplier == 2
        assert state.get_pastry(2).sell_multiplier == 1

    def test_second_purchase_is_noop(self, state):
        state.get_pastry(1).level = 2
        fund(state, 1, 2)
        assert state.buy_upgrade(1, 101) is True
        money_after_first = state.money
        assert state.buy_upgrade(1, 101) is False
        assert state.get_pastry(1).sell_multiplier == 2
        assert state.money == money_after_first

    def test_level_requirement(self, state):
        fund(state, 1, 3)
        assert state.buy_upgrade(1, 101) is False
        assert not state.get_pastry(1).get_upgrade(101).purchased
        assert state.money == ScaledNumber(1, 3)

    def test_insufficient_funds(self, state):
        state.get_pastry(1).level = 5
        fund(state, 9, 0)
        assert state.buy_upgrade(1, 101) is False
        assert state.get_pastry(1).sell_multiplier == 1
        assert state.money == ScaledNumber(9, 0)

    @pytest.mark.parametrize("pastry_id,upgrade_id", [(99, 101), (1, 999), (2, 101)])
    def test_unknown_ids(self, state, pastry_id, upgrade_id):
        for p in state.pastries:
            p.level = 10
        fund(state, 1, 9)
        assert state.buy_upgrade(pastry_id, upgrade_id) is False
        assert state.money == ScaledNumber(1, 9)


class TestProduction:
    """advance_build and automation_sweep"""

    def test_manual_build_completes_and_credits(self, state):
        bread = state.get_pastry(1)
        assert state.begin_build(1)
        assert state.advance_build(1, 500) is False
        assert math.isclose(state.get_progress(1), 50)
        assert state.advance_build(1, 500) is True
        assert state.get_progress(1) == 0
        assert state.money == state.get_earnings(bread)

    def test_manual_build_uses_pastry_speed_only(self, state):
        state.get_pastry(1).speed_multiplier = 2
        state.global_speed_multiplier = 4
        state.advance_build(1, 250)
        assert math.isclose(state.get_progress(1), 50)

    def test_cannot_build_level_zero(self, state):
        assert state.can_build(2) is False
        assert state.begin_build(2) is False
        assert state.advance_build(2, 10000) is False
        assert state.money.is_zero

    def test_missing_progress_entry_cannot_build(self, state):
        del state.progress[1]
        assert state.can_build(1) is False
        assert state.advance_build(1, 5000) is False

    def test_automation_sweep_uses_global_speed(self, state):
        bread = state.get_pastry(1)
        bread.automation = True
        state.global_speed_multiplier = 2
        state.automation_sweep(50)
        # 50 / (1000 / 2) * 100
        assert math.isclose(state.get_progress(1), 10)

    def test_automation_completion_discards_overshoot(self, state):
        bread = state.get_pastry(1)
        bread.automation = True
        state.progress[1] = 99
        assert state.automation_sweep(50) == [1]
        assert state.get_progress(1) == 0
        assert state.money == ScaledNumber(1, 0)

    def test_automation_skips_manual_pastries(self, state):
        state.get_pastry(2).level = 1
        assert state.automation_sweep(1000) == []
        assert state.progress == {1: 0.0, 2: 0.0}

    def test_automation_processes_catalog_order(self, state):
        for p in state.pastries:
            p.level = 1
            p.automation = True
        state.progress = {1: 99.9, 2: 99.9}
        assert state.automation_sweep(50) == [1, 2]

    def test_reset_progress_is_idempotent(self, state):
        state.progress[1] = 40
        state.reset_progress(1)
        state.reset_progress(1)
        state.reset_progress(42)
        assert state.get_progress(1) == 0


class TestClearSave:
    """clear_save restores defaults and awards life lessons"""

    def test_reset_scenario(self, state):
        bread, croissant = state.get_pastry(1), state.get_pastry(2)
        bread.level, croissant.level = 60, 45
        bread.upgrades[0].purchased = True
        croissant.upgrades[1].purchased = True
        state.reapply_upgrades()
        fund(state, 4, 8)
        state.progress[1] = 70

        state.clear_save()

        bread, croissant = state.get_pastry(1), state.get_pastry(2)
        assert bread.level == 1
        assert croissant.level == 0
        assert not any(u.purchased for p in state.pastries for u in p.upgrades)
        assert bread.sell_multiplier == 1
        assert state.global_speed_multiplier == 1
        assert state.global_sell_multiplier == 1
        assert state.money.is_zero
        assert state.progress == {1: 0.0, 2: 0.0}
        assert state.life_lessons == 1

    def test_life_lessons_accumulate_across_resets(self, state):
        state.life_lessons = 3
        state.get_pastry(2).level = 250
        assert state.pending_life_lessons() == 2
        state.clear_save()
        assert state.life_lessons == 5
        state.clear_save()
        assert state.life_lessons == 5

    def test_reset_listeners_and_observers_fire(self, state):
        events = []
        state.add_reset_listener(lambda: events.append("reset"))
        state.add_observer(lambda: events.append("commit"))
        state.clear_save()
        assert events == ["reset", "commit"]

    def test_template_is_untouched(self, catalog, state):
        state.get_pastry(2).level = 7
        state.clear_save()
        assert catalog[1].level == 0
        assert state.get_pastry(2) is not catalog[1]
