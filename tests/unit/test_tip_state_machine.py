"""Тесты для Tip Selection State Machine.

Coverage:
- Загрузка сохранённого fee (mount)
- Пересчёт процентного варианта при смене суммы
- Коррекция рассинхронизации NO_TIP
- Выбор пользователем и ввод произвольной суммы
- Подавление событий до mount и после teardown
- Отсутствие повторных вызовов callback
"""

import pytest

from src.core.domain import TipKind
from src.tipping.options import TipConfig
from src.tipping.state_machine import (
    TipSelectionCoordinator,
    TipSelectionState,
)


@pytest.fixture
def reported():
    """Список fee, переданных в callback."""
    return []


@pytest.fixture
def coordinator(reported):
    return TipSelectionCoordinator(1000, "USD", reported.append)


class TestInitialState:
    """Начальное состояние."""

    def test_uninitialized_with_default_option(self, coordinator, reported):
        assert coordinator.state == TipSelectionState.UNINITIALIZED
        assert not coordinator.is_ready
        assert coordinator.selected_option is coordinator.options[1]
        assert coordinator.selected_option.fee_amount == 150
        assert coordinator.last_reported_fee is None
        assert reported == []

    def test_default_index_from_config(self, reported):
        sm = TipSelectionCoordinator(
            1000, "USD", reported.append, config=TipConfig(default_option_index=0)
        )
        assert sm.selected_option.percentage == 0.10


class TestMount:
    """Переход UNINITIALIZED → READY."""

    def test_mount_without_persisted_fee_keeps_default(self, coordinator, reported):
        result = coordinator.mount(None)

        assert result.new_state == TipSelectionState.READY
        assert result.previous_state == TipSelectionState.UNINITIALIZED
        assert result.transition_reason == "mount_default"
        assert coordinator.selected_option.percentage == 0.15
        assert not result.fee_reported
        assert reported == []

    def test_mount_matches_percentage_option(self, coordinator, reported):
        result = coordinator.mount(200)

        assert result.transition_reason == "mount_matched_option"
        assert coordinator.selected_option.percentage == 0.20
        assert coordinator.last_reported_fee == 200
        assert reported == []

    def test_mount_zero_selects_no_tip(self, coordinator):
        coordinator.mount(0)
        assert coordinator.selected_option.kind == TipKind.NO_TIP

    def test_mount_unknown_fee_falls_back_to_custom(self, coordinator, reported):
        result = coordinator.mount(500)

        assert result.transition_reason == "mount_custom_fallback"
        assert coordinator.selected_option.kind == TipKind.CUSTOM
        assert coordinator.last_reported_fee == 500
        assert reported == []

    def test_mount_fires_only_once(self, coordinator):
        coordinator.mount(100)
        result = coordinator.mount(200)

        assert not result.transition_occurred
        assert result.transition_reason == "already_mounted"
        assert coordinator.selected_option.percentage == 0.10

    def test_recompute_after_mount_reports_default_fee(self, coordinator, reported):
        """Без сохранённого fee хост получает fee варианта по умолчанию."""
        coordinator.mount(None)
        result = coordinator.recompute()

        assert result.reported_fee == 150
        assert reported == [150]

    def test_recompute_after_matching_mount_is_silent(self, coordinator, reported):
        coordinator.mount(150)
        coordinator.recompute()
        assert reported == []

    def test_recompute_after_custom_mount_is_silent(self, coordinator, reported):
        coordinator.mount(500)
        coordinator.recompute()
        assert reported == []


class TestAmountChange:
    """Переход READY → READY при смене суммы."""

    def test_percentage_fee_recomputed(self, coordinator, reported):
        coordinator.mount(100)
        result = coordinator.on_amount_change(2000)

        assert reported == [200]
        assert result.reported_fee == 200
        assert result.transition_occurred
        assert coordinator.selected_option.percentage == 0.10
        assert coordinator.selected_option.fee_amount == 200
        assert coordinator.last_reported_fee == 200

    def test_unchanged_fee_not_reported_again(self, coordinator, reported):
        coordinator.mount(100)
        coordinator.on_amount_change(2000)
        result = coordinator.on_amount_change(2000)

        assert reported == [200]
        assert not result.fee_reported
        assert result.transition_reason == "amount_change_unchanged"

    def test_amount_change_with_same_fee_silent(self, coordinator, reported):
        """1000 → 1001 при 10%: fee остаётся 100."""
        coordinator.mount(100)
        coordinator.on_amount_change(1001)
        assert reported == []

    def test_options_regenerated(self, coordinator):
        coordinator.mount(None)
        coordinator.on_amount_change(3000)
        assert [o.fee_amount for o in coordinator.options[:3]] == [300, 450, 600]

    def test_custom_selection_untouched(self, coordinator, reported):
        coordinator.mount(500)
        coordinator.on_amount_change(5000)

        assert reported == []
        assert coordinator.selected_option.kind == TipKind.CUSTOM
        assert coordinator.last_reported_fee == 500

    def test_invalid_amount_drops_percentage_fee_to_zero(self, coordinator, reported):
        coordinator.mount(150)
        coordinator.on_amount_change(float("nan"))

        assert reported == [0]
        assert coordinator.selected_option.percentage == 0.15
        assert coordinator.selected_option.fee_amount == 0

    def test_currency_change_keeps_fee(self, coordinator, reported):
        coordinator.mount(150)
        coordinator.on_amount_change(1000, "EUR")

        assert reported == []
        assert coordinator.currency == "EUR"
        assert all(o.currency == "EUR" for o in coordinator.options)

    def test_currency_change_refreshes_selected_option(self, coordinator, reported):
        coordinator.mount(150)
        coordinator.on_amount_change(1000, "EUR")

        assert reported == []
        assert coordinator.selected_option.currency == "EUR"
        assert coordinator.selected_option.fee_amount == 150
        assert coordinator.selected_index() == 1

    @pytest.mark.parametrize("persisted_fee,kind", [
        (0, TipKind.NO_TIP),
        (500, TipKind.CUSTOM),
    ])
    def test_currency_change_refreshes_non_percentage_selection(
        self, coordinator, reported, persisted_fee, kind
    ):
        coordinator.mount(persisted_fee)
        coordinator.on_amount_change(1000, "GBP")

        assert reported == []
        assert coordinator.selected_option.kind == kind
        assert coordinator.selected_option.currency == "GBP"

    def test_currency_change_before_mount_refreshes_default(self, coordinator, reported):
        coordinator.on_amount_change(1000, "EUR")

        assert reported == []
        assert coordinator.selected_option.currency == "EUR"

    def test_suppressed_before_mount(self, coordinator, reported):
        result = coordinator.on_amount_change(2000)

        assert reported == []
        assert result.transition_reason == "not_ready"
        assert coordinator.state == TipSelectionState.UNINITIALIZED
        # Список при этом обновлён: mount сверяет fee с актуальными вариантами
        coordinator.mount(400)
        assert coordinator.selected_option.percentage == 0.20


class TestNoTipDrift:
    """Коррекция NO_TIP при устаревшем ненулевом fee хоста."""

    def test_stale_nonzero_fee_corrected_once(self, coordinator, reported):
        coordinator.mount(0)
        coordinator.sync_external_fee(50)

        result = coordinator.on_amount_change(2000)
        assert reported == [0]
        assert result.transition_reason == "amount_change_no_tip_drift"

        coordinator.on_amount_change(3000)
        assert reported == [0]

    def test_zero_fee_not_reported(self, coordinator, reported):
        coordinator.mount(0)
        coordinator.on_amount_change(2000)
        assert reported == []

    def test_unknown_fee_not_corrected(self, coordinator, reported):
        coordinator.mount(0)
        coordinator.sync_external_fee(None)
        coordinator.on_amount_change(2000)
        assert reported == []


class TestUserSelection:
    """Выбор варианта пользователем."""

    def test_select_percentage_reports_fee(self, coordinator, reported):
        coordinator.mount(150)
        result = coordinator.select(coordinator.options[2])

        assert reported == [200]
        assert result.transition_occurred
        assert result.transition_reason == "user_selection"
        assert coordinator.selected_index() == 2

    def test_select_no_tip_reports_zero(self, coordinator, reported):
        coordinator.mount(150)
        coordinator.select(coordinator.options[3])
        assert reported == [0]

    def test_reselect_same_option_silent(self, coordinator, reported):
        coordinator.mount(150)
        result = coordinator.select(coordinator.options[1])

        assert reported == []
        assert not result.transition_occurred

    def test_select_custom_reports_nothing(self, coordinator, reported):
        coordinator.mount(150)
        coordinator.select(coordinator.options[4])

        assert reported == []
        assert coordinator.selected_option.is_custom

    def test_select_fixed_reports_amount(self, reported):
        sm = TipSelectionCoordinator(
            1000, "USD", reported.append, config=TipConfig(fixed_amounts=(500,))
        )
        sm.mount(150)
        sm.select(sm.options[3])

        assert sm.selected_option.kind == TipKind.FIXED
        assert reported == [500]

    def test_fixed_selection_not_recomputed_on_amount_change(self, reported):
        sm = TipSelectionCoordinator(
            1000, "USD", reported.append, config=TipConfig(fixed_amounts=(500,))
        )
        sm.mount(500)
        sm.on_amount_change(9000)
        assert reported == []
        assert sm.selected_option.fee_amount == 500

    def test_selected_percentage_follows_amount(self, coordinator, reported):
        coordinator.mount(150)
        coordinator.select(coordinator.options[0])
        coordinator.on_amount_change(2000)

        assert reported == [100, 200]

    def test_select_before_mount_does_not_report(self, coordinator, reported):
        coordinator.select(coordinator.options[0])

        assert reported == []
        assert coordinator.selected_option.percentage == 0.10

    def test_select_unknown_option_ignored(self, coordinator, reported):
        coordinator.mount(150)
        foreign = TipSelectionCoordinator(
            1000, "USD", reported.append, config=TipConfig(fixed_amounts=(700,))
        ).options[3]
        result = coordinator.select(foreign)

        assert result.transition_reason == "unknown_option"
        assert coordinator.selected_option.percentage == 0.15
        assert reported == []


class TestCustomFee:
    """Ввод произвольной суммы."""

    def test_custom_fee_reported_directly(self, coordinator, reported):
        coordinator.mount(150)
        coordinator.select(coordinator.options[4])
        result = coordinator.set_custom_fee(750)

        assert reported == [750]
        assert result.reported_fee == 750
        assert coordinator.last_reported_fee == 750

    def test_custom_fee_rounded_to_minor_units(self, coordinator, reported):
        coordinator.mount(500)
        coordinator.set_custom_fee(249.5)
        assert reported == [250]

    def test_custom_fee_ignored_when_not_custom(self, coordinator, reported):
        coordinator.mount(150)
        result = coordinator.set_custom_fee(750)

        assert reported == []
        assert result.transition_reason == "custom_not_selected"

    @pytest.mark.parametrize("amount", [None, float("nan"), -100])
    def test_invalid_custom_fee_ignored(self, coordinator, reported, amount):
        coordinator.mount(500)
        result = coordinator.set_custom_fee(amount)

        assert reported == []
        assert result.transition_reason == "invalid_custom_fee"

    def test_custom_fee_before_mount_ignored(self, coordinator, reported):
        coordinator.set_custom_fee(100)
        assert reported == []


class TestTeardown:
    """Уничтожение контрола."""

    def test_events_discarded_after_teardown(self, coordinator, reported):
        coordinator.mount(100)
        coordinator.teardown()

        amount_result = coordinator.on_amount_change(5000)
        select_result = coordinator.select(coordinator.options[3])

        assert coordinator.state == TipSelectionState.TORN_DOWN
        assert amount_result.transition_reason == "torn_down"
        assert select_result.transition_reason == "torn_down"
        assert reported == []

    def test_mount_after_teardown_ignored(self, coordinator):
        coordinator.teardown()
        result = coordinator.mount(100)
        assert result.new_state == TipSelectionState.TORN_DOWN

    def test_teardown_idempotent(self, coordinator):
        coordinator.teardown()
        coordinator.teardown()
        assert coordinator.state == TipSelectionState.TORN_DOWN


class TestIndependentInstances:
    """Экземпляры не разделяют состояние."""

    def test_two_coordinators(self):
        first, second = [], []
        a = TipSelectionCoordinator(1000, "USD", first.append)
        b = TipSelectionCoordinator(1000, "USD", second.append)

        a.mount(100)
        b.mount(200)
        a.on_amount_change(2000)

        assert first == [200]
        assert second == []
        assert b.selected_option.percentage == 0.20
