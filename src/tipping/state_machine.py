"""Tip Selection State Machine — выбор варианта чаевых и синхронизация fee.

Состояния:
- UNINITIALIZED: вариант по умолчанию, ожидается загрузка сохранённого fee
- READY: сохранённый fee загружен, пересчёт при смене суммы активен
- TORN_DOWN: контрол уничтожен, события отбрасываются

Переходы:
- mount: UNINITIALIZED → READY (ровно один раз, без вызова callback)
- amount change: READY → READY (процентный вариант пересчитывается)
- user selection / custom input: READY → READY
- teardown: * → TORN_DOWN

Callback on_fee_change вызывается только когда новый fee отличается от
последнего известного значения хоста, чтобы не зацикливаться с его состоянием.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from src.core.domain.tip_option import TipKind, TipOption
from src.core.math.numerical_safeguards import is_valid_amount, round_half_up
from src.tipping.options import (
    TipConfig,
    custom_option,
    find_option_for_fee,
    generate_options,
    index_of,
    option_from_percentage,
)


logger = logging.getLogger(__name__)


FeeChangeCallback = Callable[[int], None]


class TipSelectionState(str, Enum):
    """Состояние координатора выбора чаевых."""
    UNINITIALIZED = "UNINITIALIZED"
    READY = "READY"
    TORN_DOWN = "TORN_DOWN"


@dataclass(frozen=True)
class TipTransitionResult:
    """Результат обработки события координатором."""

    new_state: TipSelectionState
    selected_option: TipOption
    reported_fee: Optional[int]

    # Диагностика
    transition_occurred: bool
    transition_reason: str
    previous_state: TipSelectionState
    previous_option: TipOption

    # Для отладки
    details: str

    @property
    def fee_reported(self) -> bool:
        return self.reported_fee is not None


class TipSelectionCoordinator:
    """Координатор выбора чаевых.

    Владеет выбранным вариантом и последним известным fee хоста.
    Список вариантов пересоздаётся через generate_options при каждой
    смене суммы/валюты.

    Порядок обработки событий синхронный: каждое событие выполняется
    до конца перед следующим.
    """

    def __init__(
        self,
        order_amount: object,
        currency: str,
        on_fee_change: FeeChangeCallback,
        config: Optional[TipConfig] = None
    ):
        """
        Args:
            order_amount: сумма заказа в minor units (может быть None/NaN)
            currency: ISO код валюты
            on_fee_change: callback хоста, получает новый fee в minor units
            config: конфигурация уровней чаевых
        """
        self.config = config or TipConfig()
        self._on_fee_change = on_fee_change
        self._order_amount = order_amount
        self._currency = currency
        self._options = generate_options(order_amount, currency, self.config)

        self._state = TipSelectionState.UNINITIALIZED
        self._selected = self._options[self.config.default_option_index]
        self._last_reported_fee: Optional[int] = None

    # -------------------------------------------------------------------------
    # Состояние
    # -------------------------------------------------------------------------

    @property
    def state(self) -> TipSelectionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == TipSelectionState.READY

    @property
    def selected_option(self) -> TipOption:
        return self._selected

    @property
    def options(self) -> Tuple[TipOption, ...]:
        return self._options

    @property
    def last_reported_fee(self) -> Optional[int]:
        return self._last_reported_fee

    @property
    def order_amount(self) -> object:
        return self._order_amount

    @property
    def currency(self) -> str:
        return self._currency

    def selected_index(self) -> Optional[int]:
        """Индекс выбранного варианта в текущем списке (по identity)."""
        return index_of(self._options, self._selected)

    # -------------------------------------------------------------------------
    # События
    # -------------------------------------------------------------------------

    def mount(self, persisted_fee: Optional[int] = None) -> TipTransitionResult:
        """Загрузка сохранённого fee: UNINITIALIZED → READY.

        - persisted_fee отсутствует → вариант по умолчанию сохраняется
        - совпадает с fee варианта → этот вариант
        - не совпадает ни с одним → CUSTOM

        Callback не вызывается. Повторный mount игнорируется.
        """
        if self._state != TipSelectionState.UNINITIALIZED:
            return self._no_transition("already_mounted")

        previous_state = self._state
        previous_option = self._selected

        if persisted_fee is None:
            reason = "mount_default"
        else:
            option = find_option_for_fee(self._options, persisted_fee)
            if option is not None:
                self._selected = option
                reason = "mount_matched_option"
            else:
                self._selected = custom_option(self._options)
                reason = "mount_custom_fallback"
            self._last_reported_fee = persisted_fee

        self._state = TipSelectionState.READY
        logger.debug(
            "Tip selection mounted: reason=%s, persisted_fee=%s, selected=%s",
            reason, persisted_fee, self._selected.identity,
        )

        return self._create_result(
            previous_state=previous_state,
            previous_option=previous_option,
            reported_fee=None,
            transition_occurred=True,
            transition_reason=reason,
            details=f"persisted_fee={persisted_fee}, selected={self._selected.identity}"
        )

    def on_amount_change(
        self,
        order_amount: object,
        currency: Optional[str] = None
    ) -> TipTransitionResult:
        """Смена суммы заказа (и/или валюты).

        Список вариантов пересоздаётся всегда; пересчёт выбранного варианта
        выполняется только в READY:
        1. NO_TIP при ненулевом fee хоста → fee 0 (коррекция рассинхронизации)
        2. PERCENTAGE → fee пересчитывается для того же процента
        3. CUSTOM/FIXED → без изменений
        """
        if self._state == TipSelectionState.TORN_DOWN:
            return self._no_transition("torn_down")

        self._order_amount = order_amount
        if currency is not None:
            self._currency = currency
        self._options = generate_options(self._order_amount, self._currency, self.config)

        # Тот же вариант с тем же fee берётся из нового списка (валюта)
        idx = index_of(self._options, self._selected)
        if idx is not None and self._options[idx].fee_amount == self._selected.fee_amount:
            self._selected = self._options[idx]

        if self._state != TipSelectionState.READY:
            return self._no_transition("not_ready")

        return self._recompute("amount_change")

    def recompute(self) -> TipTransitionResult:
        """Пересчёт для текущей суммы (после mount в том же проходе рендеринга)."""
        if self._state != TipSelectionState.READY:
            return self._no_transition("not_ready")
        return self._recompute("recompute")

    def select(self, option: TipOption) -> TipTransitionResult:
        """Выбор варианта пользователем.

        Выбор применяется сразу. В READY вариант с конкретным fee сообщается
        хосту, если fee отличается от известного; CUSTOM ничего не сообщает
        до ввода суммы.
        """
        if self._state == TipSelectionState.TORN_DOWN:
            return self._no_transition("torn_down")

        idx = index_of(self._options, option)
        if idx is None:
            logger.warning("Ignoring selection of unknown tip option %s", option.identity)
            return self._no_transition("unknown_option")

        previous_option = self._selected
        self._selected = self._options[idx]

        reported_fee = None
        if self.is_ready and self._selected.has_concrete_fee:
            fee = self._selected.fee_amount
            if fee != self._last_reported_fee:
                reported_fee = self._report(fee)

        logger.debug("Tip option selected: %s, reported_fee=%s", self._selected.identity, reported_fee)

        return self._create_result(
            previous_state=self._state,
            previous_option=previous_option,
            reported_fee=reported_fee,
            transition_occurred=previous_option.identity != self._selected.identity,
            transition_reason="user_selection",
            details=f"{previous_option.identity} → {self._selected.identity}"
        )

    def set_custom_fee(self, amount: object) -> TipTransitionResult:
        """Ввод произвольной суммы в поле CUSTOM.

        Сумма передаётся хосту напрямую. Пустой/невалидный ввод и ввод
        без выбранного CUSTOM игнорируются.
        """
        if self._state != TipSelectionState.READY:
            return self._no_transition("not_ready")

        if not self._selected.is_custom:
            logger.warning(
                "Ignoring custom fee %s: selected option is %s",
                amount, self._selected.kind.value,
            )
            return self._no_transition("custom_not_selected")

        if not is_valid_amount(amount):
            logger.warning("Ignoring invalid custom fee %r", amount)
            return self._no_transition("invalid_custom_fee")

        reported_fee = self._report(round_half_up(amount))  # type: ignore[arg-type]

        return self._create_result(
            previous_state=self._state,
            previous_option=self._selected,
            reported_fee=reported_fee,
            transition_occurred=False,
            transition_reason="custom_fee_input",
            details=f"custom fee={reported_fee}"
        )

    def sync_external_fee(self, fee: Optional[int]) -> None:
        """Актуальное значение fee хоста (после его собственного обновления)."""
        self._last_reported_fee = fee

    def teardown(self) -> None:
        """Уничтожение контрола: дальнейшие события отбрасываются."""
        if self._state != TipSelectionState.TORN_DOWN:
            logger.debug("Tip selection torn down from %s", self._state.value)
        self._state = TipSelectionState.TORN_DOWN

    # -------------------------------------------------------------------------
    # Внутреннее
    # -------------------------------------------------------------------------

    def _recompute(self, reason: str) -> TipTransitionResult:
        previous_option = self._selected

        # 1. NO_TIP при устаревшем ненулевом fee хоста
        if self._selected.kind == TipKind.NO_TIP and self._last_reported_fee:
            reported_fee = self._report(0)
            return self._create_result(
                previous_state=self._state,
                previous_option=previous_option,
                reported_fee=reported_fee,
                transition_occurred=False,
                transition_reason=f"{reason}_no_tip_drift",
                details="NO_TIP selected while host fee is nonzero, reported 0"
            )

        # 2. Процентный вариант: пересчёт fee для новой суммы
        if self._selected.kind == TipKind.PERCENTAGE:
            new_option = option_from_percentage(
                self._order_amount, self._currency, self._selected.percentage
            )
            if new_option.fee_amount != self._last_reported_fee:
                reported_fee = self._report(new_option.fee_amount)
                self._selected = new_option
                return self._create_result(
                    previous_state=self._state,
                    previous_option=previous_option,
                    reported_fee=reported_fee,
                    transition_occurred=True,
                    transition_reason=f"{reason}_percentage_fee",
                    details=(
                        f"percentage={self._selected.percentage}, "
                        f"fee {previous_option.fee_amount} → {new_option.fee_amount}"
                    )
                )

        # 3. Нет изменений
        return self._no_transition(f"{reason}_unchanged")

    def _report(self, fee: int) -> int:
        self._last_reported_fee = fee
        logger.debug("Reporting platform tip fee=%s", fee)
        self._on_fee_change(fee)
        return fee

    def _no_transition(self, reason: str) -> TipTransitionResult:
        return self._create_result(
            previous_state=self._state,
            previous_option=self._selected,
            reported_fee=None,
            transition_occurred=False,
            transition_reason=reason,
            details=f"State={self._state.value}, selected={self._selected.identity}"
        )

    def _create_result(
        self,
        previous_state: TipSelectionState,
        previous_option: TipOption,
        reported_fee: Optional[int],
        transition_occurred: bool,
        transition_reason: str,
        details: str
    ) -> TipTransitionResult:
        """Создание результата перехода."""
        return TipTransitionResult(
            new_state=self._state,
            selected_option=self._selected,
            reported_fee=reported_fee,
            transition_occurred=transition_occurred,
            transition_reason=transition_reason,
            previous_state=previous_state,
            previous_option=previous_option,
            details=details
        )
