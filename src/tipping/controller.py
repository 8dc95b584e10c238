"""PlatformTipInput — связка входов хоста, координатора выбора и view state.

Контроллер не рендерит ничего сам: он отдаёт TipInputViewState, по которому
внешние виджеты (select, поле ввода суммы) строят интерфейс.

Один проход рендеринга при mount:
1. загрузка сохранённого fee (TipSelectionCoordinator.mount)
2. пересчёт для текущей суммы (TipSelectionCoordinator.recompute)
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

from src.core.contracts.validators import validate_tip_input
from src.core.domain.order_context import TipInputProps
from src.core.domain.tip_option import TipKind, TipOption
from src.tipping.options import TipConfig, format_minor_units, format_percentage
from src.tipping.state_machine import (
    FeeChangeCallback,
    TipSelectionCoordinator,
    TipTransitionResult,
)


logger = logging.getLogger(__name__)


AmountFormatter = Callable[[int, str, Optional[str]], str]

INFO_MESSAGE_KEY = "platformFee.info"
EMBED_INFO_MESSAGE_KEY = "platformFee.embed.info"

INFO_MESSAGES = {
    INFO_MESSAGE_KEY: (
        "Tips from contributors like you allow us to keep the platform free "
        "for Collectives. Thanks for any support!"
    ),
    EMBED_INFO_MESSAGE_KEY: (
        "This page is powered by a platform that lets you collect and spend "
        "money transparently. It is free for charitable communities, we rely "
        "on the generosity of contributors like you to make this possible."
    ),
}


@dataclass(frozen=True)
class TipInputViewState:
    """Снимок состояния для рендеринга."""

    visible: bool
    disabled: bool
    options: Tuple[TipOption, ...]
    option_labels: Tuple[str, ...]
    selected_index: Optional[int]
    show_custom_input: bool
    custom_input_value: Optional[int]
    info_message_key: str

    @property
    def info_message(self) -> str:
        return INFO_MESSAGES[self.info_message_key]

    @property
    def selected_label(self) -> Optional[str]:
        if self.selected_index is None:
            return None
        return self.option_labels[self.selected_index]


def render_option_label(
    option: TipOption,
    formatter: AmountFormatter = format_minor_units,
    locale: Optional[str] = None
) -> str:
    """Подпись варианта в списке.

    Варианты с суммой форматируются через formatter (процент добавляется,
    если fee ненулевой); NO_TIP/CUSTOM используют свою подпись.
    """
    if option.kind in (TipKind.PERCENTAGE, TipKind.FIXED):
        label = formatter(option.fee_amount, option.currency, locale)
        if option.kind == TipKind.PERCENTAGE and option.fee_amount:
            label += f" ({format_percentage(option.percentage)}%)"
        return label
    return option.label


class PlatformTipInput:
    """Контрол выбора чаевых (platform tip) поверх базовой суммы."""

    def __init__(
        self,
        props: TipInputProps,
        on_fee_change: FeeChangeCallback,
        config: Optional[TipConfig] = None,
        formatter: AmountFormatter = format_minor_units,
        locale: Optional[str] = "en"
    ):
        self.props = props
        self.formatter = formatter
        self.locale = locale
        self._on_fee_change = on_fee_change
        self.coordinator = TipSelectionCoordinator(
            order_amount=props.order_amount(),
            currency=props.currency,
            on_fee_change=self._handle_fee_change,
            config=config,
        )

    @classmethod
    def from_inputs(
        cls,
        on_fee_change: FeeChangeCallback,
        config: Optional[TipConfig] = None,
        **props
    ) -> "PlatformTipInput":
        """Создание из именованных входов (currency, base_amount, ...).

        Входы проверяются по контракту tip_input до построения модели.

        Raises:
            jsonschema.ValidationError: если входы не соответствуют контракту
        """
        validate_tip_input(props)
        return cls(TipInputProps(**props), on_fee_change, config=config)

    # -------------------------------------------------------------------------
    # Жизненный цикл
    # -------------------------------------------------------------------------

    def mount(self) -> Tuple[TipTransitionResult, TipTransitionResult]:
        """Первый проход: загрузка сохранённого fee, затем пересчёт."""
        mounted = self.coordinator.mount(self.props.persisted_fee)
        recomputed = self.coordinator.recompute()
        return mounted, recomputed

    def update(self, **changes) -> Optional[TipTransitionResult]:
        """Новые входы хоста.

        Изменённый persisted_fee фиксируется как текущий fee хоста;
        изменение суммы/количества/валюты запускает пересчёт.

        Returns:
            результат пересчёта, если сумма или валюта изменились
        """
        previous = self.props
        self.props = TipInputProps(**{**previous.model_dump(), **changes})

        if self.props.persisted_fee != previous.persisted_fee:
            self.coordinator.sync_external_fee(self.props.persisted_fee)

        amount_changed = not _same_amount(self.props.order_amount(), previous.order_amount())
        if amount_changed or self.props.currency != previous.currency:
            return self.coordinator.on_amount_change(
                self.props.order_amount(), self.props.currency
            )
        return None

    def teardown(self) -> None:
        logger.debug("PlatformTipInput teardown (currency=%s)", self.props.currency)
        self.coordinator.teardown()

    def _handle_fee_change(self, fee: int) -> None:
        # Хост получает новый fee и отображает его обратно (поле CUSTOM)
        self.props = self.props.model_copy(update={"persisted_fee": fee})
        self._on_fee_change(fee)

    # -------------------------------------------------------------------------
    # Действия пользователя
    # -------------------------------------------------------------------------

    def select_option(self, option: Union[int, TipOption]) -> TipTransitionResult:
        """Выбор в списке: по индексу или по варианту.

        Raises:
            IndexError: если индекс вне [0, len(options))
        """
        if isinstance(option, int):
            options = self.coordinator.options
            if not 0 <= option < len(options):
                raise IndexError(f"option index must be in [0, {len(options)}), got {option}")
            option = options[option]
        return self.coordinator.select(option)

    def enter_custom_fee(self, amount: object) -> TipTransitionResult:
        """Значение из поля ввода произвольной суммы."""
        return self.coordinator.set_custom_fee(amount)

    # -------------------------------------------------------------------------
    # View state
    # -------------------------------------------------------------------------

    def view_state(self) -> TipInputViewState:
        options = self.coordinator.options
        selected = self.coordinator.selected_option
        return TipInputViewState(
            visible=self.props.is_visible(),
            disabled=not self.props.is_amount_set(),
            options=options,
            option_labels=tuple(
                render_option_label(option, self.formatter, self.locale) for option in options
            ),
            selected_index=self.coordinator.selected_index(),
            show_custom_input=selected.is_custom,
            custom_input_value=self.props.persisted_fee,
            info_message_key=(
                EMBED_INFO_MESSAGE_KEY if self.props.is_embedded_context else INFO_MESSAGE_KEY
            ),
        )


def _same_amount(a: float, b: float) -> bool:
    # NaN != NaN, но два неизвестных значения суммы считаются одинаковыми
    if a != a and b != b:
        return True
    return a == b
