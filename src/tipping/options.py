"""Option Generator — построение списка вариантов чаевых.

Чистая функция (order_amount, currency, config) → упорядоченный список TipOption:
- процентные уровни по возрастанию (по умолчанию 10% / 15% / 20%)
- фиксированные уровни (если заданы в конфигурации)
- NO_TIP
- CUSTOM

Невалидная сумма заказа (None/NaN/Inf/отрицательная) даёт fee = 0
для всех процентных уровней; варианты при этом остаются различимыми.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from src.core.domain.tip_option import TipKind, TipOption
from src.core.math.numerical_safeguards import (
    percentage_of,
    validate_in_range,
    validate_positive_int,
)


DEFAULT_PERCENTAGES: Tuple[float, ...] = (0.10, 0.15, 0.20)


@dataclass(frozen=True)
class TipConfig:
    """Конфигурация списка вариантов чаевых.

    - percentages: процентные уровни, строго по возрастанию, в (0, 1]
    - fixed_amounts: фиксированные уровни в minor units (между процентами и NO_TIP)
    - default_option_index: индекс варианта, выбранного до загрузки сохранённого fee
    - no_tip_label / custom_label: подписи служебных вариантов
    """
    percentages: Tuple[float, ...] = DEFAULT_PERCENTAGES
    fixed_amounts: Tuple[int, ...] = ()
    default_option_index: int = 1
    no_tip_label: str = "No thank you"
    custom_label: str = "Other"

    def __post_init__(self):
        if not self.percentages:
            raise ValueError("percentages must not be empty")

        for p in self.percentages:
            validate_in_range(p, "percentage", min_value=0.0, max_value=1.0, min_inclusive=False)

        if any(b <= a for a, b in zip(self.percentages, self.percentages[1:])):
            raise ValueError(f"percentages must be strictly ascending, got {self.percentages}")

        for amount in self.fixed_amounts:
            validate_positive_int(amount, "fixed_amount")

        if len(set(self.fixed_amounts)) != len(self.fixed_amounts):
            raise ValueError(f"fixed_amounts must be unique, got {self.fixed_amounts}")

        # Вариант по умолчанию должен иметь конкретный fee (не CUSTOM)
        concrete_count = len(self.percentages) + len(self.fixed_amounts) + 1
        if not 0 <= self.default_option_index < concrete_count:
            raise ValueError(
                f"default_option_index must be in [0, {concrete_count}), "
                f"got {self.default_option_index}"
            )

    @property
    def option_count(self) -> int:
        """Число вариантов в сгенерированном списке (включая NO_TIP и CUSTOM)"""
        return len(self.percentages) + len(self.fixed_amounts) + 2


DEFAULT_TIP_CONFIG = TipConfig()


# =============================================================================
# ПОДПИСИ
# =============================================================================


def format_minor_units(amount: int, currency: str, locale: Optional[str] = None) -> str:
    """Минимальное форматирование суммы: "<major> <CURRENCY>".

    150 → "1.5 USD", 1000 → "10 USD". Локаль не учитывается.
    """
    if amount % 100 == 0:
        major = str(amount // 100)
    else:
        major = str(amount / 100)
    return f"{major} {currency}"


def format_percentage(percentage: float) -> str:
    """0.15 → "15", 0.125 → "12.5" (без артефактов float)"""
    return f"{round(percentage * 100, 6):g}"


def _percentage_label(fee_amount: int, currency: str, percentage: float) -> str:
    label = format_minor_units(fee_amount, currency)
    if fee_amount:
        # Процент 0 не показываем
        label += f" ({format_percentage(percentage)}%)"
    return label


# =============================================================================
# ГЕНЕРАЦИЯ
# =============================================================================


def option_from_percentage(order_amount: object, currency: str, percentage: float) -> TipOption:
    """Процентный вариант для заданной суммы заказа.

    Args:
        order_amount: сумма заказа в minor units (может быть None/NaN)
        currency: ISO код валюты
        percentage: доля (0.15 = 15%)

    Returns:
        TipOption(PERCENTAGE) с fee = round_half_up(order_amount * percentage)
    """
    fee_amount = percentage_of(order_amount, percentage)
    return TipOption.percentage_tier(
        percentage=percentage,
        fee_amount=fee_amount,
        currency=currency,
        label=_percentage_label(fee_amount, currency, percentage),
    )


def generate_options(
    order_amount: object,
    currency: str,
    config: Optional[TipConfig] = None,
) -> Tuple[TipOption, ...]:
    """Упорядоченный список вариантов чаевых.

    Порядок стабилен: проценты по возрастанию, фиксированные суммы,
    NO_TIP, CUSTOM. Identity вариантов попарно различны.

    Args:
        order_amount: сумма заказа в minor units (может быть None/NaN)
        currency: ISO код валюты
        config: конфигурация уровней (default: 10/15/20%)

    Returns:
        Кортеж TipOption
    """
    config = config or DEFAULT_TIP_CONFIG

    options = [
        option_from_percentage(order_amount, currency, p) for p in config.percentages
    ]
    options.extend(
        TipOption.fixed(amount, currency, label=format_minor_units(amount, currency))
        for amount in config.fixed_amounts
    )
    options.append(TipOption.no_tip(currency, label=config.no_tip_label))
    options.append(TipOption.custom(currency, label=config.custom_label))
    return tuple(options)


# =============================================================================
# ПОИСК
# =============================================================================


def find_option_for_fee(options: Sequence[TipOption], fee: int) -> Optional[TipOption]:
    """Первый вариант, совпадающий с сохранённым fee, либо None."""
    for option in options:
        if option.matches_fee(fee):
            return option
    return None


def custom_option(options: Sequence[TipOption]) -> TipOption:
    """Вариант CUSTOM из списка.

    Raises:
        LookupError: если список не содержит CUSTOM (не сгенерирован generate_options)
    """
    for option in options:
        if option.kind == TipKind.CUSTOM:
            return option
    raise LookupError("options contain no CUSTOM entry")


def index_of(options: Sequence[TipOption], option: TipOption) -> Optional[int]:
    """Индекс варианта по identity, либо None."""
    for i, candidate in enumerate(options):
        if candidate.identity == option.identity:
            return i
    return None
