"""
Numerical Safeguards — Safe Math Primitives для денежных сумм

Модуль обеспечивает численную устойчивость расчёта чаевых:
- Проверка конечности чисел (NaN/Inf не участвуют в расчётах)
- Проверка "валидной суммы" (finite, неотрицательная, не None)
- Округление half-up до целых minor units (центов)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. NaN/Inf никогда не пропагируют в fee (заменяются на fallback)
2. Округление детерминировано: floor(x + 0.5) для неотрицательных x
3. Все функции чистые и не бросают исключений на "плохих" суммах
"""

import math
from typing import Final


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Fallback для fee при невалидной сумме заказа
FEE_FALLBACK_MINOR: Final[int] = 0


# =============================================================================
# NaN/Inf САНИТИЗАЦИЯ
# =============================================================================


def is_valid_float(value: object) -> bool:
    """
    Проверка, является ли значение конечным числом.

    bool намеренно не считается числом.

    Args:
        value: Проверяемое значение (любой тип)

    Returns:
        True если значение int/float и finite, False для None/NaN/Inf/прочего
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def is_valid_amount(value: object) -> bool:
    """
    Валидная сумма заказа: конечное неотрицательное число.

    Args:
        value: Сумма в minor units (может быть None/NaN)

    Returns:
        True если сумму можно использовать для расчёта процентов
    """
    return is_valid_float(value) and value >= 0  # type: ignore[operator]


# =============================================================================
# ОКРУГЛЕНИЕ
# =============================================================================


def round_half_up(value: float) -> int:
    """
    Округление до ближайшего целого, половины — вверх (к +inf).

    Встроенный round() использует banker's rounding (round(2.5) == 2),
    что для денежных сумм неприемлемо.

    Args:
        value: Значение (finite)

    Returns:
        floor(value + 0.5)

    Examples:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(149.99999999999997)
        150
        >>> round_half_up(-2.5)
        -2
    """
    return math.floor(value + 0.5)


def percentage_of(amount: object, percentage: float) -> int:
    """
    Доля суммы в minor units с санитизацией.

    Args:
        amount: Сумма заказа в minor units (может быть None/NaN/отрицательной)
        percentage: Доля (например 0.15 = 15%)

    Returns:
        round_half_up(amount * percentage) для валидной суммы,
        иначе FEE_FALLBACK_MINOR
    """
    if not is_valid_amount(amount):
        return FEE_FALLBACK_MINOR

    fee = amount * percentage  # type: ignore[operator]
    if not math.isfinite(fee):
        return FEE_FALLBACK_MINOR
    return round_half_up(fee)


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_in_range(
    value: float,
    name: str,
    min_value: float | None = None,
    max_value: float | None = None,
    min_inclusive: bool = True,
) -> None:
    """
    Валидация, что значение в заданном диапазоне.

    Args:
        value: Проверяемое значение
        name: Имя параметра (для сообщения об ошибке)
        min_value: Минимальное допустимое значение (optional)
        max_value: Максимальное допустимое значение (optional, включительно)
        min_inclusive: Включать ли min_value в диапазон

    Raises:
        ValueError: Если value вне диапазона или NaN/Inf
    """
    if not is_valid_float(value):
        raise ValueError(f"{name} must be a valid number (not NaN/Inf), got {value}")

    if min_value is not None:
        if min_inclusive and value < min_value:
            raise ValueError(f"{name} must be >= {min_value}, got {value}")
        if not min_inclusive and value <= min_value:
            raise ValueError(f"{name} must be > {min_value}, got {value}")

    if max_value is not None and value > max_value:
        raise ValueError(f"{name} must be <= {max_value}, got {value}")


def validate_positive_int(value: object, name: str) -> None:
    """
    Валидация, что значение — положительное целое (minor units).

    Raises:
        ValueError: Если value не int или <= 0
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")

    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
