"""
OrderContext — Контекст заказа для расчёта чаевых

Immutable Pydantic модели входных данных хоста:
- OrderContext: базовая сумма, количество, валюта → order_amount
- TipInputProps: OrderContext + сохранённый fee и флаг embed-контекста

Суммы в minor units (центах). base_amount может отсутствовать или быть NaN:
такие значения не отклоняются, а дают нулевые процентные fee.
"""

import math

from pydantic import BaseModel, Field

from src.core.math.numerical_safeguards import is_valid_float


# Совпадает с contracts/schema/tip_input.json
CURRENCY_PATTERN = r"^[A-Z]{3}$"


class OrderContext(BaseModel):
    """
    Контекст заказа.

    order_amount = base_amount * quantity.
    """

    base_amount: float | None = Field(
        None, description="Базовая сумма в minor units (None/NaN допустимы)"
    )
    quantity: float = Field(1, gt=0, description="Количество (положительное)")
    currency: str = Field(..., pattern=CURRENCY_PATTERN, description="ISO 4217 код валюты")

    model_config = {"frozen": True}

    def order_amount(self) -> float:
        """
        Сумма заказа в minor units.

        Returns:
            base_amount * quantity, либо NaN если base_amount не задан
        """
        if self.base_amount is None:
            return math.nan
        return self.base_amount * self.quantity

    def is_amount_set(self) -> bool:
        """Задана ли ненулевая валидная базовая сумма"""
        return is_valid_float(self.base_amount) and self.base_amount != 0

    def is_visible(self) -> bool:
        """Контрол скрывается только при base_amount ровно 0"""
        return self.base_amount != 0


class TipInputProps(OrderContext):
    """
    Полный набор входов контрола чаевых.

    persisted_fee — ранее сохранённое хостом значение fee (minor units).
    is_embedded_context влияет только на поясняющий текст.
    """

    persisted_fee: int | None = Field(
        None, ge=0, description="Сохранённый fee в minor units"
    )
    is_embedded_context: bool = Field(False, description="Контрол встроен во внешнюю страницу")
