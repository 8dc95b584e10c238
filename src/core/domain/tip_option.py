"""
TipOption — Модель варианта чаевых (platform tip)

Immutable Pydantic модель одного пункта выпадающего списка чаевых:
- PERCENTAGE: процент от суммы заказа (fee пересчитывается при смене суммы)
- FIXED: фиксированная сумма
- NO_TIP: отказ от чаевых (fee = 0)
- CUSTOM: произвольная сумма, вводимая пользователем отдельно

Identity — tagged value (тег + payload), а не приведённый примитив:
процентный вариант с fee = 0 не должен совпадать с NO_TIP.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================


class TipKind(str, Enum):
    """Тип варианта чаевых"""

    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"
    NO_TIP = "NO_TIP"
    CUSTOM = "CUSTOM"


class IdentityTag(str, Enum):
    """Тег identity варианта"""

    FEE = "FEE"
    PERCENTAGE = "PERCENTAGE"
    CUSTOM = "CUSTOM"


# =============================================================================
# IDENTITY
# =============================================================================


@dataclass(frozen=True)
class OptionIdentity:
    """
    Ключ равенства/поиска варианта.

    Сравнение идёт по тегу и payload вместе: FEE(0) != PERCENTAGE(0.1).
    """

    tag: IdentityTag
    value: int | float | None = None

    @classmethod
    def fee(cls, amount: int) -> "OptionIdentity":
        return cls(IdentityTag.FEE, amount)

    @classmethod
    def percentage(cls, percentage: float) -> "OptionIdentity":
        return cls(IdentityTag.PERCENTAGE, percentage)

    @classmethod
    def custom(cls) -> "OptionIdentity":
        return cls(IdentityTag.CUSTOM)

    def __str__(self) -> str:
        if self.tag == IdentityTag.CUSTOM:
            return "CUSTOM"
        if self.tag == IdentityTag.PERCENTAGE:
            return f"{self.value}%"
        return str(self.value)


# =============================================================================
# TIP OPTION MODEL
# =============================================================================


class TipOption(BaseModel):
    """
    Вариант чаевых.

    Immutable модель (frozen=True). fee_amount в minor units (центах).
    Для CUSTOM fee_amount отсутствует: сумму задаёт пользователь.
    """

    kind: TipKind = Field(..., description="Тип варианта")
    percentage: float | None = Field(
        None,
        gt=0,
        le=1,
        validate_default=True,
        description="Доля от суммы заказа (только PERCENTAGE)",
    )
    fee_amount: int | None = Field(
        None,
        ge=0,
        validate_default=True,
        description="Абсолютный fee в minor units (нет у CUSTOM)",
    )
    currency: str = Field(..., min_length=1, description="ISO код валюты")
    label: str = Field("", description="Строка для отображения (не участвует в логике)")

    model_config = {"frozen": True}

    @field_validator("percentage")
    @classmethod
    def validate_percentage_kind(cls, v: float | None, info) -> float | None:
        """percentage обязателен для PERCENTAGE и запрещён для остальных"""
        kind = info.data.get("kind")
        if kind == TipKind.PERCENTAGE and v is None:
            raise ValueError("PERCENTAGE option requires percentage")
        if kind is not None and kind != TipKind.PERCENTAGE and v is not None:
            raise ValueError(f"{kind.value} option must not carry percentage")
        return v

    @field_validator("fee_amount")
    @classmethod
    def validate_fee_kind(cls, v: int | None, info) -> int | None:
        """Согласованность fee_amount с типом варианта"""
        kind = info.data.get("kind")
        if kind == TipKind.CUSTOM:
            if v is not None:
                raise ValueError("CUSTOM option must not carry fee_amount")
            return v
        if kind == TipKind.NO_TIP:
            if v not in (None, 0):
                raise ValueError(f"NO_TIP option fee_amount must be 0, got {v}")
            return 0
        if kind in (TipKind.PERCENTAGE, TipKind.FIXED) and v is None:
            raise ValueError(f"{kind.value} option requires fee_amount")
        if kind == TipKind.FIXED and v == 0:
            raise ValueError("FIXED option fee_amount must be positive (use NO_TIP for 0)")
        return v

    # -------------------------------------------------------------------------
    # Фабрики
    # -------------------------------------------------------------------------

    @classmethod
    def percentage_tier(
        cls, percentage: float, fee_amount: int, currency: str, label: str = ""
    ) -> "TipOption":
        return cls(
            kind=TipKind.PERCENTAGE,
            percentage=percentage,
            fee_amount=fee_amount,
            currency=currency,
            label=label,
        )

    @classmethod
    def fixed(cls, fee_amount: int, currency: str, label: str = "") -> "TipOption":
        return cls(kind=TipKind.FIXED, fee_amount=fee_amount, currency=currency, label=label)

    @classmethod
    def no_tip(cls, currency: str, label: str = "") -> "TipOption":
        return cls(kind=TipKind.NO_TIP, fee_amount=0, currency=currency, label=label)

    @classmethod
    def custom(cls, currency: str, label: str = "") -> "TipOption":
        return cls(kind=TipKind.CUSTOM, currency=currency, label=label)

    # -------------------------------------------------------------------------
    # Identity и поиск
    # -------------------------------------------------------------------------

    @property
    def identity(self) -> OptionIdentity:
        """
        Ключ варианта.

        PERCENTAGE идентифицируется по проценту (уникален даже при fee = 0
        и при совпадении fee у соседних уровней на малых суммах).
        FIXED/NO_TIP — по fee, CUSTOM — отдельный sentinel.
        """
        if self.kind == TipKind.CUSTOM:
            return OptionIdentity.custom()
        if self.kind == TipKind.PERCENTAGE:
            return OptionIdentity.percentage(self.percentage)  # type: ignore[arg-type]
        return OptionIdentity.fee(self.fee_amount)  # type: ignore[arg-type]

    @property
    def is_custom(self) -> bool:
        return self.kind == TipKind.CUSTOM

    @property
    def is_percentage(self) -> bool:
        return self.kind == TipKind.PERCENTAGE

    @property
    def has_concrete_fee(self) -> bool:
        """True если вариант сам определяет fee (всё, кроме CUSTOM)"""
        return self.fee_amount is not None

    def matches_fee(self, fee: int) -> bool:
        """
        Совпадает ли вариант с сохранённым значением fee.

        Процентный вариант с fee = 0 не совпадает ни с чем: нулевой fee
        принадлежит NO_TIP.
        """
        if self.kind == TipKind.CUSTOM:
            return False
        if self.kind == TipKind.PERCENTAGE and not self.fee_amount:
            return False
        return self.fee_amount == fee
