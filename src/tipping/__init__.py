"""Tipping — выбор чаевых (platform tip) поверх базовой суммы платежа.

- Option Generator: список вариантов из суммы заказа и валюты
- Selection Coordinator: загрузка сохранённого fee и пересчёт при смене суммы
- PlatformTipInput: связка входов хоста, координатора и view state
"""

from .controller import PlatformTipInput, TipInputViewState, render_option_label
from .options import (
    DEFAULT_PERCENTAGES,
    TipConfig,
    format_minor_units,
    generate_options,
    option_from_percentage,
)
from .state_machine import (
    TipSelectionCoordinator,
    TipSelectionState,
    TipTransitionResult,
)

__all__ = [
    "DEFAULT_PERCENTAGES",
    "TipConfig",
    "generate_options",
    "option_from_percentage",
    "format_minor_units",
    "TipSelectionCoordinator",
    "TipSelectionState",
    "TipTransitionResult",
    "PlatformTipInput",
    "TipInputViewState",
    "render_option_label",
]
