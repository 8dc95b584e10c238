"""
Core math modules

Численные примитивы для расчёта чаевых с гарантией стабильности.
"""

from src.core.math.numerical_safeguards import (
    FEE_FALLBACK_MINOR,
    is_valid_amount,
    is_valid_float,
    percentage_of,
    round_half_up,
    validate_in_range,
    validate_positive_int,
)

__all__ = [
    "FEE_FALLBACK_MINOR",
    # NaN/Inf sanitization
    "is_valid_float",
    "is_valid_amount",
    # Rounding
    "round_half_up",
    "percentage_of",
    # Validation
    "validate_in_range",
    "validate_positive_int",
]
