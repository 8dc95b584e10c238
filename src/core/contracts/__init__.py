"""
Contract Validation Module

Модуль для валидации JSON контрактов контрола чаевых.
"""

from .validators import (
    ContractValidator,
    SchemaLoader,
    TipInputValidator,
    TipOptionValidator,
    validate_tip_input,
    validate_tip_option,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "TipInputValidator",
    "TipOptionValidator",
    # Functions
    "validate_tip_input",
    "validate_tip_option",
]
