"""
Domain models and value objects.

Contains fundamental domain entities like TipOption and OrderContext.
"""

from src.core.domain.order_context import OrderContext, TipInputProps
from src.core.domain.tip_option import (
    IdentityTag,
    OptionIdentity,
    TipKind,
    TipOption,
)

__all__ = [
    # Tip option model
    "TipOption",
    "TipKind",
    "OptionIdentity",
    "IdentityTag",
    # Order context
    "OrderContext",
    "TipInputProps",
]
