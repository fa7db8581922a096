"""
Currency adapter package.

Public import:
    from adapters.currency import CurrencyRegistry
"""

from adapters.currency.registry import CurrencyRegistry

__all__ = ["CurrencyRegistry"]
