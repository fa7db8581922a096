"""
Port: CurrencyRegistry
Responsibility: resolving currency text to codes, currency metadata, rate-relative conversion.
"""
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Protocol, runtime_checkable

from contracts import CurrencyCode, CurrencyInfo, RateTable


@runtime_checkable
class CurrencyRegistry(Protocol):
    def find_currency_code(self, word: str) -> Optional[CurrencyCode]:
        """
        Resolves a symbol ("¥"), localized word ("美元", "dollars") or code ("usd").
        Symbols are checked first, then word patterns in priority order,
        then the upper-cased input against the known codes.
        Returns None if unresolved.
        """
        ...

    def find_currency_info(self, code: CurrencyCode) -> Optional[CurrencyInfo]:
        """Returns display name and decimal places; fiat wins over crypto."""
        ...

    def update_currencies_list(self, codes: Iterable[str]) -> None:
        """
        Replaces the known-codes set.
        Raises CurrencyCodeCaseError if any code is not upper-case.
        """
        ...

    def update_currency_info(
        self,
        fiat: Optional[Mapping[str, CurrencyInfo]] = None,
        crypto: Optional[Mapping[str, CurrencyInfo]] = None,
    ) -> None:
        """Merges fiat/crypto metadata and registers the codes as known."""
        ...

    def convert(
        self,
        value: Decimal,
        source: CurrencyCode,
        target: CurrencyCode,
        rates: RateTable,
    ) -> Decimal:
        """
        Returns value × rates[target] / rates[source].
        Raises MissingRateError if either rate is absent.
        """
        ...
