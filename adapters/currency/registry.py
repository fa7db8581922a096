"""
Adapter: CurrencyRegistry
Implements the CurrencyRegistry port with in-memory tables.

Resolution order for find_currency_code():
  1. exact symbol lookup    — "¥", "￥", "$", "＄", "﹩", "€", ...
  2. localized word pattern — "人民币", "美元", "dollars", ... (ordered, first match wins)
  3. known code             — upper-cased input found in the known-codes set

find_currency_info() checks the fiat table first, then the crypto table.
"""
from __future__ import annotations

import logging
import math
import re
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from adapters.currency.builtin import BUILTIN_CRYPTO, BUILTIN_FIAT
from contracts import (
    CurrencyCode,
    CurrencyCodeCaseError,
    CurrencyInfo,
    MissingRateError,
    RateTable,
)

logger = logging.getLogger("zhisuan.currency")

_SIGNS_TO_CODE: dict[str, CurrencyCode] = {
    "¥": "CNY",
    "￥": "CNY",
    "$": "USD",
    "＄": "USD",
    "﹩": "USD",
    "₽": "RUB",
    "€": "EUR",
    "£": "GBP",
    "฿": "THB",
    "円": "JPY",
    "₣": "CHF",
    "₩": "KRW",
}

# Priority list; order matters.
_WORDS_TO_CODE: list[tuple[re.Pattern[str], CurrencyCode]] = [
    (re.compile(r"^人民币$", re.IGNORECASE), "CNY"),
    (re.compile(r"^元$", re.IGNORECASE), "CNY"),
    (re.compile(r"^块钱$", re.IGNORECASE), "CNY"),
    (re.compile(r"^美元$", re.IGNORECASE), "USD"),
    (re.compile(r"^美金$", re.IGNORECASE), "USD"),
    (re.compile(r"^欧元$", re.IGNORECASE), "EUR"),
    (re.compile(r"^英镑$", re.IGNORECASE), "GBP"),
    (re.compile(r"^日元$", re.IGNORECASE), "JPY"),
    (re.compile(r"^韩元$", re.IGNORECASE), "KRW"),
    (re.compile(r"^卢布$", re.IGNORECASE), "RUB"),
    (re.compile(r"^泰铢$", re.IGNORECASE), "THB"),
    (re.compile(r"^瑞士法郎$", re.IGNORECASE), "CHF"),
    (re.compile(r"^港币$", re.IGNORECASE), "HKD"),
    (re.compile(r"^澳元$", re.IGNORECASE), "AUD"),
    (re.compile(r"^加元$", re.IGNORECASE), "CAD"),
    (re.compile(r"^新西兰元$", re.IGNORECASE), "NZD"),
    (re.compile(r"^新加坡元$", re.IGNORECASE), "SGD"),
    (re.compile(r"^比特币$", re.IGNORECASE), "BTC"),
    (re.compile(r"^以太币$", re.IGNORECASE), "ETH"),
    # English names
    (re.compile(r"^dollars?$", re.IGNORECASE), "USD"),
    (re.compile(r"^euros?$", re.IGNORECASE), "EUR"),
    (re.compile(r"^pounds?$", re.IGNORECASE), "GBP"),
    (re.compile(r"^ro?ubl(es?)?$", re.IGNORECASE), "RUB"),
    (re.compile(r"^baht$", re.IGNORECASE), "THB"),
    (re.compile(r"^bitcoins?$", re.IGNORECASE), "BTC"),
]


def _require_upper(codes: Iterable[str]) -> list[str]:
    codes = list(codes)
    for code in codes:
        if code.upper() != code:
            raise CurrencyCodeCaseError(f"Currency code {code!r} must be upper-case")
    return codes


class CurrencyRegistry:
    """
    Currency lookup tables for one process.
    Seeded at configuration time; read-only during evaluation.
    """

    def __init__(self) -> None:
        self._known: set[CurrencyCode] = set()
        self._fiat: dict[CurrencyCode, CurrencyInfo] = {}
        self._crypto: dict[CurrencyCode, CurrencyInfo] = {}

    @classmethod
    def with_builtins(cls) -> CurrencyRegistry:
        registry = cls()
        registry.update_currency_info(
            fiat={code: CurrencyInfo(name=name, dp=dp) for code, name, dp in BUILTIN_FIAT},
            crypto={code: CurrencyInfo(name=name, dp=dp) for code, name, dp in BUILTIN_CRYPTO},
        )
        return registry

    # -- CurrencyRegistry protocol ------------------------------------------

    def update_currencies_list(self, codes: Iterable[str]) -> None:
        """Replaces the known-codes set. Raises CurrencyCodeCaseError on lower-case codes."""
        self._known = set(_require_upper(codes))
        logger.info("Currency list updated: %d codes", len(self._known))

    def update_currency_info(
        self,
        fiat: Optional[Mapping[str, CurrencyInfo]] = None,
        crypto: Optional[Mapping[str, CurrencyInfo]] = None,
    ) -> None:
        """Merges metadata tables and registers their codes as known."""
        fiat = dict(fiat or {})
        crypto = dict(crypto or {})
        _require_upper(fiat)
        _require_upper(crypto)
        self._fiat.update(fiat)
        self._crypto.update(crypto)
        self.update_currencies_list(self._known | set(fiat) | set(crypto))

    def find_currency_code(self, word: str) -> Optional[CurrencyCode]:
        code = _SIGNS_TO_CODE.get(word)
        if code:
            return code

        code = self._find_code_by_word(word)
        if code:
            return code

        word = word.upper()
        if word in self._known:
            return word
        return None

    def find_currency_info(self, code: CurrencyCode) -> Optional[CurrencyInfo]:
        return self._fiat.get(code) or self._crypto.get(code)

    def rate_of(self, code: CurrencyCode, rates: RateTable) -> Decimal:
        if code not in rates or rates[code] is None:
            raise MissingRateError(code)
        rate = float(rates[code])
        if not math.isfinite(rate):
            raise MissingRateError(code)
        return Decimal(repr(rate))

    def convert(
        self,
        value: Decimal,
        source: CurrencyCode,
        target: CurrencyCode,
        rates: RateTable,
    ) -> Decimal:
        """value × rate[target] / rate[source]."""
        target_rate = self.rate_of(target, rates)
        source_rate = self.rate_of(source, rates)
        if source_rate == 0:
            raise ZeroDivisionError(f"Zero exchange rate for {source!r}")
        return value * target_rate / source_rate

    # -- Private -------------------------------------------------------------

    @staticmethod
    def _find_code_by_word(word: str) -> Optional[CurrencyCode]:
        for pattern, code in _WORDS_TO_CODE:
            if pattern.search(word):
                return code
        return None
