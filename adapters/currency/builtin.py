"""
Built-in currency metadata seed: (code, display name, decimal places).
Callers with their own tables use CurrencyRegistry.update_currency_info().
"""
from __future__ import annotations

BUILTIN_FIAT: list[tuple[str, str, int]] = [
    ("CNY", "Chinese Yuan", 2),
    ("USD", "US Dollar", 2),
    ("EUR", "Euro", 2),
    ("GBP", "British Pound", 2),
    ("JPY", "Japanese Yen", 0),
    ("KRW", "South Korean Won", 0),
    ("RUB", "Russian Ruble", 2),
    ("THB", "Thai Baht", 2),
    ("CHF", "Swiss Franc", 2),
    ("HKD", "Hong Kong Dollar", 2),
    ("TWD", "New Taiwan Dollar", 2),
    ("AUD", "Australian Dollar", 2),
    ("CAD", "Canadian Dollar", 2),
    ("NZD", "New Zealand Dollar", 2),
    ("SGD", "Singapore Dollar", 2),
    ("INR", "Indian Rupee", 2),
    ("MYR", "Malaysian Ringgit", 2),
    ("SEK", "Swedish Krona", 2),
    ("NOK", "Norwegian Krone", 2),
    ("DKK", "Danish Krone", 2),
    ("PLN", "Polish Zloty", 2),
    ("BRL", "Brazilian Real", 2),
    ("MXN", "Mexican Peso", 2),
    ("ZAR", "South African Rand", 2),
    ("TRY", "Turkish Lira", 2),
    ("AED", "UAE Dirham", 2),
]

BUILTIN_CRYPTO: list[tuple[str, str, int]] = [
    ("BTC", "Bitcoin", 8),
    ("ETH", "Ethereum", 8),
    ("USDT", "Tether", 2),
    ("BNB", "BNB", 8),
    ("SOL", "Solana", 8),
    ("XRP", "XRP", 6),
    ("DOGE", "Dogecoin", 8),
    ("LTC", "Litecoin", 8),
]
