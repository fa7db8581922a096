"""
config.py — Application configuration via environment variables.
All variables carry the ZHISUAN_ prefix.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Decimal arithmetic (significant digits for every line evaluation)
    decimal_precision: int = 28

    # Currency registry: seed fiat/crypto metadata shipped with the package
    load_builtin_currencies: bool = True

    # Logging
    log_level: str = "INFO"

    # App
    app_title: str = "Zhisuan"
    app_version: str = "0.1.0"

    model_config = SettingsConfigDict(env_prefix="ZHISUAN_", env_file=".env", extra="ignore")
