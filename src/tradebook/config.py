"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Local record store location."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    db_path: str = "data/tradebook.db"


class ImportSettings(BaseSettings):
    """CSV import limits and heuristics."""

    model_config = SettingsConfigDict(env_prefix="IMPORT_")

    pair_lookback: int = 4  # lines searched above "Qty" for the pair anchor
    max_upload_bytes: int = 5_000_000


class PortfolioSettings(BaseSettings):
    """Portfolio defaults for users without saved settings."""

    model_config = SettingsConfigDict(env_prefix="PORTFOLIO_")

    default_portfolio_size: Decimal = Decimal("10000")


class DashboardSettings(BaseSettings):
    """Dashboard API server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True
    default_user_id: str = "local"  # used when no X-User-Id header is sent


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str = "console"  # "json" or "console"
    store: StoreSettings = StoreSettings()
    imports: ImportSettings = ImportSettings()
    portfolio: PortfolioSettings = PortfolioSettings()
    dashboard: DashboardSettings = DashboardSettings()
