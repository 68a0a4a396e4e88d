"""Application configuration using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Chronic Risk Engine"
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_v1_prefix: str = "/api/v1"

    # Lab units
    default_country: str = "Australia"
    mmol_countries: list[str] = ["Australia"]

    # Namespace for saved client records (persistence layer only)
    storage_namespace: str = "longenix-risk"

    def uses_mmol(self, country: str | None) -> bool:
        """Check whether a country reports lipids and glucose in mmol/L."""
        country = country or self.default_country
        return country.strip().lower() in {c.lower() for c in self.mmol_countries}


settings = Settings()
