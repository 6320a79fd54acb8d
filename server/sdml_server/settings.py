"""
sdml-lint server settings

Configuration management using pydantic settings.
Loads from environment variables with SDML_LINT_ prefix.
"""

from typing import List, Optional

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Server configuration settings.

    Environment variables:
    - SDML_LINT_CONFIG_PATH: YAML engine config to load at startup (optional)
    - SDML_LINT_ALLOWED_ORIGINS_RAW: Comma-separated list of allowed CORS origins
    - SDML_LINT_ALLOW_RULE_UPDATES: Allow PUT /rules (default: true)
    - SDML_LINT_DEBUG: Enable debug logging (default: false)
    """

    model_config = SettingsConfigDict(
        env_prefix="SDML_LINT_",
        env_file=".env",
        extra="ignore",
    )

    config_path: Optional[str] = None

    # Raw string field for comma-separated values
    allowed_origins_raw: str = ""

    allow_rule_updates: bool = True

    debug: bool = False

    @computed_field
    @property
    def allowed_origins(self) -> List[str]:
        """Parse comma-separated allowed origins into list."""
        if not self.allowed_origins_raw:
            return []
        return [v.strip() for v in self.allowed_origins_raw.split(",") if v.strip()]


# Global settings instance
settings = Settings()
