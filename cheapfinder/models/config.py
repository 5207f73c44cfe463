"""Configuration management for the search service."""

import os
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


_TRUE_VALUES = {"1", "true", "yes", "on"}


class AppConfig(BaseModel):
    """Service configuration with defaults matching the production deployment."""

    # Server
    env: str = Field(default="production", description="Deployment environment name")
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, description="Bind port")
    mock_mode: bool = Field(default=True, description="Serve the static catalog only")

    # Etsy credentials
    etsy_api_key: str = Field(default="", description="Etsy OAuth client id / API key")
    etsy_access_token: str = Field(default="", description="Etsy OAuth access token")
    etsy_refresh_token: str = Field(default="", description="Etsy OAuth refresh token")
    etsy_redirect_uri: str = Field(default="", description="Etsy OAuth redirect URI")

    # Shopify storefront feeds
    shopify_agg_domain: str = Field(default="", description="Aggregator storefront domain")
    shopify_agg_token: str = Field(default="", description="Aggregator storefront token")
    shopify_curated_domain: str = Field(default="", description="Curated storefront domain")
    shopify_curated_token: str = Field(default="", description="Curated storefront token")

    # Admission control
    rate_limit_window_seconds: float = Field(default=60.0, description="Fixed window length")
    rate_limit_max_requests: int = Field(default=30, description="Requests per window per client")

    # OAuth
    oauth_state_ttl_seconds: float = Field(default=600.0, description="PKCE state lifetime")

    # Timeouts
    adapter_timeout: float = Field(default=8.0, description="Upper bound per adapter call")
    connect_timeout: float = Field(default=3.0, description="HTTP connect timeout in seconds")
    read_timeout: float = Field(default=8.0, description="HTTP read timeout in seconds")

    # Analytics
    analytics_enabled: bool = Field(default=False, description="Emit search analytics events")
    analytics_url: str = Field(default="", description="Webhook receiving analytics events")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    structured_logging: bool = Field(default=True, description="Emit JSON log lines")

    # Search defaults
    default_zip: str = Field(default="90001", description="ZIP used when none is given")

    @field_validator("rate_limit_max_requests")
    @classmethod
    def validate_capacity(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"rate_limit_max_requests must be positive, got: {v}")
        return v

    @field_validator("rate_limit_window_seconds", "adapter_timeout", "oauth_state_ttl_seconds")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"value must be positive, got: {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level

    @property
    def is_development(self) -> bool:
        return self.env.lower() == "development"

    # Environment variable overrides
    @classmethod
    def env_overrides(cls) -> Dict[str, object]:
        """Fields set in the environment, converted to their annotated types.

        Only variables present in ``os.environ`` appear in the result, so a
        value equal to the built-in default still overrides YAML.
        """
        env_mappings = {
            "CHEAPFINDER_ENV": "env",
            "CHEAPFINDER_HOST": "host",
            "PORT": "port",
            "MOCK_MODE": "mock_mode",
            "ETSY_API_KEY": "etsy_api_key",
            "ETSY_ACCESS_TOKEN": "etsy_access_token",
            "ETSY_REFRESH_TOKEN": "etsy_refresh_token",
            "ETSY_REDIRECT_URI": "etsy_redirect_uri",
            "SHOPIFY_AGG_DOMAIN": "shopify_agg_domain",
            "SHOPIFY_AGG_TOKEN": "shopify_agg_token",
            "SHOPIFY_CURATED_DOMAIN": "shopify_curated_domain",
            "SHOPIFY_CURATED_TOKEN": "shopify_curated_token",
            "CHEAPFINDER_RATE_LIMIT_WINDOW": "rate_limit_window_seconds",
            "CHEAPFINDER_RATE_LIMIT_MAX": "rate_limit_max_requests",
            "CHEAPFINDER_ADAPTER_TIMEOUT": "adapter_timeout",
            "ANALYTICS_ENABLED": "analytics_enabled",
            "ANALYTICS_URL": "analytics_url",
            "CHEAPFINDER_LOG_LEVEL": "log_level",
        }

        overrides: Dict[str, object] = {}
        for env_var, field_name in env_mappings.items():
            if env_var not in os.environ:
                continue
            value = os.environ[env_var]
            annotation = cls.model_fields[field_name].annotation
            if annotation == bool:
                overrides[field_name] = value.strip().lower() in _TRUE_VALUES
            elif annotation == int:
                overrides[field_name] = int(value)
            elif annotation == float:
                overrides[field_name] = float(value)
            else:
                overrides[field_name] = value
        return overrides

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create configuration with environment variable overrides."""
        return cls(**cls.env_overrides())


class ConfigManager:
    """Manages configuration loading with override precedence."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = config_file or Path("config/config.yaml")
        self._config: Optional[AppConfig] = None

    def load_config(self, cli_overrides: Optional[Dict] = None) -> AppConfig:
        """
        Load configuration with override precedence: CLI > ENV > YAML.

        Args:
            cli_overrides: Optional dictionary of CLI flag overrides

        Returns:
            Fully merged AppConfig instance

        Raises:
            pydantic.ValidationError: If a merged value fails validation
        """
        config_dict = {}

        if self.config_file.exists():
            with open(self.config_file, "r") as f:
                yaml_config = yaml.safe_load(f)
                if yaml_config:
                    config_dict.update(yaml_config)

        merged_dict = AppConfig(**config_dict).model_dump()
        merged_dict.update(AppConfig.env_overrides())

        if cli_overrides:
            cli_overrides = {k: v for k, v in cli_overrides.items() if v is not None}
            merged_dict.update(cli_overrides)

        self._config = AppConfig(**merged_dict)
        return self._config

    @property
    def config(self) -> AppConfig:
        """Get the loaded configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config
