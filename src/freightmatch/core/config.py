"""
Configuration management for the load lifecycle engine.

Handles loading and accessing:
- Business rules (config/config.yaml)
- Environment variables (.env)
"""

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class LifecycleConfig(BaseModel):
    """Lifecycle policy switches."""

    # A trucker holding a MATCHED/ASSIGNED/IN_TRANSIT load may not claim another
    single_active_job: bool = True


class MatchingConfig(BaseModel):
    """Availability filtering rules."""

    # Canonical vehicle type -> other names trucker profiles use for it
    vehicle_aliases: dict[str, list[str]] = Field(default_factory=dict)

    def canonical_vehicle(self, vehicle_type: str) -> str:
        """Map a vehicle type to its canonical, lower-cased name."""
        name = vehicle_type.strip().lower()
        for canonical, aliases in self.vehicle_aliases.items():
            if name == canonical.lower() or name in (a.lower() for a in aliases):
                return canonical.lower()
        return name


class EnvironmentSettings(BaseSettings):
    """Environment variables configuration."""

    # Storage
    store_backend: str = Field("memory", alias="FREIGHTMATCH_STORE")
    database_url: str = Field("sqlite:///./freightmatch.db", alias="DATABASE_URL")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


class ConfigManager:
    """
    Central configuration manager.

    Loads and provides access to:
    - Business rules from config/config.yaml
    - Environment variables from .env
    """

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_dir: Optional path to config directory. Defaults to project root/config.
        """
        if config_dir is None:
            # src/freightmatch/core -> project root
            project_root = Path(__file__).parent.parent.parent.parent
            config_dir = project_root / "config"

        self.config_dir = config_dir
        self._business_config: Optional[dict[str, Any]] = None
        self._env_settings: Optional[EnvironmentSettings] = None

    @property
    def business_config(self) -> dict[str, Any]:
        """Load and return business configuration from config.yaml."""
        if self._business_config is None:
            config_path = self.config_dir / "config.yaml"
            if config_path.exists():
                with open(config_path, "r") as f:
                    self._business_config = yaml.safe_load(f) or {}
            else:
                self._business_config = {}
        return self._business_config

    @property
    def env(self) -> EnvironmentSettings:
        """Load and return environment settings."""
        if self._env_settings is None:
            self._env_settings = EnvironmentSettings()
        return self._env_settings

    @property
    def lifecycle(self) -> LifecycleConfig:
        """Lifecycle policy from the `lifecycle` section."""
        return LifecycleConfig(**self.business_config.get("lifecycle", {}))

    @property
    def matching(self) -> MatchingConfig:
        """Availability filtering rules from the `matching` section."""
        return MatchingConfig(**self.business_config.get("matching", {}))


# Global config instance
_config_manager: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """
    Get the global configuration manager instance.

    Returns:
        ConfigManager singleton instance
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
