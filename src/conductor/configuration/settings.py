"""Conductor configuration management with validation.

Wraps the conductor's tunables (message size estimates, byte budget
thresholds and the tombstone budget) in Pydantic models so the replication
core and CLI commands can rely on validated settings, and loads/saves them as
YAML.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..errors import ConfigError

KB = 1024
MB = 1024 * 1024

DEFAULT_CONFIG_PATH = Path.home() / ".conductor" / "config" / "conductor.yaml"


class EstimateConfig(BaseModel):
    """Feed size estimates used by the budget estimator.

    Attributes:
        avg_message_bytes: Average on-disk size of one message
        avg_follows_feed_size: Expected message count of a follows set feed
        avg_blocks_feed_size: Expected message count of a blocks set feed
        avg_unknown_feed_size: Stand-in count for feeds with unbounded goals
    """

    avg_message_bytes: int = Field(
        default=600,
        ge=1,
        description="Average message size in bytes"
    )
    avg_follows_feed_size: int = Field(
        default=300,
        ge=0,
        description="Expected messages in a follows feed"
    )
    avg_blocks_feed_size: int = Field(
        default=30,
        ge=0,
        description="Expected messages in a blocks feed"
    )
    avg_unknown_feed_size: int = Field(
        default=100,
        ge=0,
        description="Expected messages in a feed whose goal is unbounded"
    )


class BudgetConfig(BaseModel):
    """Byte budget thresholds.

    Attributes:
        min_max_bytes: Absolute floor; start() fails below it
        min_decent_max_bytes: Below this the budget is considered too small
        max_recommended_max_bytes: Above this start() warns
    """

    min_max_bytes: int = Field(
        default=1 * KB,
        ge=1,
        description="Absolute minimum byte budget"
    )
    min_decent_max_bytes: int = Field(
        default=32 * MB,
        ge=1,
        description="Smallest byte budget that works well in practice"
    )
    max_recommended_max_bytes: int = Field(
        default=500 * MB,
        ge=1,
        description="Largest recommended byte budget"
    )

    @model_validator(mode="after")
    def validate_ordering(self) -> "BudgetConfig":
        """Thresholds must be non-decreasing."""
        if not (
            self.min_max_bytes
            <= self.min_decent_max_bytes
            <= self.max_recommended_max_bytes
        ):
            raise ValueError(
                "expected min_max_bytes <= min_decent_max_bytes <= max_recommended_max_bytes"
            )
        return self


class GhostConfig(BaseModel):
    """Tombstone retention configuration.

    Attributes:
        total_ghost_bytes: Bytes shared by all ghost tombstones
        id_bytes: Bytes per ghost entry; the feed store's ID length when unset
    """

    total_ghost_bytes: int = Field(
        default=1 * MB,
        ge=1,
        description="Total tombstone budget in bytes"
    )
    id_bytes: Optional[int] = Field(
        default=None,
        ge=1,
        description="Override for the per-ghost identifier size"
    )


class ConductorConfig(BaseModel):
    """Main conductor configuration.

    Attributes:
        version: Configuration schema version
        estimates: Feed size estimates
        budget: Byte budget thresholds
        ghosts: Tombstone retention
    """

    version: int = Field(
        default=1,
        description="Configuration schema version"
    )
    estimates: EstimateConfig = Field(default_factory=EstimateConfig)
    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    ghosts: GhostConfig = Field(default_factory=GhostConfig)

    class Config:
        """Pydantic configuration."""
        validate_assignment = True
        extra = "forbid"

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: int) -> int:
        if v != 1:
            raise ValueError(f"unsupported configuration version {v}")
        return v


class ConfigurationManager:
    """Loads, saves and validates the conductor configuration file.

    Attributes:
        config_path: Path to configuration file
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to config file (default: ~/.conductor/config/conductor.yaml)
        """
        self._config_path = config_path or DEFAULT_CONFIG_PATH
        self._config: Optional[ConductorConfig] = None

    @property
    def config_path(self) -> Path:
        return self._config_path

    def load(self) -> ConductorConfig:
        """Load and validate configuration.

        Returns:
            Validated conductor configuration, or defaults when the file
            does not exist

        Raises:
            ConfigError: If configuration is invalid
        """
        if self._config_path.exists():
            try:
                with open(self._config_path, encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(
                    f"Invalid configuration: malformed YAML ({exc})",
                    details={"config_path": str(self._config_path)},
                ) from exc

            if not isinstance(data, dict):
                raise ConfigError(
                    "Invalid configuration: expected a mapping at the top level",
                    details={"config_path": str(self._config_path)},
                )

            try:
                self._config = ConductorConfig(**data)
            except ValidationError as exc:
                error_details = [
                    f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                    for err in exc.errors()
                ]
                raise ConfigError(
                    f"Invalid configuration: {'; '.join(error_details)}",
                    details={"config_path": str(self._config_path)},
                ) from exc
        else:
            self._config = ConductorConfig()

        return self._config

    def save(self, config: ConductorConfig) -> None:
        """Save configuration to file."""
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        data = config.model_dump(mode="json")

        with open(self._config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    def validate(self, config_path: Optional[Path] = None) -> List[str]:
        """Validate configuration without keeping it.

        Args:
            config_path: Optional path to config file to validate

        Returns:
            List of validation errors (empty if valid)
        """
        path = config_path or self._config_path
        errors = []

        if not path.exists():
            errors.append(f"Configuration file not found: {path}")
            return errors

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            ConductorConfig(**data)
        except ValidationError as exc:
            for error in exc.errors():
                loc = ".".join(str(l) for l in error["loc"])
                errors.append(f"{loc}: {error['msg']}")
        except (yaml.YAMLError, TypeError) as exc:
            errors.append(f"Failed to load configuration: {exc}")

        return errors


__all__ = [
    "KB",
    "MB",
    "DEFAULT_CONFIG_PATH",
    "EstimateConfig",
    "BudgetConfig",
    "GhostConfig",
    "ConductorConfig",
    "ConfigurationManager",
]
