"""Configuration management for molsnap.

Settings can come from a YAML file (`Config.from_yaml`) or from
environment variables prefixed with `MOLSNAP_`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class DataConfig(BaseModel):
    """Where structure files are read from."""

    mmcif_dir: Path = Field(
        default=Path("."),
        description="Directory containing <entry>.cif(.gz) files"
    )
    model_num: Optional[int] = Field(
        default=None,
        description="Model number to read from multi-model files (first model if unset)"
    )


class SurroundingsConfig(BaseModel):
    """Parameters of the residue surroundings query."""

    radius: float = Field(default=5.0, description="Default distance cutoff in Angstroms")
    block_size: int = Field(default=4096, description="Candidate atoms per distance block")

    @field_validator("block_size")
    @classmethod
    def _positive_block_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("block_size must be at least 1")
        return value


class LoggingConfig(BaseModel):
    """Logging setup used by the command line interface."""

    level: str = Field(default="INFO", description="Console log level")
    file: Optional[Path] = Field(default=None, description="Optional log file")


class Config(BaseSettings):
    """Main configuration for molsnap."""

    data: DataConfig = Field(default_factory=DataConfig)
    surroundings: SurroundingsConfig = Field(default_factory=SurroundingsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"env_prefix": "MOLSNAP_", "env_nested_delimiter": "__"}

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return self.model_dump(mode="json")
