"""Configuration models for eisen."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class StorageConfig(BaseModel):
    """Configuration for the JSON blob store."""

    directory: str = ".eisen"
    tasks_key: str = "eisenhower-todos"


class LoggingConfig(BaseModel):
    """Configuration for log output."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    file: str | None = None


class DisplayConfig(BaseModel):
    """Configuration for terminal rendering."""

    show_completed: bool = True
    heatmap: bool = True


class EisenConfig(BaseModel):
    """Main configuration for eisen."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)

    @classmethod
    def load(cls, path: Path | None = None) -> EisenConfig:
        """Load configuration from file or return defaults."""
        if path is None:
            path = CONFIG_FILE

        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        return cls.model_validate(data)

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = CONFIG_FILE

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.model_dump(exclude_none=True), f, indent=2)


# Default config directory
EISEN_DIR = Path(".eisen")
CONFIG_FILE = EISEN_DIR / "config.json"
TASKS_KEY = "eisenhower-todos"
