# TreeMirror Configuration Schema
# Pydantic models for YAML configuration validation

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from treemirror.config.defaults import DEFAULT_LOOP_INTERVAL_MS, DEFAULT_MAX_CONCURRENT_WORKERS
from treemirror.utils.paths import expand_path


class GeneralConfig(BaseModel):
    """Settings of one mirror loop."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source_directory: str = Field(
        default="", alias="sourceDirectory", validate_default=True, description="Tree to read from"
    )
    destination_directory: str = Field(
        default="", alias="destinationDirectory", validate_default=True, description="Tree to mirror into"
    )
    loop_interval_ms: int = Field(
        default=DEFAULT_LOOP_INTERVAL_MS, alias="loopIntervalMS", ge=0, description="Pause between scans"
    )
    max_concurrent_workers: int = Field(
        default=DEFAULT_MAX_CONCURRENT_WORKERS,
        alias="maxConcurrentWorkers",
        description="Parallel operations per cycle, below 1 means unbounded",
    )

    @field_validator("source_directory")
    @classmethod
    def check_source(cls, v: str) -> str:
        """Require a source path and expand ~."""
        if not v or not v.strip():
            raise ValueError("Source directory is not configured")
        return str(expand_path(v))

    @field_validator("destination_directory")
    @classmethod
    def check_destination(cls, v: str) -> str:
        """Require a destination path and expand ~."""
        if not v or not v.strip():
            raise ValueError("Destination directory is not configured")
        return str(expand_path(v))


class MirrorConfig(BaseModel):
    """Root configuration model, one per config file."""

    model_config = ConfigDict(frozen=True)

    general: GeneralConfig = Field(description="Mirror loop settings")
    config_path: str | None = Field(default=None, description="File this configuration was loaded from")

    @property
    def source(self) -> Path:
        return Path(self.general.source_directory)

    @property
    def destination(self) -> Path:
        return Path(self.general.destination_directory)

    @property
    def loop_interval(self) -> float:
        """Pause between cycles in seconds."""
        return self.general.loop_interval_ms / 1000.0

    @property
    def max_workers(self) -> int:
        return self.general.max_concurrent_workers

    @property
    def unbounded(self) -> bool:
        """Check if every operation gets its own thread."""
        return self.general.max_concurrent_workers < 1
