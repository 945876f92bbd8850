"""Pydantic configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from isaexts.config.defaults import DEFAULT_BATCH_SIZE, DEFAULT_LOG_LEVEL


class LoggingConfig(BaseModel):
    level: str = DEFAULT_LOG_LEVEL
    json_output: bool = False


class ScanConfig(BaseModel):
    skip_data: bool = True
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    # Per-section ceiling on decoded instructions; None means unbounded.
    max_instructions_per_section: int | None = Field(default=None, ge=1)
    report_unclassified_groups: bool = False


class IsaExtsConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
