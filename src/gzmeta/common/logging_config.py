"""Logging section of the gzmeta configuration."""

from typing import Literal
from pydantic import BaseModel, Field, ConfigDict, field_validator


class LoggingConfig(BaseModel):
    """[logging] table: console level and format, optional JSON log file."""
    
    model_config = ConfigDict(extra='forbid')
    
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level"
    )
    format: Literal["simple", "detailed", "json"] = Field(
        default="simple",
        description="Console format; the log file is always JSON"
    )
    file: str | None = Field(default=None, description="Optional log file path")
    max_file_size_mb: int = Field(default=10, ge=1, description="Size at which the log file is rotated")
    backup_count: int = Field(default=5, ge=0, description="Rotated log files to keep")
    
    @field_validator('level', mode='before')
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.upper()
        return v
    
    @field_validator('format', mode='before')
    @classmethod
    def normalize_format(cls, v: str) -> str:
        """Accept format names in any case."""
        if isinstance(v, str):
            return v.lower()
        return v
    
    @field_validator('file')
    @classmethod
    def empty_file_means_none(cls, v: str | None) -> str | None:
        """An empty path (e.g. GZMETA_LOGGING_FILE="") disables the log file."""
        if v is not None and not v.strip():
            return None
        return v
