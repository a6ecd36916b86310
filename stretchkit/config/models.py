# stretchkit/config/models.py

"""
Pydantic models for defining the structure and validation of the stretchkit configuration (stretchkit.toml).
Uses Pydantic V2 syntax.
"""

from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# --- Helper Functions ---

def _resolve_path(path: Union[str, Path]) -> Path:
    """Resolves and expands user paths."""
    return Path(path).expanduser().resolve()

# --- Model Definitions ---

class DefaultsConfig(BaseModel):
    """Default processing parameters."""
    model_config = ConfigDict(validate_assignment=True)

    default_sample_rate: Optional[int] = Field(None, gt=0, description="Sample rate audio is resampled to on load. None keeps the native rate.")
    default_output_subtype: str = Field("PCM_16", description="Soundfile subtype for saved audio (e.g., 'PCM_16', 'PCM_24', 'FLOAT').")
    batch_output_suffix: str = Field("_stretched", description="Suffix appended to file stems by the batch command.")

    @field_validator('default_output_subtype')
    @classmethod
    def upper_subtype(cls, value: str) -> str:
        return value.upper()

class PathsConfig(BaseModel):
    """Configuration for file paths used by stretchkit."""
    model_config = ConfigDict(validate_default=True, validate_assignment=True)

    output_dir: Path = Field(default=Path("./stretchkit_output"), description="Default directory for batch results.")
    log_directory: Path = Field(default=Path("./stretchkit_logs"), description="Directory for log files.")

    @field_validator('output_dir', 'log_directory', mode='before')
    @classmethod
    def resolve_paths_before_validation(cls, value: Any) -> Path:
        """Resolves paths before Pydantic validates them."""
        if isinstance(value, (str, Path)):
            return _resolve_path(value)
        return value

class LoggingConfig(BaseModel):
    """Logging configuration settings."""
    model_config = ConfigDict(validate_assignment=True)

    log_file_enabled: bool = Field(True, description="Enable/disable persistent file logging.")
    log_filename_template: str = Field("stretchkit_run_{timestamp:%Y%m%d_%H%M%S}.log", description="Naming pattern for log files.")
    log_level_file: str = Field("DEBUG", description="Minimum level for file logs (DEBUG, INFO, WARNING, ERROR, CRITICAL).")
    log_format: str = Field("%(asctime)s [%(levelname)-8s] %(name)-30s - %(message)s (%(filename)s:%(lineno)d)", description="Format string for file log entries.")
    log_level_console: str = Field("WARNING", description="Console level when no -v/-q flag is given.")

    @field_validator('log_level_file', 'log_level_console')
    @classmethod
    def check_log_level(cls, value: str) -> str:
        """Validate log level strings."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in allowed_levels:
            raise ValueError(f"Invalid log level '{value}'. Must be one of {allowed_levels}")
        return upper_value

class StretchkitConfig(BaseModel):
    """Root configuration model for stretchkit."""
    model_config = ConfigDict(
        extra='ignore',
        validate_assignment=True
    )

    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
