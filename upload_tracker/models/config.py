"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .upload import DEFAULT_ERROR_MESSAGE


class TrackerConfig(BaseModel):
    """A validated configuration model for the upload simulation."""

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    # Progress simulation
    min_duration: float = 2.0
    max_duration: float = 5.0
    tick_interval: float = 0.1

    # Outcome resolution
    failure_probability: float = 0.2
    error_message: str = DEFAULT_ERROR_MESSAGE
    seed: int | None = None

    # Logging
    log_dir: str = ""

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)

    @field_validator("min_duration", "max_duration")
    @classmethod
    def validate_duration(cls, v: float) -> float:
        """Durations are measured in seconds and may be zero."""
        if v < 0:
            raise ValueError("Durations cannot be negative.")
        return v

    @field_validator("tick_interval")
    @classmethod
    def validate_tick_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Tick interval must be greater than zero.")
        return v

    @field_validator("failure_probability")
    @classmethod
    def validate_failure_probability(cls, v: float) -> float:
        """Ensures the failure probability is a probability."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("Failure probability must be between 0 and 1.")
        return v

    @field_validator("error_message")
    @classmethod
    def validate_error_message(cls, v: str) -> str:
        if not v:
            raise ValueError("Error message cannot be empty.")
        return v

    @model_validator(mode="after")
    def validate_duration_range(self) -> "TrackerConfig":
        """Checks that the duration range is not inverted."""
        if self.max_duration < self.min_duration:
            raise ValueError(
                f"max_duration ({self.max_duration}) cannot be lower than "
                f"min_duration ({self.min_duration})."
            )
        return self

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path"}
        return {key for key in cls.model_fields if key not in internal_fields}
