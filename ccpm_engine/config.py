from dataclasses import dataclass, fields
from typing import Any, Dict, Tuple

from ccpm_engine.exceptions import ValidationError


@dataclass
class EngineConfig:
    """Tunable settings for analysis and forecasting."""

    min_simulations: int = 100
    max_simulations: int = 10000
    default_simulations: int = 1000
    histogram_bins: int = 10
    percentiles: Tuple[float, ...] = (0.5, 0.75, 0.8, 0.9, 0.95)
    yellow_zone_threshold: float = 0.33
    red_zone_threshold: float = 0.66
    default_pessimistic_factor: float = 1.5
    trial_batch_size: int = 1000  # trials sampled per numpy batch

    def __post_init__(self):
        self.percentiles = tuple(self.percentiles)
        self.validate()

    def validate(self) -> "EngineConfig":
        """
        Check that all settings are within sensible ranges.

        Raises:
            ValidationError: If any setting is out of range
        """
        if self.min_simulations < 1:
            raise ValidationError("min_simulations must be at least 1")
        if self.max_simulations < self.min_simulations:
            raise ValidationError("max_simulations must be >= min_simulations")
        if not self.min_simulations <= self.default_simulations <= self.max_simulations:
            raise ValidationError(
                "default_simulations must be between min_simulations and max_simulations"
            )
        if self.histogram_bins < 1:
            raise ValidationError("histogram_bins must be at least 1")
        if not self.percentiles or any(not 0 < p < 1 for p in self.percentiles):
            raise ValidationError("percentiles must be fractions between 0 and 1")
        if not 0 <= self.yellow_zone_threshold <= self.red_zone_threshold:
            raise ValidationError(
                "zone thresholds must satisfy 0 <= yellow <= red"
            )
        if self.default_pessimistic_factor < 1:
            raise ValidationError("default_pessimistic_factor must be >= 1")
        if self.trial_batch_size < 1:
            raise ValidationError("trial_batch_size must be at least 1")
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Build a config from a mapping, ignoring keys that are not settings."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_CONFIG = EngineConfig()
