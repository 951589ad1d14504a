"""
Match rule configuration using Pydantic v2.

All durations are integer milliseconds. Every duration must line up with the
tick period so that threshold checks in the tick loop can use exact equality.
"""

import logging
from typing import Any, List, Mapping, Optional, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

logger = logging.getLogger(__name__)

DURATION_FIELDS = (
    "total_time",
    "pin_warn_unassigned",
    "pin_minor_time",
    "pin_major_time",
    "pin_ippon_time",
    "pin_max_time",
    "unassigned_reminder_period",
)


class ConfigError(ValueError):
    """Rule configuration was rejected; the previous rules stay active."""

    def __init__(self, message: str, errors: Optional[List[dict]] = None):
        super().__init__(message)
        self.errors = errors or []


class RuleConfig(BaseModel):
    """Tunable thresholds and toggles for a match.

    Defaults reproduce the standard scoreboard rule set: a five minute match,
    waza-ari after 10s of osaekomi, ippon after 20s, two waza-ari make ippon.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # fight time
    total_time: int = Field(5 * 60 * 1000, gt=0, description="Match duration (ms)")
    tick_period: int = Field(10, gt=0, le=1000, description="Tick granularity (ms)")

    # osaekomi times
    pin_warn_unassigned: Optional[int] = Field(2 * 1000, gt=0)
    pin_minor_time: Optional[int] = Field(None, gt=0)
    pin_major_time: Optional[int] = Field(10 * 1000, gt=0)
    pin_ippon_time: Optional[int] = Field(20 * 1000, gt=0)
    pin_max_time: Optional[int] = Field(20 * 1000, gt=0)
    unassigned_reminder_period: Optional[int] = Field(1000, gt=0)

    # stopping clock
    stop_clock_on_ippon_multiple: Optional[int] = Field(1, gt=0)
    stop_clock_on_major_multiple: Optional[int] = Field(2, gt=0)
    stop_clock_on_minor_category_multiple: Optional[int] = Field(None, gt=0)
    # third shido is hansoku-make
    stop_clock_on_category4_multiple: Optional[int] = Field(3, gt=0)
    stop_pin_on_ippon_multiple: Optional[int] = Field(1, gt=0)
    stop_pin_on_major_multiple: Optional[int] = Field(2, gt=0)

    majors_per_ippon: Optional[int] = Field(2, gt=0)

    @field_validator("*", mode="before")
    @classmethod
    def reject_non_integers(cls, v: Any) -> Any:
        """Durations and multiples are whole numbers; bools and floats are not."""
        if v is None:
            return v
        if isinstance(v, bool):
            raise ValueError("must be an integer, not a boolean")
        if isinstance(v, float):
            if not v.is_integer():
                raise ValueError("must be a whole number")
            return int(v)
        return v

    @model_validator(mode="after")
    def validate_durations(self) -> Self:
        """Check tick alignment and threshold ordering"""
        period = self.tick_period
        for name in DURATION_FIELDS:
            value = getattr(self, name)
            if value is not None and value % period != 0:
                raise ValueError(
                    f"{name}={value}ms is not a multiple of tick_period={period}ms"
                )

        # Award thresholds must escalate: minor < major < ippon
        present = [
            (name, getattr(self, name))
            for name in ("pin_minor_time", "pin_major_time", "pin_ippon_time")
            if getattr(self, name) is not None
        ]
        for (lower_name, lower), (upper_name, upper) in zip(present, present[1:]):
            if lower >= upper:
                raise ValueError(
                    f"{lower_name}={lower}ms must be below {upper_name}={upper}ms"
                )

        if self.pin_max_time is not None:
            for name, value in present:
                if value > self.pin_max_time:
                    raise ValueError(
                        f"{name}={value}ms exceeds pin_max_time={self.pin_max_time}ms"
                    )
        return self


def load_rules(data: "RuleConfig | Mapping[str, Any] | None" = None) -> RuleConfig:
    """
    Validate rule data and return an immutable RuleConfig.

    Returns:
        RuleConfig: the validated rules (defaults when data is None)

    Raises:
        ConfigError: if any field is invalid
    """
    if isinstance(data, RuleConfig):
        return data
    if data is not None and not isinstance(data, Mapping):
        raise ConfigError(f"Invalid rules: expected a mapping, got {type(data).__name__}")
    try:
        rules = RuleConfig.model_validate(dict(data or {}))
    except ValidationError as e:
        logger.warning(f"Rule validation failed: {e}")
        raise ConfigError(f"Invalid rules: {e}", errors=e.errors()) from e
    logger.debug(f"Loaded rules: {rules.model_dump()}")
    return rules


def load_rules_json(text: str) -> RuleConfig:
    """Validate a JSON document of rules (as pasted into the rules editor)."""
    try:
        rules = RuleConfig.model_validate_json(text)
    except ValidationError as e:
        logger.warning(f"Rule validation failed: {e}")
        raise ConfigError(f"Invalid rules: {e}", errors=e.errors()) from e
    logger.debug(f"Loaded rules: {rules.model_dump()}")
    return rules


__all__ = [
    "ConfigError",
    "RuleConfig",
    "load_rules",
    "load_rules_json",
]
