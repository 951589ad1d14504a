"""
Input validation schemas using Pydantic v2
Validates operator commands before they reach the state machine
"""

import logging
from typing import Optional, Self, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .formatting import parse_clock_preset
from .match import InvalidArgument, coerce_category

logger = logging.getLogger(__name__)

MAX_CLOCK_MS = (99 * 60 + 59) * 1000

COMMAND_TYPES = {
    "HAJIME",
    "MATTE",
    "OSAEKOMI",
    "TOKETA",
    "RESUME_PIN",
    "RESET_PIN",
    "ASSIGN_PIN",
    "AWARD_POINT",
    "REVOKE_POINT",
    "RESET_MATCH",
    "SET_GOLDEN_SCORE",
    "SET_MAIN_CLOCK",
    "SET_PIN_ELAPSED",
    "TOGGLE_MAIN",
    "TOGGLE_PIN",
    "TOGGLE_PIN_PAUSE",
    "RELOAD_RULES",
}


class ValidatedCmd(BaseModel):
    """Operator command with per-type field requirements"""

    type: str = Field(..., min_length=1, max_length=50, description="Command type")
    actionId: Optional[str] = Field(None, max_length=64)

    # ASSIGN_PIN / AWARD_POINT / REVOKE_POINT
    competitor: Optional[int] = Field(
        None, ge=0, le=1, description="Competitor id (0 white, 1 blue)"
    )
    category: Optional[str] = Field(None, max_length=20, description="Point category")
    startIfZero: bool = True

    # SET_MAIN_CLOCK / SET_GOLDEN_SCORE
    remainingMs: Optional[int] = Field(None, ge=0, le=MAX_CLOCK_MS)
    clock: Optional[str] = Field(None, max_length=8, description="Clock as M:SS")

    # SET_PIN_ELAPSED
    elapsedMs: Optional[int] = Field(None, ge=0, le=3_600_000)
    pinSeconds: Optional[int] = Field(None, ge=0, le=3600)

    # RELOAD_RULES: mapping or JSON text
    rules: Optional[Union[dict, str]] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        """Validate command type is one of allowed types"""
        if v not in COMMAND_TYPES:
            raise ValueError(f"type must be one of {sorted(COMMAND_TYPES)}, got {v}")
        return v

    @field_validator("competitor", mode="before")
    @classmethod
    def reject_bool_competitor(cls, v):
        if isinstance(v, bool):
            raise ValueError("competitor must be 0 or 1")
        return v

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: Optional[str]) -> Optional[str]:
        """Normalize category to its scoreboard name (e.g. 'major' → 'wazari')"""
        if v is None:
            return v
        try:
            return coerce_category(v).value
        except InvalidArgument as e:
            raise ValueError(str(e))

    @field_validator("clock")
    @classmethod
    def validate_clock(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if parse_clock_preset(v) is None:
            raise ValueError("clock must be M:SS format with valid numbers")
        return v.strip()

    @model_validator(mode="after")
    def validate_command_fields(self) -> Self:
        """Validate required fields based on command type"""
        cmd_type = self.type

        if cmd_type == "ASSIGN_PIN":
            # competitor=None is meaningful (unassign) but must be explicit
            if "competitor" not in self.model_fields_set:
                raise ValueError("ASSIGN_PIN requires competitor (null to unassign)")

        elif cmd_type in ("AWARD_POINT", "REVOKE_POINT"):
            if self.competitor is None:
                raise ValueError(f"{cmd_type} requires competitor")
            if self.category is None:
                raise ValueError(f"{cmd_type} requires category")

        elif cmd_type == "SET_MAIN_CLOCK":
            if self.remainingMs is None and self.clock is None:
                raise ValueError("SET_MAIN_CLOCK requires remainingMs or clock")

        elif cmd_type == "SET_PIN_ELAPSED":
            if self.elapsedMs is None and self.pinSeconds is None:
                raise ValueError("SET_PIN_ELAPSED requires elapsedMs or pinSeconds")

        elif cmd_type == "RELOAD_RULES":
            if self.rules is None:
                raise ValueError("RELOAD_RULES requires rules")

        return self

    def remaining_ms(self) -> Optional[int]:
        """Clock value in ms, preferring remainingMs over the M:SS string."""
        if self.remainingMs is not None:
            return self.remainingMs
        return parse_clock_preset(self.clock)

    def elapsed_ms(self) -> Optional[int]:
        if self.elapsedMs is not None:
            return self.elapsedMs
        if self.pinSeconds is not None:
            return self.pinSeconds * 1000
        return None


def parse_command(cmd_dict: dict) -> ValidatedCmd:
    """
    Validate command dictionary

    Returns:
        ValidatedCmd: Validated command object

    Raises:
        InvalidArgument: If validation fails
    """
    if not isinstance(cmd_dict, dict):
        raise InvalidArgument(f"Invalid command: expected an object, got {type(cmd_dict).__name__}")
    try:
        return ValidatedCmd(**cmd_dict)
    except Exception as e:
        logger.warning(f"Command validation failed: {e}")
        raise InvalidArgument(f"Invalid command: {str(e)}") from e


__all__ = [
    "COMMAND_TYPES",
    "ValidatedCmd",
    "parse_command",
]
