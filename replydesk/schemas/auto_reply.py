"""Auto-reply rule configuration (stored as JSON on the business) and decisions."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


def _drop_nulls(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _drop_nulls(v) for k, v in value.items() if v is not None}
    return value


class _Lenient(BaseModel):
    """Rules come from a settings UI; unknown keys are tolerated."""

    model_config = ConfigDict(extra="ignore")


class GreetingRule(_Lenient):
    enabled: Optional[bool] = None
    text: Optional[str] = None

    @property
    def is_enabled(self) -> bool:
        return self.enabled is not False


class OfficeHours(_Lenient):
    start: Optional[str] = None
    end: Optional[str] = None
    days: list[int] = Field(default_factory=list)


class OutOfOfficeRule(_Lenient):
    enabled: Optional[bool] = None
    text: Optional[str] = None
    timezone: Optional[str] = None
    hours: OfficeHours = Field(default_factory=OfficeHours)

    @property
    def is_enabled(self) -> bool:
        return self.enabled is not False


class FallbackRule(_Lenient):
    text: Optional[str] = None


class AutoReplyRules(_Lenient):
    enabled: Optional[bool] = None
    greeting: GreetingRule = Field(default_factory=GreetingRule)
    out_of_office: OutOfOfficeRule = Field(default_factory=OutOfOfficeRule)
    fallback: FallbackRule = Field(default_factory=FallbackRule)
    timezone: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "AutoReplyRules":
        """Parse the stored JSON; anything that is not an object means 'defaults'."""
        if not isinstance(raw, dict):
            return cls()
        return cls.model_validate(_drop_nulls(raw))

    @property
    def is_enabled(self) -> bool:
        return self.enabled is not False

    @property
    def effective_timezone(self) -> Optional[str]:
        return self.out_of_office.timezone or self.timezone


class AutoReplyRule(str, Enum):
    GREETING = "greeting"
    OUT_OF_OFFICE = "out_of_office"
    FALLBACK = "fallback"


class AutoReplyDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    rule: AutoReplyRule
