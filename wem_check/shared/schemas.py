"""Pydantic schemas for the WEM debug mode check."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class DebugModeState(str, Enum):
    """Possible debug mode states."""

    ENABLED = "ENABLED"  # BrokerServiceDebugMode == 1
    DISABLED = "DISABLED"  # Any other value
    UNKNOWN = "UNKNOWN"  # Registry value missing or unreadable

    @classmethod
    def from_flag(cls, flag_value: Optional[int]) -> "DebugModeState":
        if flag_value is None:
            return cls.UNKNOWN
        return cls.ENABLED if flag_value == 1 else cls.DISABLED


class EventLogEntry(BaseModel):
    """One event log record, as shown to the user."""

    model_config = ConfigDict(frozen=True)

    time_created: datetime
    id: int
    level: str
    message: str


class CheckResult(BaseModel):
    """Outcome of a single check run."""

    state: DebugModeState
    flag_value: Optional[int] = None
    query_performed: bool = False
    events: list[EventLogEntry] = []
