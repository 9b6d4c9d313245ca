from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from AMC.errors import ConsoleError

Severity = Literal["information", "warning", "error"]


class Notification(BaseModel):
    """A transient, user visible message raised by the log monitor"""
    timestamp: datetime = Field(default_factory=datetime.now)
    severity: Severity = "information"
    message: str
    raised_by: str = "log_monitor"

    @classmethod
    def from_error(cls, error: ConsoleError, raised_by: str = "log_monitor") -> "Notification":
        return cls(severity="error", message=str(error), raised_by=raised_by)
