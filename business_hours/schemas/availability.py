from pydantic import BaseModel, Field
from typing import Optional, List
import datetime as dt
from datetime import datetime, time
from enum import Enum

from business_hours.schemas.hours import DayOfWeek, WeeklyHourEntry
from business_hours.schemas.exception import AvailabilityException

class AvailabilityState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    PARTIALLY_BLOCKED = "partially_blocked"

class AvailabilitySource(str, Enum):
    EXCEPTION = "exception"
    WEEKLY = "weekly"
    DEFAULT = "default"  # nothing configured, resolved closed

class BusinessSchedule(BaseModel):
    """Weekly entries and exceptions of one business, read together."""
    businessId: str
    weeklyHours: List[WeeklyHourEntry] = Field(default_factory=list)
    exceptions: List[AvailabilityException] = Field(default_factory=list)

    def weekly_for(self, day: DayOfWeek) -> Optional[WeeklyHourEntry]:
        return next((h for h in self.weeklyHours if h.dayOfWeek == day), None)

    def exception_for(self, on: dt.date) -> Optional[AvailabilityException]:
        return next((e for e in self.exceptions if e.exceptionDate == on), None)

    def weekly_entry(self, entry_id: str) -> Optional[WeeklyHourEntry]:
        return next((h for h in self.weeklyHours if h.id == entry_id), None)

class ResolvedAvailability(BaseModel):
    businessId: str
    date: dt.date
    dayOfWeek: DayOfWeek
    state: AvailabilityState
    isClosed: bool
    openTime: Optional[time] = None
    closeTime: Optional[time] = None
    source: AvailabilitySource
    exceptionId: Optional[str] = None
    reason: Optional[str] = None
    label: str

class TimeSlot(BaseModel):
    startTime: datetime
    endTime: datetime
    isAvailable: bool
