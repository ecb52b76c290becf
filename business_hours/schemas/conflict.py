from pydantic import BaseModel
from typing import Optional
import datetime as dt
from dataclasses import dataclass

from business_hours.schemas.hours import DayOfWeek

@dataclass(frozen=True)
class ConflictScope:
    """Either one calendar date or one recurring weekday, never both."""
    date: Optional[dt.date] = None
    day_of_week: Optional[DayOfWeek] = None

    def __post_init__(self):
        if (self.date is None) == (self.day_of_week is None):
            raise ValueError("Conflict scope needs exactly one of date or day_of_week")

    @classmethod
    def for_date(cls, on: dt.date) -> "ConflictScope":
        return cls(date=on)

    @classmethod
    def for_weekday(cls, day: DayOfWeek) -> "ConflictScope":
        return cls(day_of_week=DayOfWeek(day))

    def describe(self) -> str:
        if self.date is not None:
            return "this date"
        return self.day_of_week.label

class BookingConflictReport(BaseModel):
    businessId: str
    date: Optional[dt.date] = None
    dayOfWeek: Optional[DayOfWeek] = None
    affectedBookings: int
    requiresConfirmation: bool
    message: Optional[str] = None

class ConflictWarning(BaseModel):
    """Advisory signal: the edit goes through once the caller confirms it."""
    detail: str
    affectedBookings: int
    requiresConfirmation: bool = True
    date: Optional[dt.date] = None
    dayOfWeek: Optional[DayOfWeek] = None
