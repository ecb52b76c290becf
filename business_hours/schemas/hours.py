from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime, time
from enum import IntEnum

class DayOfWeek(IntEnum):
    """Day of week as stored: 0 = Sunday ... 6 = Saturday."""
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_date(cls, value: date) -> "DayOfWeek":
        # date.weekday() counts from Monday = 0
        return cls((value.weekday() + 1) % 7)

WEEKEND = (DayOfWeek.SATURDAY, DayOfWeek.SUNDAY)

class WeeklyHourCreate(BaseModel):
    dayOfWeek: DayOfWeek
    openTime: Optional[time] = None
    closeTime: Optional[time] = None
    isClosed: bool = False

class WeeklyHourEntry(WeeklyHourCreate):
    id: str
    businessId: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    class Config:
        populate_by_name = True

class WeeklyHourUpdate(BaseModel):
    """One field group per request: either the times or the closed flag."""
    openTime: Optional[time] = None
    closeTime: Optional[time] = None
    isClosed: Optional[bool] = None
