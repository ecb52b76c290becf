from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime, time

class AvailabilityExceptionCreate(BaseModel):
    exceptionDate: date
    isClosed: bool = True
    openTime: Optional[time] = None  # "12:00:00"
    closeTime: Optional[time] = None
    reason: Optional[str] = None

    @property
    def is_full_day_closure(self) -> bool:
        return self.isClosed and self.openTime is None

    @property
    def is_blocked_window(self) -> bool:
        return self.isClosed and self.openTime is not None and self.closeTime is not None

class AvailabilityException(AvailabilityExceptionCreate):
    id: str
    businessId: str
    createdBy: Optional[str] = None
    createdAt: Optional[datetime] = None

    class Config:
        populate_by_name = True
