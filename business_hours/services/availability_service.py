from typing import List, Optional, Tuple
from datetime import date, datetime, time, timedelta

from business_hours.core.config import settings
from business_hours.db.bookings import BookingCounter
from business_hours.db.repository import ScheduleRepository
from business_hours.schemas.availability import (
    AvailabilitySource, AvailabilityState, BusinessSchedule, ResolvedAvailability, TimeSlot
)
from business_hours.schemas.hours import DayOfWeek
from business_hours.utils.time_window import add_minutes, window_label, windows_overlap

def _resolved(
    schedule: BusinessSchedule,
    on: date,
    state: AvailabilityState,
    source: AvailabilitySource,
    open_time: Optional[time] = None,
    close_time: Optional[time] = None,
    exception_id: Optional[str] = None,
    reason: Optional[str] = None
) -> ResolvedAvailability:
    is_closed = state != AvailabilityState.OPEN
    return ResolvedAvailability(
        businessId=schedule.businessId,
        date=on,
        dayOfWeek=DayOfWeek.from_date(on),
        state=state,
        isClosed=is_closed,
        openTime=open_time,
        closeTime=close_time,
        source=source,
        exceptionId=exception_id,
        reason=reason,
        label=window_label(is_closed, open_time, close_time)
    )

def resolve_from_snapshot(schedule: BusinessSchedule, on: date) -> ResolvedAvailability:
    """
    Effective window for `on`: the date's exception if any, else the weekly
    entry for its weekday, else closed.
    """
    exception = schedule.exception_for(on)
    if exception:
        if exception.is_full_day_closure:
            state = AvailabilityState.CLOSED
        elif exception.isClosed:
            state = AvailabilityState.PARTIALLY_BLOCKED
        elif exception.openTime and exception.closeTime:
            state = AvailabilityState.OPEN
        else:
            # Open override without times cannot be honoured
            state = AvailabilityState.CLOSED
        times = (exception.openTime, exception.closeTime) if state != AvailabilityState.CLOSED else (None, None)
        return _resolved(
            schedule, on, state, AvailabilitySource.EXCEPTION,
            *times, exception_id=exception.id, reason=exception.reason
        )

    weekly = schedule.weekly_for(DayOfWeek.from_date(on))
    if weekly:
        if weekly.isClosed or not (weekly.openTime and weekly.closeTime):
            return _resolved(schedule, on, AvailabilityState.CLOSED, AvailabilitySource.WEEKLY)
        return _resolved(
            schedule, on, AvailabilityState.OPEN, AvailabilitySource.WEEKLY,
            weekly.openTime, weekly.closeTime
        )

    return _resolved(schedule, on, AvailabilityState.CLOSED, AvailabilitySource.DEFAULT)

def build_slots(
    on: date,
    open_time: time,
    close_time: time,
    duration_minutes: int,
    step_minutes: int,
    bookings: List[Tuple[datetime, datetime]],
    blackout: Optional[Tuple[time, time]] = None,
    now: Optional[datetime] = None
) -> List[TimeSlot]:
    """
    Candidate slots every `step_minutes` from opening while the whole slot fits
    before closing. A slot is unavailable when it overlaps a booking or the
    blackout window, or starts before `now`.
    """
    slots = []
    current = datetime.combine(on, open_time)
    closing = datetime.combine(on, close_time)
    blackout_window = None
    if blackout:
        blackout_window = (datetime.combine(on, blackout[0]), datetime.combine(on, blackout[1]))

    while add_minutes(current, duration_minutes) <= closing:
        slot_end = add_minutes(current, duration_minutes)

        booked = any(windows_overlap(current, slot_end, start, end) for start, end in bookings)
        blocked = blackout_window is not None and windows_overlap(current, slot_end, *blackout_window)
        past = now is not None and current < now

        slots.append(TimeSlot(
            startTime=current,
            endTime=slot_end,
            isAvailable=not (booked or blocked or past)
        ))
        current = add_minutes(current, step_minutes)

    return slots

class AvailabilityResolver:
    """Read-only: never mutates weekly hours or exceptions."""

    def __init__(self, repository: ScheduleRepository, bookings: Optional[BookingCounter] = None):
        self.repository = repository
        self.bookings = bookings

    async def resolve(self, business_id: str, on: date) -> ResolvedAvailability:
        schedule = await self.repository.load_snapshot(business_id)
        return resolve_from_snapshot(schedule, on)

    async def resolve_range(self, business_id: str, start: date, end: date) -> List[ResolvedAvailability]:
        """Resolve every date from start to end inclusive against one snapshot"""
        if end < start:
            raise ValueError("End date must not be before start date")
        days = (end - start).days + 1
        if days > settings.MAX_RESOLVE_RANGE_DAYS:
            raise ValueError(f"Date range cannot exceed {settings.MAX_RESOLVE_RANGE_DAYS} days")

        schedule = await self.repository.load_snapshot(business_id)
        return [resolve_from_snapshot(schedule, start + timedelta(days=i)) for i in range(days)]

    async def get_available_slots(
        self,
        business_id: str,
        on: date,
        duration_minutes: int,
        now: Optional[datetime] = None
    ) -> List[TimeSlot]:
        """
        List bookable slots for one date.

        A full-day closure yields nothing. Special hours replace the weekly
        window; a blocked window keeps the weekly hours and blacks out its own
        span.
        """
        if duration_minutes <= 0:
            raise ValueError("Duration must be positive")
        if self.bookings is None:
            raise RuntimeError("Slot listing needs a booking collaborator")

        schedule = await self.repository.load_snapshot(business_id)
        exception = schedule.exception_for(on)

        if exception and exception.is_full_day_closure:
            return []

        if exception and not exception.isClosed:
            open_time, close_time = exception.openTime, exception.closeTime
        else:
            weekly = schedule.weekly_for(DayOfWeek.from_date(on))
            if weekly is None or weekly.isClosed:
                return []
            open_time, close_time = weekly.openTime, weekly.closeTime

        if not open_time or not close_time:
            return []

        blackout = None
        if exception and exception.is_blocked_window:
            blackout = (exception.openTime, exception.closeTime)

        bookings = await self.bookings.list_booking_windows(business_id, on)

        return build_slots(
            on,
            open_time,
            close_time,
            duration_minutes,
            settings.SLOT_STEP_MINUTES,
            bookings,
            blackout=blackout,
            now=now if now is not None else datetime.now()
        )
