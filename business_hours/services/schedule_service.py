"""
Owner-facing schedule edits.

Every edit runs the same steps in order: validate, check for affected
bookings when the edit reduces availability, wait for confirmation if any
are found, then persist through the schedule cache. Each call covers one
field group (times, closed flag, or one exception).
"""
from dataclasses import dataclass
from datetime import date, time
from typing import Optional
import logging

from business_hours.core.config import settings
from business_hours.core.errors import DuplicateException, InvalidTimeWindow, NotFound
from business_hours.db.bookings import BookingCounter
from business_hours.db.repository import ScheduleRepository
from business_hours.schemas.availability import AvailabilityState, BusinessSchedule
from business_hours.schemas.conflict import ConflictScope, ConflictWarning
from business_hours.schemas.exception import AvailabilityException, AvailabilityExceptionCreate
from business_hours.schemas.hours import DayOfWeek, WeeklyHourEntry
from business_hours.services.availability_service import AvailabilityResolver, resolve_from_snapshot
from business_hours.services.conflict_service import ConflictChecker, reduces_availability
from business_hours.services.exception_service import ExceptionStore, validate_exception
from business_hours.services.schedule_cache import ScheduleCache
from business_hours.services.weekly_hours_service import WeeklyHoursInitializer
from business_hours.utils.time_window import validate_time_window, windows_overlap

logger = logging.getLogger(__name__)

@dataclass
class EditOutcome:
    applied: bool
    warning: Optional[ConflictWarning] = None
    entry: Optional[WeeklyHourEntry] = None
    exception: Optional[AvailabilityException] = None
    affectedBookings: int = 0

def _replace_entry(schedule: BusinessSchedule, entry: WeeklyHourEntry) -> BusinessSchedule:
    schedule.weeklyHours = [entry if h.id == entry.id else h for h in schedule.weeklyHours]
    return schedule

def _add_exception(schedule: BusinessSchedule, exception: AvailabilityException) -> BusinessSchedule:
    others = [e for e in schedule.exceptions if e.id != exception.id]
    schedule.exceptions = sorted(others + [exception], key=lambda e: e.exceptionDate)
    return schedule

def _drop_exception(schedule: BusinessSchedule, exception_id: str) -> BusinessSchedule:
    schedule.exceptions = [e for e in schedule.exceptions if e.id != exception_id]
    return schedule

class ScheduleEditor:

    def __init__(
        self,
        repository: ScheduleRepository,
        bookings: BookingCounter,
        cache: Optional[ScheduleCache] = None,
        persistence_timeout: Optional[float] = None
    ):
        self.repository = repository
        self.cache = cache or ScheduleCache(repository)
        self.persistence_timeout = persistence_timeout
        self.initializer = WeeklyHoursInitializer(repository)
        self.exceptions = ExceptionStore(repository)
        self.conflicts = ConflictChecker(bookings)
        self.resolver = AvailabilityResolver(repository, bookings)

    async def load_schedule(self, business_id: str) -> BusinessSchedule:
        """
        Serve the local view, fetching it from the store when absent or
        expired. Weekly hours are seeded on first load.
        """
        schedule = self.cache.get(business_id)
        if schedule is not None and len(schedule.weeklyHours) == len(DayOfWeek):
            return schedule

        schedule = await self.cache.refresh(business_id)
        if len(schedule.weeklyHours) < len(DayOfWeek):
            schedule.weeklyHours = await self.initializer.initialize(business_id)
            self.cache.put(schedule)
        return schedule

    async def _get_entry(self, business_id: str, entry_id: str) -> WeeklyHourEntry:
        entry = await self.repository.get_weekly_hour_entry(business_id, entry_id)
        if entry is None:
            raise NotFound("Weekly hour entry", entry_id)
        return entry

    async def _persist_entry(self, business_id: str, entry: WeeklyHourEntry, fields: dict) -> WeeklyHourEntry:
        updated = entry.model_copy(update=fields)
        await self.cache.write_through(
            business_id,
            lambda: self.repository.update_weekly_hour_entry(business_id, entry.id, fields),
            optimistic=lambda schedule: _replace_entry(schedule, updated),
            timeout=self.persistence_timeout
        )
        return updated

    async def update_hours(
        self,
        business_id: str,
        entry_id: str,
        open_time: Optional[time] = None,
        close_time: Optional[time] = None,
        confirm: bool = False
    ) -> EditOutcome:
        """Retime one weekday"""
        if open_time is None and close_time is None:
            raise InvalidTimeWindow("Provide an opening or closing time to update.")

        entry = await self._get_entry(business_id, entry_id)
        new_open = open_time if open_time is not None else entry.openTime
        new_close = close_time if close_time is not None else entry.closeTime
        if new_open is None or new_close is None:
            raise InvalidTimeWindow("Both opening and closing times are required.")

        validate_time_window(new_open, new_close)

        affected = 0
        current = None if entry.isClosed else (entry.openTime, entry.closeTime)
        if current and None not in current and reduces_availability(current, (new_open, new_close)):
            warning, affected = await self.conflicts.guard(
                business_id, ConflictScope.for_weekday(entry.dayOfWeek), confirm
            )
            if warning:
                return EditOutcome(applied=False, warning=warning, entry=entry, affectedBookings=affected)

        fields = {}
        if open_time is not None:
            fields["openTime"] = open_time
        if close_time is not None:
            fields["closeTime"] = close_time

        updated = await self._persist_entry(business_id, entry, fields)
        return EditOutcome(applied=True, entry=updated, affectedBookings=affected)

    async def set_closed(
        self,
        business_id: str,
        entry_id: str,
        is_closed: bool,
        confirm: bool = False
    ) -> EditOutcome:
        """Close or reopen one weekday"""
        entry = await self._get_entry(business_id, entry_id)

        affected = 0
        if is_closed and not entry.isClosed:
            warning, affected = await self.conflicts.guard(
                business_id, ConflictScope.for_weekday(entry.dayOfWeek), confirm
            )
            if warning:
                return EditOutcome(applied=False, warning=warning, entry=entry, affectedBookings=affected)
        elif not is_closed:
            # Reopening must leave a valid window behind
            if entry.openTime is None or entry.closeTime is None:
                raise InvalidTimeWindow("Set opening and closing times before reopening this day.")
            validate_time_window(entry.openTime, entry.closeTime)

        updated = await self._persist_entry(business_id, entry, {"isClosed": is_closed})
        return EditOutcome(applied=True, entry=updated, affectedBookings=affected)

    async def add_exception(
        self,
        business_id: str,
        exception_in: AvailabilityExceptionCreate,
        confirm: bool = False,
        created_by: Optional[str] = None,
        today: Optional[date] = None
    ) -> EditOutcome:
        """Create a date exception, warning first if it removes open time"""
        validate_exception(exception_in, today)

        schedule = await self.repository.load_snapshot(business_id)
        existing = schedule.exception_for(exception_in.exceptionDate)
        if existing:
            raise DuplicateException(business_id, exception_in.exceptionDate.isoformat(), existing.id)

        resolved = resolve_from_snapshot(schedule, exception_in.exceptionDate)
        current = (resolved.openTime, resolved.closeTime) if resolved.state == AvailabilityState.OPEN else None
        if exception_in.is_blocked_window:
            reduces = current is not None and windows_overlap(
                exception_in.openTime, exception_in.closeTime, *current
            )
        elif exception_in.isClosed:
            reduces = reduces_availability(current, None)
        else:
            reduces = reduces_availability(current, (exception_in.openTime, exception_in.closeTime))

        affected = 0
        if reduces:
            warning, affected = await self.conflicts.guard(
                business_id, ConflictScope.for_date(exception_in.exceptionDate), confirm
            )
            if warning:
                return EditOutcome(applied=False, warning=warning, affectedBookings=affected)

        created = await self.cache.write_through(
            business_id,
            lambda: self.exceptions.create(business_id, exception_in, created_by),
            commit=_add_exception,
            timeout=self.persistence_timeout
        )
        return EditOutcome(applied=True, exception=created, affectedBookings=affected)

    async def remove_exception(self, business_id: str, exception_id: str) -> bool:
        """Delete a date exception; False if it was already gone"""
        return await self.cache.write_through(
            business_id,
            lambda: self.exceptions.delete(business_id, exception_id),
            optimistic=lambda schedule: _drop_exception(schedule, exception_id),
            timeout=self.persistence_timeout
        )

def build_editor(repository: ScheduleRepository, bookings: BookingCounter, cache: Optional[ScheduleCache] = None) -> ScheduleEditor:
    return ScheduleEditor(
        repository,
        bookings,
        cache=cache,
        persistence_timeout=settings.PERSISTENCE_TIMEOUT_SECONDS
    )
