import asyncio
import uuid
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Tuple

import pytest
from httpx import ASGITransport, AsyncClient

from business_hours.core.auth import create_access_token
from business_hours.core.errors import DuplicateEntry, DuplicateException, NotFound, PersistenceError
from business_hours.db.bookings import BookingCounter
from business_hours.db.repository import ScheduleRepository
from business_hours.schemas.booking import ACTIVE_STATUSES, RELEASED_STATUSES
from business_hours.schemas.exception import AvailabilityException
from business_hours.schemas.hours import DayOfWeek, WeeklyHourEntry
from business_hours.services.availability_service import AvailabilityResolver
from business_hours.services.schedule_service import ScheduleEditor

BUSINESS_ID = "biz-1"
OWNER_ID = "owner-1"

# Sunday; weekday conflict counts only look at bookings from here on
TODAY = date(2024, 12, 1)


class InMemoryScheduleRepository(ScheduleRepository):
    """
    Same contract and uniqueness rules as the Mongo repository. Yields to the
    event loop between row inserts so concurrent callers interleave.
    """

    def __init__(self):
        self.weekly: Dict[str, WeeklyHourEntry] = {}
        self.exceptions: Dict[str, AvailabilityException] = {}
        self.fail_writes = False
        self.fail_reads = False
        self.write_delay = 0.0
        self.snapshot_loads = 0

    def _check_read(self):
        if self.fail_reads:
            raise PersistenceError("store unreachable")

    async def _check_write(self):
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        if self.fail_writes:
            raise PersistenceError("write rejected")

    async def list_weekly_hours(self, business_id: str) -> List[WeeklyHourEntry]:
        self._check_read()
        await asyncio.sleep(0)
        rows = [h for h in self.weekly.values() if h.businessId == business_id]
        return sorted(rows, key=lambda h: h.dayOfWeek)

    async def bulk_create_weekly_hours(self, business_id, entries, ordered=True):
        await self._check_write()
        created = []
        duplicate = False
        for entry in entries:
            taken = any(
                h.businessId == business_id and h.dayOfWeek == entry.dayOfWeek
                for h in self.weekly.values()
            )
            if taken:
                duplicate = True
                if ordered:
                    break
                continue
            row = WeeklyHourEntry(id=uuid.uuid4().hex, businessId=business_id, createdAt=datetime.utcnow(), **entry.model_dump())
            self.weekly[row.id] = row
            created.append(row)
            await asyncio.sleep(0)
        if duplicate:
            raise DuplicateEntry(business_id)
        return created

    async def get_weekly_hour_entry(self, business_id, entry_id):
        self._check_read()
        row = self.weekly.get(entry_id)
        return row if row and row.businessId == business_id else None

    async def update_weekly_hour_entry(self, business_id, entry_id, fields):
        await self._check_write()
        row = self.weekly.get(entry_id)
        if row is None or row.businessId != business_id:
            raise NotFound("Weekly hour entry", entry_id)
        self.weekly[entry_id] = row.model_copy(update={**fields, "updatedAt": datetime.utcnow()})

    async def list_exceptions(self, business_id):
        self._check_read()
        rows = [e for e in self.exceptions.values() if e.businessId == business_id]
        return sorted(rows, key=lambda e: e.exceptionDate)

    async def find_exception_by_date(self, business_id, on):
        self._check_read()
        return next(
            (e for e in self.exceptions.values() if e.businessId == business_id and e.exceptionDate == on),
            None
        )

    async def get_exception(self, business_id, exception_id):
        self._check_read()
        row = self.exceptions.get(exception_id)
        return row if row and row.businessId == business_id else None

    async def create_exception(self, business_id, exception_in, created_by=None):
        await self._check_write()
        if await self.find_exception_by_date(business_id, exception_in.exceptionDate):
            raise DuplicateException(business_id, exception_in.exceptionDate.isoformat())
        row = AvailabilityException(
            id=uuid.uuid4().hex,
            businessId=business_id,
            createdBy=created_by,
            createdAt=datetime.utcnow(),
            **exception_in.model_dump()
        )
        self.exceptions[row.id] = row
        return row

    async def delete_exception(self, business_id, exception_id):
        await self._check_write()
        row = self.exceptions.get(exception_id)
        if row is None or row.businessId != business_id:
            return False
        del self.exceptions[exception_id]
        return True

    async def load_snapshot(self, business_id):
        self.snapshot_loads += 1
        return await super().load_snapshot(business_id)

    # Test helpers

    def seed_weekly(self, business_id: str, hours: Dict[DayOfWeek, Optional[Tuple[time, time]]]):
        """None marks a closed day"""
        for day, window in hours.items():
            row = WeeklyHourEntry(
                id=uuid.uuid4().hex,
                businessId=business_id,
                dayOfWeek=day,
                openTime=window[0] if window else time(9, 0),
                closeTime=window[1] if window else time(17, 0),
                isClosed=window is None
            )
            self.weekly[row.id] = row

    def entry_for(self, business_id: str, day: DayOfWeek) -> WeeklyHourEntry:
        return next(h for h in self.weekly.values() if h.businessId == business_id and h.dayOfWeek == day)

    def seed_exception(self, business_id: str, **fields) -> AvailabilityException:
        row = AvailabilityException(id=uuid.uuid4().hex, businessId=business_id, **fields)
        self.exceptions[row.id] = row
        return row


class InMemoryBookingCounter(BookingCounter):

    def __init__(self, today: date = TODAY):
        self.bookings: List[Dict[str, Any]] = []
        self.today = today
        self.fail = False
        self.calls = 0

    def add(self, business_id: str, start: datetime, minutes: int = 60, status: str = "confirmed"):
        self.bookings.append({
            "businessId": business_id,
            "startTime": start,
            "endTime": start + timedelta(minutes=minutes),
            "status": status
        })

    async def count_bookings(self, business_id, on=None, day_of_week=None):
        self.calls += 1
        if self.fail:
            raise PersistenceError("booking service unreachable")
        count = 0
        for booking in self.bookings:
            if booking["businessId"] != business_id or booking["status"] not in ACTIVE_STATUSES:
                continue
            start = booking["startTime"]
            if on is not None and start.date() == on:
                count += 1
            elif day_of_week is not None and start.date() >= self.today and DayOfWeek.from_date(start.date()) == day_of_week:
                count += 1
        return count

    async def list_booking_windows(self, business_id, on):
        return [
            (b["startTime"], b["endTime"])
            for b in self.bookings
            if b["businessId"] == business_id
            and b["status"] not in RELEASED_STATUSES
            and b["startTime"].date() == on
        ]


WEEKDAYS_NINE_TO_FIVE = {
    DayOfWeek.SUNDAY: None,
    DayOfWeek.MONDAY: (time(9, 0), time(17, 0)),
    DayOfWeek.TUESDAY: (time(9, 0), time(17, 0)),
    DayOfWeek.WEDNESDAY: (time(9, 0), time(17, 0)),
    DayOfWeek.THURSDAY: (time(9, 0), time(17, 0)),
    DayOfWeek.FRIDAY: (time(9, 0), time(17, 0)),
    DayOfWeek.SATURDAY: None,
}


@pytest.fixture
def repository():
    return InMemoryScheduleRepository()


@pytest.fixture
def seeded_repository(repository):
    repository.seed_weekly(BUSINESS_ID, WEEKDAYS_NINE_TO_FIVE)
    return repository


@pytest.fixture
def bookings():
    return InMemoryBookingCounter()


@pytest.fixture
def editor(repository, bookings):
    return ScheduleEditor(repository, bookings)


@pytest.fixture
def resolver(repository, bookings):
    return AvailabilityResolver(repository, bookings)


@pytest.fixture
def owner_headers():
    token = create_access_token({"sub": OWNER_ID})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def api_client(repository, bookings, monkeypatch):
    """
    Factory for an AsyncClient bound to the app, with the in-memory
    collaborators and a single known business
    """
    from main import app
    from business_hours.api import deps
    from business_hours.core import auth

    async def fake_get_business_by_id(business_id):
        if business_id == BUSINESS_ID:
            return {"_id": BUSINESS_ID, "ownerId": OWNER_ID, "name": "Test Salon"}
        return None

    monkeypatch.setattr(auth, "get_business_by_id", fake_get_business_by_id)
    app.dependency_overrides[deps.get_repository] = lambda: repository
    app.dependency_overrides[deps.get_booking_counter] = lambda: bookings

    def factory():
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    yield factory
    app.dependency_overrides.clear()
