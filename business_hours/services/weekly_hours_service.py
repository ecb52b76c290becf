from typing import List
import logging

from business_hours.core.config import settings
from business_hours.core.errors import DuplicateEntry
from business_hours.db.repository import ScheduleRepository
from business_hours.schemas.hours import WEEKEND, DayOfWeek, WeeklyHourCreate, WeeklyHourEntry
from business_hours.utils.time_window import parse_time

logger = logging.getLogger(__name__)

def default_weekly_hours() -> List[WeeklyHourCreate]:
    """
    Seven default rows: open on weekdays, closed on the weekend
    """
    open_time = parse_time(settings.DEFAULT_OPEN_TIME)
    close_time = parse_time(settings.DEFAULT_CLOSE_TIME)
    return [
        WeeklyHourCreate(
            dayOfWeek=day,
            openTime=open_time,
            closeTime=close_time,
            isClosed=day in WEEKEND
        )
        for day in DayOfWeek
    ]

class WeeklyHoursInitializer:

    def __init__(self, repository: ScheduleRepository):
        self.repository = repository

    async def initialize(self, business_id: str) -> List[WeeklyHourEntry]:
        """
        Provision the seven weekly entries for a business, once.

        Existing entries are returned untouched. When another caller seeds the
        same business concurrently, the storage uniqueness on (business, day)
        rejects the loser, which then reads back the winner's rows and only
        fills in days that are still missing.
        """
        existing = await self.repository.list_weekly_hours(business_id)
        if len(existing) == len(DayOfWeek):
            return existing
        if existing:
            # Another caller is still seeding this business
            return await self._complete(business_id)

        try:
            created = await self.repository.bulk_create_weekly_hours(business_id, default_weekly_hours())
            logger.info(f"Initialized weekly hours for business {business_id}")
            return sorted(created, key=lambda entry: entry.dayOfWeek)
        except DuplicateEntry:
            logger.info(f"Weekly hours for business {business_id} were initialized concurrently; re-reading")

        return await self._complete(business_id)

    async def _complete(self, business_id: str) -> List[WeeklyHourEntry]:
        entries = await self.repository.list_weekly_hours(business_id)
        present = {entry.dayOfWeek for entry in entries}
        missing = [row for row in default_weekly_hours() if row.dayOfWeek not in present]
        if not missing:
            return entries

        # The winning caller may still be mid-insert; fill the gaps, duplicates are harmless
        try:
            await self.repository.bulk_create_weekly_hours(business_id, missing, ordered=False)
        except DuplicateEntry:
            pass
        return await self.repository.list_weekly_hours(business_id)
