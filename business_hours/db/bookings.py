"""
Booking collaborator: read-only queries over the bookings collection.

Booking documents carry `businessId`, `status` and naive wall-clock
`startTime`/`endTime` datetimes in business-local time.
"""
from abc import ABC, abstractmethod
from datetime import date, datetime, time
from typing import List, Optional, Tuple
import logging

from pymongo.errors import PyMongoError

from business_hours.core.errors import PersistenceError
from business_hours.db.mongodb import BOOKINGS
from business_hours.schemas.booking import ACTIVE_STATUSES, RELEASED_STATUSES
from business_hours.schemas.hours import DayOfWeek

logger = logging.getLogger(__name__)


class BookingCounter(ABC):

    @abstractmethod
    async def count_bookings(
        self,
        business_id: str,
        on: Optional[date] = None,
        day_of_week: Optional[DayOfWeek] = None
    ) -> int:
        """
        Count confirmed/pending bookings, scoped to one calendar date or to
        upcoming bookings falling on one weekday
        """

    @abstractmethod
    async def list_booking_windows(self, business_id: str, on: date) -> List[Tuple[datetime, datetime]]:
        """(start, end) of every booking on `on` that still holds its slot"""


def _day_bounds(on: date) -> Tuple[datetime, datetime]:
    return datetime.combine(on, time.min), datetime.combine(on, time.max)


class MongoBookingCounter(BookingCounter):

    def __init__(self, database, today=None):
        self.database = database
        # Injectable clock for the "upcoming" cut-off of weekday counts
        self.today = today or date.today

    @property
    def bookings(self):
        return self.database[BOOKINGS]

    async def count_bookings(
        self,
        business_id: str,
        on: Optional[date] = None,
        day_of_week: Optional[DayOfWeek] = None
    ) -> int:
        query = {
            "businessId": business_id,
            "status": {"$in": ACTIVE_STATUSES}
        }

        if on is not None:
            start, end = _day_bounds(on)
            query["startTime"] = {"$gte": start, "$lte": end}
        elif day_of_week is not None:
            query["startTime"] = {"$gte": datetime.combine(self.today(), time.min)}
            # $dayOfWeek counts 1 = Sunday ... 7 = Saturday
            query["$expr"] = {"$eq": [{"$dayOfWeek": "$startTime"}, int(day_of_week) + 1]}
        else:
            raise ValueError("count_bookings needs a date or a day_of_week")

        try:
            return await self.bookings.count_documents(query)
        except PyMongoError as e:
            logger.error(f"Failed to count bookings for business {business_id}: {e}")
            raise PersistenceError("Failed to count bookings") from e

    async def list_booking_windows(self, business_id: str, on: date) -> List[Tuple[datetime, datetime]]:
        start, end = _day_bounds(on)
        query = {
            "businessId": business_id,
            "status": {"$nin": RELEASED_STATUSES},
            "startTime": {"$gte": start, "$lte": end}
        }

        try:
            cursor = self.bookings.find(query, {"startTime": 1, "endTime": 1}).sort("startTime", 1)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error(f"Failed to list bookings for business {business_id}: {e}")
            raise PersistenceError("Failed to list bookings") from e

        return [(doc["startTime"], doc["endTime"]) for doc in docs]
