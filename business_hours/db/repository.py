"""
Storage collaborator for weekly hours and availability exceptions.

`ScheduleRepository` is the contract the scheduling services depend on;
`MongoScheduleRepository` implements it on top of Motor. Times are stored as
"HH:MM:SS" strings and dates as "YYYY-MM-DD" strings, day of week as 0-6.
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, List, Optional
import asyncio
import logging

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING
from pymongo.errors import BulkWriteError, DuplicateKeyError, PyMongoError

from business_hours.core.config import settings
from business_hours.core.errors import DuplicateEntry, DuplicateException, NotFound, PersistenceError
from business_hours.db.mongodb import EXCEPTIONS, WEEKLY_HOURS
from business_hours.schemas.availability import BusinessSchedule
from business_hours.schemas.exception import AvailabilityException, AvailabilityExceptionCreate
from business_hours.schemas.hours import WeeklyHourCreate, WeeklyHourEntry
from business_hours.utils.time_window import format_time

logger = logging.getLogger(__name__)

DUPLICATE_KEY = 11000


class ScheduleRepository(ABC):

    @abstractmethod
    async def list_weekly_hours(self, business_id: str) -> List[WeeklyHourEntry]:
        """Weekly entries ordered by day of week"""

    @abstractmethod
    async def bulk_create_weekly_hours(
        self,
        business_id: str,
        entries: List[WeeklyHourCreate],
        ordered: bool = True
    ) -> List[WeeklyHourEntry]:
        """Insert entries; raises DuplicateEntry if any (business, day) already exists"""

    @abstractmethod
    async def get_weekly_hour_entry(self, business_id: str, entry_id: str) -> Optional[WeeklyHourEntry]:
        ...

    @abstractmethod
    async def update_weekly_hour_entry(self, business_id: str, entry_id: str, fields: Dict[str, Any]) -> None:
        """Raises NotFound when the entry does not exist"""

    @abstractmethod
    async def list_exceptions(self, business_id: str) -> List[AvailabilityException]:
        """Exceptions ordered by date ascending"""

    @abstractmethod
    async def find_exception_by_date(self, business_id: str, on: date) -> Optional[AvailabilityException]:
        ...

    @abstractmethod
    async def get_exception(self, business_id: str, exception_id: str) -> Optional[AvailabilityException]:
        ...

    @abstractmethod
    async def create_exception(
        self,
        business_id: str,
        exception_in: AvailabilityExceptionCreate,
        created_by: Optional[str] = None
    ) -> AvailabilityException:
        """Raises DuplicateException if the date is already covered"""

    @abstractmethod
    async def delete_exception(self, business_id: str, exception_id: str) -> bool:
        """True when a row was removed"""

    async def load_snapshot(self, business_id: str) -> BusinessSchedule:
        """
        Read weekly hours and exceptions for one business. This default issues
        the two reads independently; stores that can pin both to one point in
        time override it.
        """
        weekly_hours, exceptions = await asyncio.gather(
            self.list_weekly_hours(business_id),
            self.list_exceptions(business_id)
        )
        return BusinessSchedule(businessId=business_id, weeklyHours=weekly_hours, exceptions=exceptions)


@contextmanager
def translate_errors(action: str):
    """Turn driver failures into PersistenceError; duplicate keys pass through"""
    try:
        yield
    except (DuplicateKeyError, BulkWriteError):
        raise
    except PyMongoError as e:
        logger.error(f"MongoDB error while trying to {action}: {e}")
        raise PersistenceError(f"Failed to {action}") from e


def _object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _serialize_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    data = {}
    for key, value in fields.items():
        if key in ("openTime", "closeTime"):
            data[key] = format_time(value)
        elif key == "dayOfWeek":
            data[key] = int(value)
        elif key == "exceptionDate":
            data[key] = value.isoformat()
        else:
            data[key] = value
    return data


def _entry_from_doc(doc: Dict[str, Any]) -> WeeklyHourEntry:
    data = dict(doc)
    data["id"] = str(data.pop("_id"))
    return WeeklyHourEntry(**data)


def _exception_from_doc(doc: Dict[str, Any]) -> AvailabilityException:
    data = dict(doc)
    data["id"] = str(data.pop("_id"))
    return AvailabilityException(**data)


class MongoScheduleRepository(ScheduleRepository):

    def __init__(self, database):
        self.database = database

    @property
    def weekly_hours(self):
        return self.database[WEEKLY_HOURS]

    @property
    def exceptions(self):
        return self.database[EXCEPTIONS]

    async def _find_weekly_hours(self, business_id: str, session=None) -> List[WeeklyHourEntry]:
        cursor = self.weekly_hours.find({"businessId": business_id}, session=session).sort("dayOfWeek", ASCENDING)
        docs = await cursor.to_list(length=None)
        return [_entry_from_doc(doc) for doc in docs]

    async def _find_exceptions(self, business_id: str, session=None) -> List[AvailabilityException]:
        cursor = self.exceptions.find({"businessId": business_id}, session=session).sort("exceptionDate", ASCENDING)
        docs = await cursor.to_list(length=None)
        return [_exception_from_doc(doc) for doc in docs]

    async def load_snapshot(self, business_id: str) -> BusinessSchedule:
        """Both reads run in one snapshot session, so they see the same point in time"""
        if not settings.MONGO_SNAPSHOT_READS:
            return await super().load_snapshot(business_id)

        with translate_errors("load schedule snapshot"):
            async with await self.database.client.start_session(snapshot=True) as session:
                weekly_hours = await self._find_weekly_hours(business_id, session=session)
                exceptions = await self._find_exceptions(business_id, session=session)
        return BusinessSchedule(businessId=business_id, weeklyHours=weekly_hours, exceptions=exceptions)

    async def list_weekly_hours(self, business_id: str) -> List[WeeklyHourEntry]:
        with translate_errors("list weekly hours"):
            return await self._find_weekly_hours(business_id)

    async def bulk_create_weekly_hours(
        self,
        business_id: str,
        entries: List[WeeklyHourCreate],
        ordered: bool = True
    ) -> List[WeeklyHourEntry]:
        now = datetime.utcnow()
        docs = []
        for entry in entries:
            doc = _serialize_fields(entry.model_dump())
            doc["businessId"] = business_id
            doc["createdAt"] = now
            docs.append(doc)

        try:
            with translate_errors("create weekly hours"):
                await self.weekly_hours.insert_many(docs, ordered=ordered)
        except BulkWriteError as e:
            errors = e.details.get("writeErrors", [])
            if errors and all(err.get("code") == DUPLICATE_KEY for err in errors):
                raise DuplicateEntry(business_id) from e
            logger.error(f"Bulk insert of weekly hours failed for business {business_id}: {e.details}")
            raise PersistenceError("Failed to create weekly hours") from e

        # insert_many sets _id on each document
        return [_entry_from_doc(doc) for doc in docs]

    async def get_weekly_hour_entry(self, business_id: str, entry_id: str) -> Optional[WeeklyHourEntry]:
        object_id = _object_id(entry_id)
        if object_id is None:
            return None
        with translate_errors("get weekly hour entry"):
            doc = await self.weekly_hours.find_one({"_id": object_id, "businessId": business_id})
        return _entry_from_doc(doc) if doc else None

    async def update_weekly_hour_entry(self, business_id: str, entry_id: str, fields: Dict[str, Any]) -> None:
        object_id = _object_id(entry_id)
        if object_id is None:
            raise NotFound("Weekly hour entry", entry_id)

        update_data = _serialize_fields(fields)
        update_data["updatedAt"] = datetime.utcnow()

        with translate_errors("update weekly hour entry"):
            result = await self.weekly_hours.update_one(
                {"_id": object_id, "businessId": business_id},
                {"$set": update_data}
            )
        if result.matched_count == 0:
            raise NotFound("Weekly hour entry", entry_id)

    async def list_exceptions(self, business_id: str) -> List[AvailabilityException]:
        with translate_errors("list availability exceptions"):
            return await self._find_exceptions(business_id)

    async def find_exception_by_date(self, business_id: str, on: date) -> Optional[AvailabilityException]:
        with translate_errors("find availability exception"):
            doc = await self.exceptions.find_one({"businessId": business_id, "exceptionDate": on.isoformat()})
        return _exception_from_doc(doc) if doc else None

    async def get_exception(self, business_id: str, exception_id: str) -> Optional[AvailabilityException]:
        object_id = _object_id(exception_id)
        if object_id is None:
            return None
        with translate_errors("get availability exception"):
            doc = await self.exceptions.find_one({"_id": object_id, "businessId": business_id})
        return _exception_from_doc(doc) if doc else None

    async def create_exception(
        self,
        business_id: str,
        exception_in: AvailabilityExceptionCreate,
        created_by: Optional[str] = None
    ) -> AvailabilityException:
        doc = _serialize_fields(exception_in.model_dump())
        doc["businessId"] = business_id
        doc["createdBy"] = created_by
        doc["createdAt"] = datetime.utcnow()

        try:
            with translate_errors("create availability exception"):
                result = await self.exceptions.insert_one(doc)
        except DuplicateKeyError as e:
            raise DuplicateException(business_id, exception_in.exceptionDate.isoformat()) from e

        doc["_id"] = result.inserted_id
        return _exception_from_doc(doc)

    async def delete_exception(self, business_id: str, exception_id: str) -> bool:
        object_id = _object_id(exception_id)
        if object_id is None:
            return False
        with translate_errors("delete availability exception"):
            result = await self.exceptions.delete_one({"_id": object_id, "businessId": business_id})
        return result.deleted_count > 0
