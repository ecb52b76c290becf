from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from business_hours.core.errors import (
    DuplicateEntry, DuplicateException, InvalidException, InvalidTimeWindow,
    NotFound, PersistenceError, SchedulingError
)
from business_hours.db.bookings import BookingCounter, MongoBookingCounter
from business_hours.db.mongodb import db
from business_hours.db.repository import MongoScheduleRepository, ScheduleRepository
from business_hours.schemas.conflict import ConflictWarning
from business_hours.services.availability_service import AvailabilityResolver
from business_hours.services.schedule_cache import ScheduleCache
from business_hours.services.schedule_service import ScheduleEditor, build_editor

_repository: Optional[MongoScheduleRepository] = None
_schedule_cache: Optional[ScheduleCache] = None

def get_repository() -> ScheduleRepository:
    global _repository
    if _repository is None or _repository.database is not db.db:
        _repository = MongoScheduleRepository(db.db)
    return _repository

def get_booking_counter() -> BookingCounter:
    return MongoBookingCounter(db.db)

def get_schedule_cache(repository: ScheduleRepository = Depends(get_repository)) -> ScheduleCache:
    """One local schedule view per process, bound to the active repository"""
    global _schedule_cache
    if _schedule_cache is None or _schedule_cache.repository is not repository:
        _schedule_cache = ScheduleCache(repository)
    return _schedule_cache

def get_editor(
    repository: ScheduleRepository = Depends(get_repository),
    bookings: BookingCounter = Depends(get_booking_counter),
    cache: ScheduleCache = Depends(get_schedule_cache)
) -> ScheduleEditor:
    return build_editor(repository, bookings, cache)

def get_resolver(
    repository: ScheduleRepository = Depends(get_repository),
    bookings: BookingCounter = Depends(get_booking_counter)
) -> AvailabilityResolver:
    return AvailabilityResolver(repository, bookings)

def to_http_exception(error: SchedulingError) -> HTTPException:
    """Map a scheduling error onto the API's status codes"""
    if isinstance(error, (InvalidTimeWindow, InvalidException)):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, (DuplicateException, DuplicateEntry)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, NotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, PersistenceError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=error.message)

def confirmation_required(warning: ConflictWarning) -> JSONResponse:
    """
    409 with the warning fields at the top level. `requiresConfirmation`
    tells it apart from a duplicate, whose body only has `detail`. Resend
    with confirm=true to apply the change.
    """
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=jsonable_encoder(warning)
    )
