from typing import List, Optional
from datetime import date
import logging

from business_hours.core.config import settings
from business_hours.core.errors import DuplicateException, InvalidException, NotFound
from business_hours.db.repository import ScheduleRepository
from business_hours.schemas.exception import AvailabilityException, AvailabilityExceptionCreate
from business_hours.utils.time_window import validate_time_window

logger = logging.getLogger(__name__)

def validate_exception(exception_in: AvailabilityExceptionCreate, today: Optional[date] = None) -> None:
    """
    Validate a new exception before it is stored.

    Special opening hours follow the weekly rules (order and minimum length);
    a blocked window only needs its start before its end.
    """
    today = today or date.today()

    reason = (exception_in.reason or "").strip()
    if len(reason) < settings.EXCEPTION_REASON_MIN_LENGTH:
        raise InvalidException(
            f"Please provide a valid reason (at least {settings.EXCEPTION_REASON_MIN_LENGTH} characters)."
        )

    if exception_in.exceptionDate < today:
        raise InvalidException("Exceptions cannot be set for past dates.")

    has_open = exception_in.openTime is not None
    has_close = exception_in.closeTime is not None
    if has_open != has_close:
        raise InvalidException("Opening and closing times must be given together.")

    if not exception_in.isClosed:
        if not has_open:
            raise InvalidException("Special hours need an opening and closing time.")
        validate_time_window(exception_in.openTime, exception_in.closeTime)
    elif has_open:
        validate_time_window(exception_in.openTime, exception_in.closeTime, min_duration_minutes=0)

class ExceptionStore:
    """Date-specific overrides, at most one per business per date."""

    def __init__(self, repository: ScheduleRepository):
        self.repository = repository

    async def list_exceptions(self, business_id: str) -> List[AvailabilityException]:
        return await self.repository.list_exceptions(business_id)

    async def create(
        self,
        business_id: str,
        exception_in: AvailabilityExceptionCreate,
        created_by: Optional[str] = None
    ) -> AvailabilityException:
        """
        Store a new exception.

        Raises:
            DuplicateException: the date already has an exception; the
                existing one is left as it was
        """
        existing = await self.repository.find_exception_by_date(business_id, exception_in.exceptionDate)
        if existing:
            raise DuplicateException(business_id, exception_in.exceptionDate.isoformat(), existing.id)

        exception_in = exception_in.model_copy(update={"reason": (exception_in.reason or "").strip() or None})

        # The unique index still rejects a concurrent insert for the same date
        created = await self.repository.create_exception(business_id, exception_in, created_by)
        logger.info(f"Created availability exception {created.id} for business {business_id} on {created.exceptionDate}")
        return created

    async def delete(self, business_id: str, exception_id: str) -> bool:
        """
        Remove an exception.

        Returns False without error when it is already gone. Raises NotFound
        when it disappeared between the lookup and the delete.
        """
        existing = await self.repository.get_exception(business_id, exception_id)
        if existing is None:
            logger.info(f"Availability exception {exception_id} already absent for business {business_id}")
            return False

        deleted = await self.repository.delete_exception(business_id, exception_id)
        if not deleted:
            raise NotFound("Availability exception", exception_id)

        logger.info(f"Deleted availability exception {exception_id} for business {business_id}")
        return True
