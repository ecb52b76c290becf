from typing import Optional, Tuple
from datetime import time
import logging

from business_hours.db.bookings import BookingCounter
from business_hours.schemas.conflict import BookingConflictReport, ConflictScope, ConflictWarning

logger = logging.getLogger(__name__)

# (open, close); None means closed
Window = Optional[Tuple[time, time]]

def reduces_availability(current: Window, proposed: Window) -> bool:
    """
    True when the proposed window loses time the current one covers: closing
    an open day, opening later or closing earlier
    """
    if current is None:
        return False
    if proposed is None:
        return True
    return proposed[0] > current[0] or proposed[1] < current[1]

class ConflictChecker:
    """
    Counts bookings a proposed hours reduction would affect.

    The result is advisory only. A non-zero count asks the caller to confirm,
    and a confirmed edit always goes through; existing bookings are left for
    the owner to manage.
    """

    def __init__(self, bookings: BookingCounter):
        self.bookings = bookings

    async def check(self, business_id: str, scope: ConflictScope) -> BookingConflictReport:
        count = await self.bookings.count_bookings(
            business_id,
            on=scope.date,
            day_of_week=scope.day_of_week
        )

        message = None
        if count > 0:
            message = (
                f"You have {count} confirmed/pending bookings for {scope.describe()}. "
                "If you proceed, you will need to manually manage these appointments."
            )

        return BookingConflictReport(
            businessId=business_id,
            date=scope.date,
            dayOfWeek=scope.day_of_week,
            affectedBookings=count,
            requiresConfirmation=count > 0,
            message=message
        )

    async def guard(self, business_id: str, scope: ConflictScope, confirm: bool = False) -> Tuple[Optional[ConflictWarning], int]:
        """
        Run the check ahead of a reducing edit.

        Returns the warning that must be confirmed before persisting (None when
        the edit may proceed) and the affected booking count.
        """
        report = await self.check(business_id, scope)
        if not report.requiresConfirmation:
            return None, 0

        if confirm:
            logger.info(
                f"Business {business_id} confirmed an hours reduction affecting "
                f"{report.affectedBookings} bookings ({scope.describe()})"
            )
            return None, report.affectedBookings

        logger.info(
            f"Withholding hours change for business {business_id}: "
            f"{report.affectedBookings} bookings affected ({scope.describe()})"
        )
        warning = ConflictWarning(
            detail=report.message,
            affectedBookings=report.affectedBookings,
            date=report.date,
            dayOfWeek=report.dayOfWeek
        )
        return warning, report.affectedBookings
