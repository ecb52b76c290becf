from fastapi import APIRouter, HTTPException, Depends, Query, status
from typing import Dict, Any, List, Optional
from datetime import date
import logging

from business_hours.api.deps import confirmation_required, get_editor, to_http_exception
from business_hours.core.auth import get_owned_business
from business_hours.core.errors import SchedulingError
from business_hours.schemas.availability import BusinessSchedule
from business_hours.schemas.conflict import BookingConflictReport, ConflictScope
from business_hours.schemas.hours import DayOfWeek, WeeklyHourEntry, WeeklyHourUpdate
from business_hours.services.schedule_service import ScheduleEditor

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/{business_id}/schedule", response_model=BusinessSchedule)
async def get_schedule(
    business_id: str,
    business: dict = Depends(get_owned_business),
    editor: ScheduleEditor = Depends(get_editor)
):
    """
    Get the business's weekly hours and exceptions.
    Weekly hours are created with defaults the first time the schedule is loaded.
    """
    try:
        return await editor.load_schedule(business_id)
    except SchedulingError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error in get_schedule: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error occurred while retrieving the schedule"
        )

@router.post("/{business_id}/hours/initialize", response_model=List[WeeklyHourEntry])
async def initialize_hours(
    business_id: str,
    business: dict = Depends(get_owned_business),
    editor: ScheduleEditor = Depends(get_editor)
):
    """
    Create the seven default weekly entries; returns the existing ones if already set up
    """
    try:
        return await editor.initializer.initialize(business_id)
    except SchedulingError as e:
        raise to_http_exception(e)

@router.patch("/{business_id}/hours/{entry_id}", response_model=Dict[str, Any])
async def update_weekly_hours(
    business_id: str,
    entry_id: str,
    payload: WeeklyHourUpdate,
    confirm: bool = Query(False, description="Proceed even if existing bookings are affected"),
    business: dict = Depends(get_owned_business),
    editor: ScheduleEditor = Depends(get_editor)
):
    """
    Update one weekday: either its times or its closed flag, not both.

    Reducing the hours of a day with upcoming bookings answers 409 with the
    number of affected bookings; repeat the request with confirm=true to apply it.
    """
    has_times = payload.openTime is not None or payload.closeTime is not None
    if has_times and payload.isClosed is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Update either the times or the closed flag, not both"
        )
    if not has_times and payload.isClosed is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nothing to update"
        )

    try:
        if payload.isClosed is not None:
            outcome = await editor.set_closed(business_id, entry_id, payload.isClosed, confirm=confirm)
        else:
            outcome = await editor.update_hours(
                business_id, entry_id,
                open_time=payload.openTime,
                close_time=payload.closeTime,
                confirm=confirm
            )
    except SchedulingError as e:
        raise to_http_exception(e)

    if not outcome.applied:
        return confirmation_required(outcome.warning)

    day = DayOfWeek(outcome.entry.dayOfWeek).label
    return {
        "message": f"Business hours for {day} updated successfully",
        "entry": outcome.entry,
        "affectedBookings": outcome.affectedBookings
    }

@router.get("/{business_id}/conflicts", response_model=BookingConflictReport)
async def check_conflicts(
    business_id: str,
    on: Optional[date] = Query(None, alias="date", description="Date in YYYY-MM-DD format"),
    day_of_week: Optional[int] = Query(None, alias="dayOfWeek", ge=0, le=6, description="0 = Sunday ... 6 = Saturday"),
    business: dict = Depends(get_owned_business),
    editor: ScheduleEditor = Depends(get_editor)
):
    """
    Count confirmed/pending bookings on a date or on upcoming occurrences of a weekday
    """
    if (on is None) == (day_of_week is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide exactly one of date or dayOfWeek"
        )

    scope = ConflictScope.for_date(on) if on is not None else ConflictScope.for_weekday(DayOfWeek(day_of_week))
    try:
        return await editor.conflicts.check(business_id, scope)
    except SchedulingError as e:
        raise to_http_exception(e)
