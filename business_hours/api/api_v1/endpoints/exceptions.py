from fastapi import APIRouter, Depends, Query
from typing import List, Dict, Any

from business_hours.api.deps import confirmation_required, get_editor, to_http_exception
from business_hours.core.auth import get_current_user, get_owned_business
from business_hours.core.errors import SchedulingError
from business_hours.schemas.exception import AvailabilityException, AvailabilityExceptionCreate
from business_hours.services.schedule_service import ScheduleEditor

router = APIRouter()

@router.get("/{business_id}/exceptions", response_model=List[AvailabilityException])
async def list_exceptions(
    business_id: str,
    business: dict = Depends(get_owned_business),
    editor: ScheduleEditor = Depends(get_editor)
):
    """
    Get the business's availability exceptions, earliest date first
    """
    try:
        return await editor.exceptions.list_exceptions(business_id)
    except SchedulingError as e:
        raise to_http_exception(e)

@router.post("/{business_id}/exceptions", response_model=Dict[str, Any])
async def create_exception(
    business_id: str,
    exception_in: AvailabilityExceptionCreate,
    confirm: bool = Query(False, description="Proceed even if existing bookings are affected"),
    business: dict = Depends(get_owned_business),
    current_user: dict = Depends(get_current_user),
    editor: ScheduleEditor = Depends(get_editor)
):
    """
    Add an exception for one date: closed all day, a blocked window
    (isClosed with times) or special opening hours (not closed, with times).
    Only one exception per date; edit or delete the existing one instead.
    """
    try:
        outcome = await editor.add_exception(
            business_id,
            exception_in,
            confirm=confirm,
            created_by=str(current_user["_id"])
        )
    except SchedulingError as e:
        raise to_http_exception(e)

    if not outcome.applied:
        return confirmation_required(outcome.warning)

    return {
        "message": "Availability exception saved",
        "exception": outcome.exception,
        "affectedBookings": outcome.affectedBookings
    }

@router.delete("/{business_id}/exceptions/{exception_id}", response_model=Dict[str, Any])
async def delete_exception(
    business_id: str,
    exception_id: str,
    business: dict = Depends(get_owned_business),
    editor: ScheduleEditor = Depends(get_editor)
):
    """
    Remove an availability exception. Deleting one that is already gone succeeds.
    """
    try:
        deleted = await editor.remove_exception(business_id, exception_id)
    except SchedulingError as e:
        raise to_http_exception(e)

    if not deleted:
        return {"message": "Availability exception already removed", "deleted": False}
    return {"message": "Availability exception removed", "deleted": True}
