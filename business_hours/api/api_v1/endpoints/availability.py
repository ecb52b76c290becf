from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List
from datetime import date

from business_hours.api.deps import get_resolver, to_http_exception
from business_hours.core.errors import SchedulingError
from business_hours.schemas.availability import ResolvedAvailability, TimeSlot
from business_hours.services.availability_service import AvailabilityResolver

router = APIRouter()

@router.get("/{business_id}/availability", response_model=ResolvedAvailability)
async def get_availability(
    business_id: str,
    on: date = Query(..., alias="date", description="Date in YYYY-MM-DD format"),
    resolver: AvailabilityResolver = Depends(get_resolver)
):
    """
    Get the effective opening window for a date
    """
    try:
        return await resolver.resolve(business_id, on)
    except SchedulingError as e:
        raise to_http_exception(e)

@router.get("/{business_id}/availability/range", response_model=List[ResolvedAvailability])
async def get_availability_range(
    business_id: str,
    start: date = Query(..., description="First date (YYYY-MM-DD)"),
    end: date = Query(..., description="Last date, inclusive (YYYY-MM-DD)"),
    resolver: AvailabilityResolver = Depends(get_resolver)
):
    """
    Get the effective opening window for each date in a range
    """
    try:
        return await resolver.resolve_range(business_id, start, end)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except SchedulingError as e:
        raise to_http_exception(e)

@router.get("/{business_id}/availability/slots", response_model=List[TimeSlot])
async def get_available_slots(
    business_id: str,
    on: date = Query(..., alias="date", description="Date in YYYY-MM-DD format"),
    duration_minutes: int = Query(..., alias="durationMinutes", ge=1, le=24 * 60),
    resolver: AvailabilityResolver = Depends(get_resolver)
):
    """
    Get candidate booking slots for a date, each flagged available or not
    """
    try:
        return await resolver.get_available_slots(business_id, on, duration_minutes)
    except SchedulingError as e:
        raise to_http_exception(e)
