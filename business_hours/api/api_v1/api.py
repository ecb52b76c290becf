from fastapi import APIRouter
from business_hours.api.api_v1.endpoints import schedule, exceptions, availability

router = APIRouter()

# Include all routers
router.include_router(schedule.router, prefix="/businesses", tags=["Schedule"])
router.include_router(exceptions.router, prefix="/businesses", tags=["Availability Exceptions"])
router.include_router(availability.router, prefix="/businesses", tags=["Availability"])
