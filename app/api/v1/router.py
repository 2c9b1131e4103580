from fastapi import APIRouter
from app.api.v1.endpoints import availability, bookings, schedules

api_router = APIRouter()
api_router.include_router(availability.router, prefix="/availability", tags=["availability"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
api_router.include_router(schedules.router, tags=["schedules"])
