# gpae/routes/instructors.py
"""Instructor ("moniteur") lookup routes."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..api.dependencies.services import get_instructor_availability_service
from ..schemas.user import UserResponse
from ..services.availability import InstructorAvailabilityService

router = APIRouter(prefix="/moniteurs", tags=["instructors"])


@router.get("/available", response_model=List[UserResponse])
def available_instructors(
    date: Optional[str] = Query(None, description="YYYY-MM-DD, with time"),
    time: Optional[str] = Query(None, description="HH:MM local time, with date"),
    jour: Optional[str] = Query(None, description="Weekday name or 0-6, with heure"),
    heure: Optional[str] = Query(None, description="HH:MM local time, with jour"),
    availability_service: InstructorAvailabilityService = Depends(get_instructor_availability_service),
) -> List[UserResponse]:
    """Instructors free at a concrete slot (date+time) or working at a weekly hour (jour+heure)."""
    instructors = availability_service.available_instructors(date=date, time=time, jour=jour, heure=heure)
    return [UserResponse.from_user(instructor) for instructor in instructors]
