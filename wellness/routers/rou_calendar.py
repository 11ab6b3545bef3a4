from fastapi import APIRouter, Depends
from wellness.schemas.sch_calendar import MonthCalendarRequest, MonthCalendarResponse
from wellness.services.svc_calendar import CalendarService
from wellness.services.svc_store import ContainerLookup
from wellness.configuration.database import get_containers

router = APIRouter(
    prefix="/calendar",
    tags=["Calendar"],
    responses={503: {"description": "Availability store unavailable"}},
)

@router.post("/month", response_model=MonthCalendarResponse)
def get_month_calendar(
    request: MonthCalendarRequest,
    containers: ContainerLookup = Depends(get_containers)
):
    """
    Resolve the bookable slots of one calendar month.

    - Weekly rules apply on their weekday (0 = Sunday ... 6 = Saturday)
    - Block exceptions remove weekly slots starting at the same minute
    - Addition exceptions always add a slot
    - A blocked date removes every slot of that instructor on that day
    - Slots are not sorted within a day; clients sort by start time
    """
    return CalendarService.get_month_calendar(containers, request.year, request.month)
