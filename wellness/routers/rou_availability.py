from fastapi import APIRouter, HTTPException, Depends, Query
from wellness.models.mod_auth import AuthUser
from wellness.models.mod_availability import WeeklyRule, AvailabilityException, BlockedDate
from wellness.schemas.sch_availability import (
    WeeklyScheduleUpdate,
    ExceptionsCreate,
    BlockedDatesCreate,
    InstructorAvailabilityResponse
)
from wellness.schemas.sch_calendar import TeamMemberResponse
from wellness.services.svc_availability import AvailabilityService
from wellness.services.svc_store import ContainerLookup
from wellness.validators.val_availability import AvailabilityValidator
from wellness.configuration.database import get_containers
from wellness.dependencies.dep_auth import get_current_team_member
from typing import List, Optional

router = APIRouter(
    prefix="/availabilities",
    tags=["Availabilities"],
    responses={404: {"description": "Not found"}},
)

@router.get("/team-members", response_model=List[TeamMemberResponse])
def get_team_members(containers: ContainerLookup = Depends(get_containers)):
    """
    List the team members who can hold availability.
    """
    members = AvailabilityService.get_team_members(containers)
    return [
        TeamMemberResponse(id=member.id, name=member.display_name, avatar_url=member.avatar_url)
        for member in members
    ]

@router.get("/instructors/{instructor_id}", response_model=InstructorAvailabilityResponse)
def get_instructor_availability(
    instructor_id: str,
    session_template_id: Optional[str] = Query(None, description="Only rules and exceptions for this service"),
    containers: ContainerLookup = Depends(get_containers),
    current_user: AuthUser = Depends(get_current_team_member)
):
    """
    Get the weekly rules, exceptions and blocked dates of an instructor.
    """
    AvailabilityValidator.validate_can_edit(current_user, instructor_id)
    return AvailabilityService.get_instructor_availability(containers, instructor_id, session_template_id)

@router.put("/instructors/{instructor_id}/schedule", response_model=List[WeeklyRule])
def replace_weekly_schedule(
    instructor_id: str,
    schedule: WeeklyScheduleUpdate,
    containers: ContainerLookup = Depends(get_containers),
    current_user: AuthUser = Depends(get_current_team_member)
):
    """
    Replace the weekly schedule of an instructor.

    - Deletes the existing rules (only those of the given service when one is set)
    - Rules for the same weekday and service cannot overlap
    - Instructors can only edit their own schedule, admins can edit any
    """
    AvailabilityValidator.validate_can_edit(current_user, instructor_id)
    return AvailabilityService.replace_weekly_schedule(containers, instructor_id, schedule)

@router.post("/instructors/{instructor_id}/exceptions", response_model=List[AvailabilityException], status_code=201)
def add_exceptions(
    instructor_id: str,
    payload: ExceptionsCreate,
    containers: ContainerLookup = Depends(get_containers),
    current_user: AuthUser = Depends(get_current_team_member)
):
    """
    Add date-specific exceptions.

    - is_available = true adds a one-off slot
    - is_available = false blocks weekly slots starting at the same time that day
    """
    AvailabilityValidator.validate_can_edit(current_user, instructor_id)
    return AvailabilityService.add_exceptions(containers, instructor_id, payload)

@router.delete("/exceptions/{exception_id}", status_code=204)
def delete_exception(
    exception_id: str,
    containers: ContainerLookup = Depends(get_containers),
    current_user: AuthUser = Depends(get_current_team_member)
):
    """
    Delete a previously added exception.

    Returns:
    - 204: Successfully deleted
    - 404: Exception not found
    """
    instructor_id = AvailabilityService.get_exception_owner(containers, exception_id)
    if not instructor_id:
        raise HTTPException(status_code=404, detail="Exception not found")

    AvailabilityValidator.validate_can_edit(current_user, instructor_id)

    deleted = AvailabilityService.delete_exception(containers, exception_id, instructor_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Exception not found")

@router.post("/instructors/{instructor_id}/blocked-dates", response_model=List[BlockedDate], status_code=201)
def block_dates(
    instructor_id: str,
    payload: BlockedDatesCreate,
    containers: ContainerLookup = Depends(get_containers),
    current_user: AuthUser = Depends(get_current_team_member)
):
    """
    Block whole days for an instructor. No slots are offered on a blocked day.
    """
    AvailabilityValidator.validate_can_edit(current_user, instructor_id)
    return AvailabilityService.block_dates(containers, instructor_id, payload)

@router.delete("/blocked-dates/{blocked_date_id}", status_code=204)
def unblock_date(
    blocked_date_id: str,
    containers: ContainerLookup = Depends(get_containers),
    current_user: AuthUser = Depends(get_current_team_member)
):
    """
    Remove a blocked date.
    """
    instructor_id = AvailabilityService.get_blocked_date_owner(containers, blocked_date_id)
    if not instructor_id:
        raise HTTPException(status_code=404, detail="Blocked date not found")

    AvailabilityValidator.validate_can_edit(current_user, instructor_id)

    deleted = AvailabilityService.unblock_date(containers, blocked_date_id, instructor_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Blocked date not found")
