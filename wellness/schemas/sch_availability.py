from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import date, time
from wellness.models.mod_availability import WeeklyRule, AvailabilityException, BlockedDate

class WeeklyRuleCreate(BaseModel):
    weekday: int
    start_time: time
    end_time: time
    session_template_id: Optional[str] = None
    location_id: Optional[str] = None

    @validator('weekday')
    def validate_weekday(cls, v):
        if not (0 <= v <= 6):
            raise ValueError('weekday must be between 0 and 6')
        return v

    @validator('end_time')
    def end_time_must_be_after_start_time(cls, v, values):
        if 'start_time' in values and v <= values['start_time']:
            raise ValueError('end_time must be after start_time')
        return v

class WeeklyScheduleUpdate(BaseModel):
    rules: List[WeeklyRuleCreate]
    session_template_id: Optional[str] = None

class ExceptionCreate(BaseModel):
    date: date
    start_time: time
    end_time: time
    session_template_id: Optional[str] = None
    location_id: Optional[str] = None
    is_available: bool = True

    @validator('end_time')
    def end_time_must_be_after_start_time(cls, v, values):
        if 'start_time' in values and v <= values['start_time']:
            raise ValueError('end_time must be after start_time')
        return v

class ExceptionsCreate(BaseModel):
    exceptions: List[ExceptionCreate] = Field(min_length=1)
    session_template_id: Optional[str] = None

class BlockedDateCreate(BaseModel):
    date: date
    reason: Optional[str] = None

class BlockedDatesCreate(BaseModel):
    dates: List[BlockedDateCreate] = Field(min_length=1)

class InstructorAvailabilityResponse(BaseModel):
    schedule: List[WeeklyRule]
    specific_dates: List[AvailabilityException] = Field(alias="specificDates")
    blocked_dates: List[BlockedDate] = Field(alias="blockedDates")

    class Config:
        populate_by_name = True
