from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import date, time
from enum import Enum
from wellness.models.mod_team import Profile

class ExceptionKind(str, Enum):
    ADDITION = "addition"
    BLOCK = "block"

class SlotSource(str, Enum):
    RULE = "rule"
    EXCEPTION = "exception"

class SessionTemplate(BaseModel):
    id: str
    name: str
    duration: Optional[int] = None      # minutes
    price: Optional[float] = None
    currency: Optional[str] = None
    category_id: Optional[str] = None

class WeeklyRule(BaseModel):
    id: Optional[str] = None
    instructor_id: str
    weekday: int = Field(ge=0, le=6)    # 0 = Sunday ... 6 = Saturday
    start_time: time
    end_time: time
    session_template_id: Optional[str] = None
    location_id: Optional[str] = None

class AvailabilityException(BaseModel):
    id: str
    instructor_id: str
    date: date
    start_time: time
    end_time: time
    session_template_id: Optional[str] = None
    location_id: Optional[str] = None
    is_available: bool = True

    @validator('is_available', pre=True)
    def missing_flag_means_available(cls, v):
        return True if v is None else v

    @property
    def kind(self) -> ExceptionKind:
        return ExceptionKind.ADDITION if self.is_available else ExceptionKind.BLOCK

class BlockedDate(BaseModel):
    id: Optional[str] = None
    instructor_id: str
    date: date
    reason: Optional[str] = None

class ResolvedSlot(BaseModel):
    date: date
    start: time
    end: time
    template_id: Optional[str] = None
    instructor_id: str
    location_id: Optional[str] = None
    source: SlotSource = SlotSource.RULE
    exception_id: Optional[str] = None

class RuleSet(BaseModel):
    """Everything the month resolver reads, already parsed and validated."""
    templates: List[SessionTemplate] = []
    weekly_rules: List[WeeklyRule] = []
    exceptions: List[AvailabilityException] = []
    blocked_dates: List[BlockedDate] = []
    team_members: List[Profile] = []
