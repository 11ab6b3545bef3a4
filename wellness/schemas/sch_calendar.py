from pydantic import BaseModel, Field
from typing import List, Optional
from wellness.models.mod_availability import SlotSource

class MonthCalendarRequest(BaseModel):
    year: int
    month: int

class SlotResponse(BaseModel):
    date: str                           # YYYY-MM-DD
    start: str                          # HH:MM:SS
    end: str                            # HH:MM:SS
    template_id: Optional[str] = None
    instructor_id: str
    location_id: Optional[str] = None
    source: SlotSource
    exception_id: Optional[str] = None

class TeamMemberResponse(BaseModel):
    id: str
    name: str
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")

    class Config:
        populate_by_name = True

class SessionTemplateResponse(BaseModel):
    id: str
    name: str
    duration: Optional[int] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    category_id: Optional[str] = Field(default=None, alias="categoryId")

    class Config:
        populate_by_name = True

class MonthCalendarResponse(BaseModel):
    slots: List[SlotResponse]
    team_members: List[TeamMemberResponse] = Field(alias="teamMembers")
    session_templates: List[SessionTemplateResponse] = Field(default=[], alias="sessionTemplates")

    class Config:
        populate_by_name = True
