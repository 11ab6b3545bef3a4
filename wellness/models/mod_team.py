from enum import Enum
from pydantic import BaseModel
from typing import Optional

class TeamRole(str, Enum):
    INSTRUCTOR = "instructor"
    ADMIN = "admin"
    TEAM_MEMBER = "team_member"

class Profile(BaseModel):
    id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Optional[str] = None
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email or ""
