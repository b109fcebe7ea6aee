from enum import Enum
from typing import Optional
from pydantic import BaseModel

class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"
    MEMBER = "member"
    GUEST = "guest"

# Roles allowed to update/delete customers, leads and deals
PRIVILEGED_ROLES: tuple["Role", ...] = (Role.ADMIN, Role.MANAGER)

# Role used when identity metadata carries none
DEFAULT_ROLE = Role.GUEST

class LeadSource(str, Enum):
    HOMEPAGE = "homepage"
    WEDIT = "wedit"
    KAKAO = "kakao"
    NAVER_TALK = "naver_talk"
    NAVER_RESERVE = "naver_reserve"
    POWERLINK = "powerlink"
    INTRO = "intro"
    CAFE = "cafe"
    MANUAL = "manual"
    INSTAGRAM = "instagram"
    REFERRAL = "referral"
    ETC = "etc"

class AppointmentKind(str, Enum):
    VISIT = "visit"
    PHONE = "phone"
    CHECK = "check"

class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    DONE = "done"
    CANCELED = "canceled"

class DealStage(str, Enum):
    LEAD = "lead"
    CONSULTING = "consulting"
    PROPOSAL = "proposal"
    SIGNED = "signed"
    LOST = "lost"

class ErrorBody(BaseModel):
    code: str
    message: str
    status: int

class ErrorResponse(BaseModel):
    error: ErrorBody

class CursorPage(BaseModel):
    next_cursor: Optional[str] = None
