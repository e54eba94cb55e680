# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas — API contract definitions.
These are Pydantic models used ONLY at the controller (HTTP) boundary.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

GIG_STATUS_PATTERN = "^(proposed|confirmed|canceled)$"
COMMITMENT_STATUS_PATTERN = "^(pending|confirmed|declined)$"
ROLE_PATTERN = "^(admin|member)$"


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def changes(self) -> dict:
        """Only the fields the client actually sent, with wire names."""
        return self.model_dump(by_alias=True, exclude_unset=True)


# ── Gig Schemas ──

class GigCreateRequest(_Wire):
    id: Optional[str] = Field(default=None, max_length=128)
    title: str = Field(..., min_length=1, max_length=255)
    date: str = Field(..., min_length=1)
    venue: str = Field(..., min_length=1, max_length=255)
    address: str = ""
    description: str = ""
    payment: Optional[float] = Field(default=None, ge=0)
    requirements: Optional[str] = None
    status: str = Field(default="proposed", pattern=GIG_STATUS_PATTERN)
    assigned_members: list[str] = Field(default_factory=list, alias="assignedMembers")


class GigUpdateRequest(_Wire):
    """Partial update model for PUT /api/gigs/{id}."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    date: Optional[str] = Field(default=None, min_length=1)
    venue: Optional[str] = Field(default=None, min_length=1, max_length=255)
    address: Optional[str] = None
    description: Optional[str] = None
    payment: Optional[float] = Field(default=None, ge=0)
    requirements: Optional[str] = None
    status: Optional[str] = Field(default=None, pattern=GIG_STATUS_PATTERN)
    assigned_members: Optional[list[str]] = Field(default=None, alias="assignedMembers")


class GigResponse(_Wire):
    id: str
    title: str
    date: str
    venue: str
    address: str = ""
    description: str = ""
    payment: Optional[float] = None
    requirements: Optional[str] = None
    status: str
    assigned_members: list[str] = Field(default_factory=list, alias="assignedMembers")


class GigListResponse(BaseModel):
    gigs: list[dict]


# ── Member Schemas ──

class MemberCreateRequest(_Wire):
    id: Optional[str] = Field(default=None, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    phone: Optional[str] = None
    password: str = Field(..., min_length=1)
    role: str = Field(default="member", pattern=ROLE_PATTERN)


class MemberUpdateRequest(_Wire):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, min_length=3, max_length=255)
    phone: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = Field(default=None, pattern=ROLE_PATTERN)


class MemberResponse(_Wire):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    role: str


# ── Commitment Schemas ──

class CommitmentIn(_Wire):
    gig_id: str = Field(..., min_length=1, alias="gigId")
    user_id: str = Field(..., min_length=1, alias="userId")
    status: str = Field(default="pending", pattern=COMMITMENT_STATUS_PATTERN)
    notes: Optional[str] = None


class CommitmentResponseRequest(_Wire):
    """Body of PUT /api/commitments/{gigId}/{userId}."""
    status: str = Field(..., pattern=COMMITMENT_STATUS_PATTERN)
    notes: Optional[str] = Field(default=None, max_length=2000)


# ── Auth Schemas ──

class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    user: MemberResponse


# ── Errors ──

class ErrorResponse(BaseModel):
    error: str
    request_id: Optional[str] = None
