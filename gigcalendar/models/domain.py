# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models — pure data structures, NO FastAPI dependency.

Records are persisted and broadcast as plain dicts using the camelCase wire
names (``assignedMembers``, ``gigId``, ``userId``); these models validate and
normalise them on the way in.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

GIG_STATUSES: tuple[str, ...] = ("proposed", "confirmed", "canceled")
COMMITMENT_STATUSES: tuple[str, ...] = ("pending", "confirmed", "declined")
MEMBER_ROLES: tuple[str, ...] = ("admin", "member")


class Gig(BaseModel):
    """A bookable performance."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., min_length=1, max_length=128)
    title: str = Field(..., min_length=1, max_length=255)
    date: str = Field(..., min_length=1, description="ISO date-time, e.g. 2024-04-15T20:00")
    venue: str = Field(..., min_length=1, max_length=255)
    address: str = ""
    description: str = ""
    payment: Optional[float] = Field(default=None, ge=0)
    requirements: Optional[str] = None
    status: str = Field(default="proposed", pattern="^(proposed|confirmed|canceled)$")
    assigned_members: list[str] = Field(default_factory=list, alias="assignedMembers")

    @field_validator("assigned_members", mode="before")
    @classmethod
    def dedupe_members(cls, v):
        if v is None:
            return []
        if not isinstance(v, (list, tuple)):
            raise ValueError("must be a list of member ids")
        seen: set[str] = set()
        ordered: list[str] = []
        for member_id in v:
            if member_id not in seen:
                seen.add(member_id)
                ordered.append(member_id)
        return ordered

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True)


class Member(BaseModel):
    """A band member. ``password`` holds the stored credential hash."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: Optional[str] = None
    password: str = Field(..., min_length=1)
    role: str = Field(default="member", pattern="^(admin|member)$")

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.strip().lower()

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True)


class Commitment(BaseModel):
    """A member's response to one gig, keyed by (gigId, userId)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    gig_id: str = Field(..., min_length=1, alias="gigId")
    user_id: str = Field(..., min_length=1, alias="userId")
    status: str = Field(default="pending", pattern="^(pending|confirmed|declined)$")
    notes: Optional[str] = None

    def to_record(self) -> dict:
        record = self.model_dump(by_alias=True)
        if record["notes"] is None:
            del record["notes"]
        return record
