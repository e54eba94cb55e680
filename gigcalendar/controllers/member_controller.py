# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Member CRUD endpoints.
Credential secrets never leave the service layer.
"""

from fastapi import APIRouter, Depends

from gigcalendar.core.dependencies import get_calendar_service
from gigcalendar.schemas import MemberCreateRequest, MemberResponse, MemberUpdateRequest
from gigcalendar.services.calendar_service import CalendarService

router = APIRouter(prefix="/api", tags=["Members"])


@router.get("/members", response_model=list[MemberResponse])
def list_members(service: CalendarService = Depends(get_calendar_service)):
    return service.list_records("members")


@router.post("/members", status_code=201, response_model=MemberResponse)
def create_member(
    payload: MemberCreateRequest,
    service: CalendarService = Depends(get_calendar_service),
):
    return service.create("members", payload.model_dump(by_alias=True))


@router.put("/members/{member_id}", response_model=MemberResponse)
def update_member(
    member_id: str,
    payload: MemberUpdateRequest,
    service: CalendarService = Depends(get_calendar_service),
):
    return service.update("members", member_id, payload.changes())


@router.delete("/members/{member_id}")
def delete_member(
    member_id: str,
    service: CalendarService = Depends(get_calendar_service),
):
    """Delete a member. The last admin cannot be removed."""
    service.delete("members", member_id)
    return {"message": "Member deleted successfully"}
