# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Commitment endpoints.
POST replaces the whole collection (the frontend submits its full list);
PUT records one member's answer for one gig.
"""

from fastapi import APIRouter, Depends

from gigcalendar.core.dependencies import get_calendar_service
from gigcalendar.schemas import CommitmentIn, CommitmentResponseRequest
from gigcalendar.services.calendar_service import CalendarService

router = APIRouter(prefix="/api", tags=["Commitments"])


@router.get("/commitments")
def list_commitments(service: CalendarService = Depends(get_calendar_service)):
    return service.list_records("commitments")


@router.post("/commitments")
def replace_commitments(
    payload: list[CommitmentIn],
    service: CalendarService = Depends(get_calendar_service),
):
    return service.replace_commitments([c.model_dump(by_alias=True) for c in payload])


@router.put("/commitments/{gig_id}/{user_id}")
def respond_to_gig(
    gig_id: str,
    user_id: str,
    payload: CommitmentResponseRequest,
    service: CalendarService = Depends(get_calendar_service),
):
    return service.upsert_commitment(gig_id, user_id, payload.status, payload.notes)
