# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Gig CRUD, public listing and CSV import/export.
Thin HTTP layer — delegates ALL logic to CalendarService.
"""

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from gigcalendar.core.dependencies import get_calendar_service
from gigcalendar.core.errors import ValidationError
from gigcalendar.schemas import (
    GigCreateRequest,
    GigListResponse,
    GigResponse,
    GigUpdateRequest,
)
from gigcalendar.services import csv_service
from gigcalendar.services.calendar_service import CalendarService

router = APIRouter(prefix="/api", tags=["Gigs"])


@router.get("/gigs", response_model=GigListResponse)
def list_gigs(service: CalendarService = Depends(get_calendar_service)):
    """Full gigs collection, wrapped under ``gigs``."""
    return {"gigs": service.list_records("gigs")}


@router.get("/gigs/public", response_model=GigListResponse)
def list_public_gigs(service: CalendarService = Depends(get_calendar_service)):
    """Confirmed gigs for the public "upcoming shows" page."""
    return {"gigs": service.public_gigs()}


@router.get("/gigs/export")
def export_gigs(service: CalendarService = Depends(get_calendar_service)):
    content = csv_service.export_gigs(service.list_records("gigs"))
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="gigs.csv"'},
    )


@router.post("/gigs/import", status_code=201, response_model=GigListResponse)
async def import_gigs(
    request: Request,
    service: CalendarService = Depends(get_calendar_service),
):
    """Create gigs from an uploaded CSV document (raw ``text/csv`` body)."""
    try:
        content = (await request.body()).decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("Import body is not UTF-8", public_message="CSV must be UTF-8 encoded")
    rows = csv_service.parse_gigs(content)
    return {"gigs": await run_in_threadpool(service.import_gigs, rows)}


@router.post("/gigs", status_code=201, response_model=GigResponse)
def create_gig(
    payload: GigCreateRequest,
    service: CalendarService = Depends(get_calendar_service),
):
    return service.create("gigs", payload.model_dump(by_alias=True))


@router.put("/gigs/{gig_id}", response_model=GigResponse)
def update_gig(
    gig_id: str,
    payload: GigUpdateRequest,
    service: CalendarService = Depends(get_calendar_service),
):
    """Merge the submitted fields into an existing gig."""
    return service.update("gigs", gig_id, payload.changes())


@router.delete("/gigs/{gig_id}", status_code=204)
def delete_gig(
    gig_id: str,
    service: CalendarService = Depends(get_calendar_service),
):
    """Delete a gig and every commitment made for it."""
    service.delete("gigs", gig_id)
    return Response(status_code=204)
