# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Authentication — login endpoint."""
from fastapi import APIRouter, Depends

from gigcalendar.core.dependencies import get_auth_service
from gigcalendar.schemas import LoginRequest, LoginResponse
from gigcalendar.services.auth_service import AuthService

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    return {"user": auth.login(body.email, body.password)}
