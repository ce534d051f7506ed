"""
API router for volunteer sign-up, sign-in and account settings.
"""
from typing import Annotated

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from app.api.dependencies import VolunteerServiceDep
from app.api.templating import templates
from app.api.v1.models.requests import CredentialsRequest, PasswordChangeRequest
from app.api.v1.models.responses import MessageResponse
from app.services.application.volunteer_service import ADMIN_ROLE, HEAD_ROLE


router = APIRouter(tags=["accounts"])


@router.get("/signup", response_class=HTMLResponse)
async def signup_page(request: Request):
    return templates.TemplateResponse(request, "signup.html", {})


@router.post("/signup")
async def signup(
    volunteer_service: VolunteerServiceDep,
    email: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
    confirm_password: Annotated[str, Form()] = "",
):
    """Register a volunteer; the account stays unverified until a head approves it."""
    await volunteer_service.sign_up(email, password, confirm_password)
    return {"status": "success"}


@router.get("/signin", response_class=HTMLResponse)
async def signin_page(request: Request):
    return templates.TemplateResponse(request, "signin.html", {})


@router.post("/signin", response_class=PlainTextResponse)
async def signin(
    volunteer_service: VolunteerServiceDep,
    email: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
):
    await volunteer_service.sign_in(email, password)
    return "success"


@router.get("/admin", response_class=HTMLResponse)
async def admin_login_page(request: Request):
    return templates.TemplateResponse(request, "admin_login.html", {})


@router.post("/admin", response_class=PlainTextResponse)
async def admin_login(credentials: CredentialsRequest, volunteer_service: VolunteerServiceDep):
    await volunteer_service.sign_in_with_role(credentials.email, credentials.password, ADMIN_ROLE)
    return "success"


@router.get("/validator", response_class=HTMLResponse)
async def validator_login_page(request: Request):
    return templates.TemplateResponse(request, "validator_login.html", {})


@router.post("/validator", response_class=PlainTextResponse)
async def validator_login(credentials: CredentialsRequest, volunteer_service: VolunteerServiceDep):
    """Sign-in for volunteer heads, who approve new volunteers."""
    await volunteer_service.sign_in_with_role(credentials.email, credentials.password, HEAD_ROLE)
    return "success"


@router.get("/settings", response_class=HTMLResponse)
async def settings_page(request: Request):
    return templates.TemplateResponse(request, "settings.html", {})


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: PasswordChangeRequest,
    volunteer_service: VolunteerServiceDep,
) -> MessageResponse:
    await volunteer_service.change_password(
        payload.email, payload.current_password, payload.new_password
    )
    return MessageResponse(message="Password changed successfully")
