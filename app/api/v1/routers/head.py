"""
API router for volunteer heads: approval queue, permissions and roles.
"""
from typing import Annotated, Any, Dict, List

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from app.api.dependencies import VolunteerServiceDep
from app.api.templating import templates
from app.api.v1.models.requests import (
    ApproveRequest,
    RejectRequest,
    RoleUpdateRequest,
    VolunteerPermissionRequest,
)
from app.api.v1.models.responses import (
    MessageResponse,
    ModerationResponse,
    PendingVolunteer,
    VerifiedVolunteer,
)


router = APIRouter(tags=["volunteers"])


# ============================================================================
# Pages
# ============================================================================

@router.get("/head_dashboard", response_class=HTMLResponse)
async def head_dashboard(request: Request):
    return templates.TemplateResponse(request, "head_dashboard.html", {})


@router.get("/head/head_verified", response_class=HTMLResponse)
async def head_verified_page(request: Request):
    return templates.TemplateResponse(request, "head_verified.html", {})


@router.get("/volunteers", response_class=HTMLResponse)
async def volunteers_page(request: Request):
    return templates.TemplateResponse(request, "volunteers.html", {})


# ============================================================================
# Approval queue
# ============================================================================

@router.get("/head/pending", response_model=List[PendingVolunteer])
async def pending(volunteer_service: VolunteerServiceDep):
    """Accounts waiting for approval."""
    return await volunteer_service.pending()


@router.post("/head/approve", response_model=ModerationResponse)
async def approve(payload: ApproveRequest, volunteer_service: VolunteerServiceDep) -> ModerationResponse:
    await volunteer_service.approve(payload.email, payload.approved_by)
    return ModerationResponse(status="approved", email=payload.email)


@router.post("/head/reject", response_model=ModerationResponse)
async def reject(payload: RejectRequest, volunteer_service: VolunteerServiceDep) -> ModerationResponse:
    await volunteer_service.reject(payload.email)
    return ModerationResponse(status="rejected", email=payload.email)


@router.get("/head/verified_list", response_model=List[VerifiedVolunteer])
async def verified_list(volunteer_service: VolunteerServiceDep):
    return await volunteer_service.verified()


# ============================================================================
# Permissions and roles
# ============================================================================

@router.post("/update_volunteer", response_model=MessageResponse)
async def update_volunteer(
    payload: VolunteerPermissionRequest,
    volunteer_service: VolunteerServiceDep,
) -> MessageResponse:
    await volunteer_service.update_permission(
        payload.email, payload.start_time, payload.end_time, payload.permanent
    )
    return MessageResponse(message="Volunteer updated")


@router.get("/revoke_volunteer", response_model=MessageResponse)
async def revoke_volunteer(
    email: Annotated[str, Query(min_length=1)],
    volunteer_service: VolunteerServiceDep,
) -> MessageResponse:
    await volunteer_service.revoke(email)
    return MessageResponse(message="Permission revoked")


@router.get("/api/volunteers")
async def all_volunteers(volunteer_service: VolunteerServiceDep) -> Dict[str, Any]:
    """Every account in the users collection, keyed by user ID."""
    return await volunteer_service.all_users()


@router.post("/api/updateRole", response_class=PlainTextResponse)
async def update_role(
    uid: Annotated[str, Query(min_length=1)],
    payload: RoleUpdateRequest,
    volunteer_service: VolunteerServiceDep,
):
    await volunteer_service.update_role(uid, payload.role)
    return "Role updated successfully"
