"""
API router for the read-only listing pages.
"""
from typing import Annotated

from fastapi import APIRouter, Path, Query, Request
from fastapi.responses import HTMLResponse

from app.api.dependencies import ListingServiceDep
from app.api.templating import templates
from app.api.v1.models.responses import TreeCountResponse


router = APIRouter(tags=["listings"])

EmailQuery = Annotated[str, Query(min_length=1, description="Volunteer email")]
CategoryQuery = Annotated[str, Query(min_length=1, description="Tree category")]


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def opening(request: Request):
    return templates.TemplateResponse(request, "opening.html", {})


@router.get("/home", response_class=HTMLResponse)
async def home(request: Request):
    return templates.TemplateResponse(request, "home.html", {})


@router.get("/api/treecount", response_model=TreeCountResponse)
async def tree_count(email: EmailQuery, listing_service: ListingServiceDep) -> TreeCountResponse:
    """Number of published trees tagged by a volunteer."""
    return TreeCountResponse(count=await listing_service.published_count(email))


@router.get("/drafts", response_class=HTMLResponse)
async def drafts(request: Request, email: EmailQuery, listing_service: ListingServiceDep):
    trees = await listing_service.drafts(email)
    return templates.TemplateResponse(request, "drafts.html", {"trees": trees, "email": email})


@router.get("/qr-display", response_class=HTMLResponse)
async def qr_display(request: Request, email: EmailQuery, listing_service: ListingServiceDep):
    trees = await listing_service.qr_listing(email)
    return templates.TemplateResponse(request, "qr_display.html", {"trees": trees, "email": email})


@router.get("/library", response_class=HTMLResponse)
async def library(request: Request, email: EmailQuery, listing_service: ListingServiceDep):
    trees = await listing_service.library(email)
    return templates.TemplateResponse(request, "library.html", {"trees": trees, "email": email})


async def _render_grouped(
    request: Request,
    listing_service,
    category: str,
    group_by: str,
):
    trees = await listing_service.by_category(category, group_by)
    return templates.TemplateResponse(
        request,
        "list.html",
        {"category": category, "trees": trees, "view_type": group_by},
    )


@router.get("/list", response_class=HTMLResponse)
async def list_families(request: Request, category: CategoryQuery, listing_service: ListingServiceDep):
    return await _render_grouped(request, listing_service, category, "family")


@router.get("/list/{category}", response_class=HTMLResponse)
async def list_category_families(
    request: Request,
    category: Annotated[str, Path(description="Tree category")],
    listing_service: ListingServiceDep,
):
    """One published tree per family within a category."""
    return await _render_grouped(request, listing_service, category, "family")


@router.get("/genera", response_class=HTMLResponse)
async def list_genera(request: Request, category: CategoryQuery, listing_service: ListingServiceDep):
    return await _render_grouped(request, listing_service, category, "genus")


@router.get("/species", response_class=HTMLResponse)
async def list_species(request: Request, category: CategoryQuery, listing_service: ListingServiceDep):
    return await _render_grouped(request, listing_service, category, "species")
