"""
API router for the admin dashboard.
"""
from typing import Annotated

from fastapi import APIRouter, Form, Path, Request
from fastapi.responses import HTMLResponse

from app.api.dependencies import ListingServiceDep, TreeServiceDep
from app.api.templating import redirect, templates
from app.domain.models import TreeDetails


router = APIRouter(prefix="/admin", tags=["admin"])

TreeKey = Annotated[str, Path(description="Store key of the tree")]


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(request: Request, listing_service: ListingServiceDep):
    """Counts of trees, volunteers and sites, plus a map of every tree."""
    data = await listing_service.dashboard()
    return templates.TemplateResponse(request, "admin_dashboard.html", {"data": data})


@router.get("/edit/{id}", response_class=HTMLResponse)
async def edit_page(request: Request, id: TreeKey, tree_service: TreeServiceDep):
    record = await tree_service.get_tree(id)
    return templates.TemplateResponse(request, "edit_tree.html", {"tree": record})


@router.post("/edit/{id}")
async def edit(
    id: TreeKey,
    tree_service: TreeServiceDep,
    name: Annotated[str, Form()] = "",
    botanical: Annotated[str, Form()] = "",
    category: Annotated[str, Form()] = "",
    description: Annotated[str, Form()] = "",
    medicinal: Annotated[str, Form()] = "",
    site: Annotated[str, Form()] = "",
):
    await tree_service.admin_edit(
        id,
        TreeDetails(
            name=name,
            botanical_name=botanical,
            category=category,
            description=description,
            medicinal_benefits=medicinal,
        ),
        site=site,
    )
    return redirect("/admin/dashboard")


@router.api_route("/delete/{id}", methods=["GET", "POST"])
async def delete(id: TreeKey, tree_service: TreeServiceDep):
    await tree_service.delete_tree(id)
    return redirect("/admin/dashboard")
