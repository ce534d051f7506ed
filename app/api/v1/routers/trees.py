"""
API router for the tree tagging workflow.

Form posts answer with a 303 redirect to the next step; the browser scripts
use the JSON endpoints.
"""
import random
from typing import Annotated, List

from fastapi import APIRouter, File, Form, Path, Query, Request, UploadFile
from fastapi.responses import HTMLResponse

from app.api.dependencies import TreeServiceDep
from app.api.rate_limit import UPLOAD_LIMIT, limiter
from app.api.templating import redirect, templates
from app.api.v1.models.requests import GenerateIdRequest, ImageReference, SaveAIRequest
from app.api.v1.models.responses import ImageUrlResponse, MessageResponse, SuccessResponse
from app.config import settings
from app.domain.models import Classification, Location, TreeDetails


router = APIRouter(tags=["trees"])


# ============================================================================
# Creation
# ============================================================================

@router.get("/generate", response_class=HTMLResponse)
async def generate_page(request: Request):
    return templates.TemplateResponse(request, "generate.html", {})


@router.post(
    "/generate",
    summary="Create a tree or set its public ID",
    description="""
    Form post (`treeName`, optional `volunteerName`): create a new record and
    show its confirmation page.

    JSON post (`{"name", "uid"}`): set the public ID of an existing record to
    the slug of `name`.
    """,
)
async def generate(request: Request, tree_service: TreeServiceDep):
    if request.headers.get("content-type", "").startswith("application/json"):
        payload = GenerateIdRequest.model_validate(await request.json())
        await tree_service.rename_public_id(payload.uid, payload.name)
        return MessageResponse(message="Tree ID stored successfully")

    form = await request.form()
    record = await tree_service.create_tree(
        str(form.get("treeName") or ""),
        str(form.get("volunteerName") or ""),
    )
    return templates.TemplateResponse(request, "display.html", {"tree": record})


@router.get("/identify", response_class=HTMLResponse)
async def identify_page(request: Request):
    return templates.TemplateResponse(request, "identify.html", {})


@router.post("/identify", response_class=HTMLResponse)
@limiter.limit(UPLOAD_LIMIT)
async def identify(
    request: Request,
    tree_service: TreeServiceDep,
    image: Annotated[UploadFile, File(description="Photo of the tree")],
    volunteer_name: Annotated[str, Form(alias="volunteerName")] = "",
):
    """Upload a photo and list species suggestions for it."""
    record, suggestions = await tree_service.identify_tree(
        await image.read(),
        image.filename or "upload.jpg",
        volunteer_name,
    )
    return templates.TemplateResponse(
        request,
        "identify_results.html",
        {"tree": record, "suggestions": suggestions},
    )


@router.post("/getdetails", response_class=HTMLResponse)
async def get_details(
    request: Request,
    tree_service: TreeServiceDep,
    uid: Annotated[str, Form()],
    scientific_name: Annotated[str, Form(alias="scientificName")],
    common_names: Annotated[str, Form(alias="commonNames")] = "",
):
    """Adopt a suggestion and show the generated description for review."""
    record, text = await tree_service.select_suggestion(uid, scientific_name, common_names)
    return templates.TemplateResponse(
        request,
        "treeinfo.html",
        {"tree": record, "response_text": text},
    )


# ============================================================================
# Workflow steps
# ============================================================================

@router.get("/data_entry", response_class=HTMLResponse)
async def data_entry_page(
    request: Request,
    tree_service: TreeServiceDep,
    id: Annotated[str, Query(min_length=1)],
):
    record = await tree_service.get_tree(id)
    return templates.TemplateResponse(request, "data_entry.html", {"tree": record})


@router.post("/data_entry")
async def data_entry(
    tree_service: TreeServiceDep,
    id: Annotated[str, Query(min_length=1)],
    name: Annotated[str, Form()] = "",
    botanical: Annotated[str, Form(alias="botinical")] = "",
    description: Annotated[str, Form()] = "",
    category: Annotated[str, Form()] = "",
    native: Annotated[str, Form()] = "",
    medicinal_benefits: Annotated[str, Form(alias="medbenefits")] = "",
    environmental_benefits: Annotated[str, Form(alias="envibenefits")] = "",
):
    await tree_service.save_details(id, TreeDetails(
        name=name,
        botanical_name=botanical,
        description=description,
        category=category,
        native=native,
        medicinal_benefits=medicinal_benefits,
        environmental_benefits=environmental_benefits,
    ))
    return redirect("/classification", id=id)


@router.get("/classification", response_class=HTMLResponse)
async def classification_page(
    request: Request,
    tree_service: TreeServiceDep,
    id: Annotated[str, Query(min_length=1)],
):
    record = await tree_service.get_tree(id)
    return templates.TemplateResponse(request, "classification.html", {"tree": record})


@router.post("/classification")
async def classify(
    tree_service: TreeServiceDep,
    id: Annotated[str, Form(min_length=1)],
    kingdom: Annotated[str, Form()] = "",
    phylum: Annotated[str, Form()] = "",
    class_: Annotated[str, Form(alias="class")] = "",
    order: Annotated[str, Form()] = "",
    family: Annotated[str, Form()] = "",
    genus: Annotated[str, Form()] = "",
    species: Annotated[str, Form()] = "",
):
    await tree_service.classify(id, Classification(
        kingdom=kingdom,
        phylum=phylum,
        class_=class_,
        order=order,
        family=family,
        genus=genus,
        species=species,
    ))
    return redirect("/location", id=id)


@router.get("/location", response_class=HTMLResponse)
async def location_page(
    request: Request,
    tree_service: TreeServiceDep,
    id: Annotated[str, Query(min_length=1)],
):
    record = await tree_service.get_tree(id)
    return templates.TemplateResponse(request, "location.html", {"tree": record})


@router.post("/location")
async def locate(
    tree_service: TreeServiceDep,
    id: Annotated[str, Form(min_length=1)],
    coordinates: Annotated[str, Form()] = "",
    site: Annotated[str, Form()] = "",
    address: Annotated[str, Form()] = "",
    city: Annotated[str, Form()] = "",
):
    await tree_service.locate(id, Location(
        coordinates=coordinates,
        site=site,
        address=address,
        city=city,
    ))
    return redirect("/image", id=id)


@router.get("/complete", response_class=HTMLResponse)
async def complete_page(
    request: Request,
    tree_service: TreeServiceDep,
    id: Annotated[str, Query(min_length=1)],
):
    record = await tree_service.get_completed_tree(id)
    return templates.TemplateResponse(request, "complete.html", {"tree": record})


@router.post("/saveai/{uid}", response_model=MessageResponse)
async def save_ai(
    uid: Annotated[str, Path(description="Store key of the tree")],
    payload: SaveAIRequest,
    tree_service: TreeServiceDep,
) -> MessageResponse:
    """Parse a reviewed AI description into the record's fields."""
    await tree_service.save_ai_response(uid, payload.response_text, payload.location)
    return MessageResponse(message="Successfully saved")


# ============================================================================
# Images
# ============================================================================

@router.get("/image", response_class=HTMLResponse)
async def image_page(
    request: Request,
    tree_service: TreeServiceDep,
    id: Annotated[str, Query(min_length=1)],
):
    images = await tree_service.get_images(id)
    return templates.TemplateResponse(
        request,
        "images.html",
        {
            "tree_id": id,
            "count": len(images),
            "limit": settings.max_images_per_tree,
            "thumbnail": random.choice(images).url if images else "",
        },
    )


@router.post("/image")
@limiter.limit(UPLOAD_LIMIT)
async def upload_images(
    request: Request,
    tree_service: TreeServiceDep,
    id: Annotated[str, Query(min_length=1)],
    images: Annotated[List[UploadFile], File()],
    image_type: Annotated[str, Form(alias="imageType")] = "",
):
    files = [(upload.filename or "upload.jpg", await upload.read()) for upload in images]
    await tree_service.add_images(id, files, image_type)
    return redirect("/image", id=id)


@router.post("/append-image", response_model=ImageUrlResponse)
@limiter.limit(UPLOAD_LIMIT)
async def append_image(
    request: Request,
    tree_service: TreeServiceDep,
    uid: Annotated[str, Form(min_length=1)],
    image: Annotated[UploadFile, File()],
) -> ImageUrlResponse:
    """Add one whole-tree photo during the identify flow."""
    url = await tree_service.append_image(uid, image.filename or "upload.jpg", await image.read())
    return ImageUrlResponse(url=url)


@router.post("/delete-image", response_model=SuccessResponse, response_model_exclude_none=True)
async def delete_image(payload: ImageReference, tree_service: TreeServiceDep) -> SuccessResponse:
    await tree_service.remove_image(payload.uid, payload.url)
    return SuccessResponse(deleted=payload.url)


@router.post("/delete-tree", response_model=SuccessResponse, response_model_exclude_none=True)
async def delete_identified_image(
    payload: ImageReference,
    tree_service: TreeServiceDep,
) -> SuccessResponse:
    """Remove a photo from a record still in the identify flow."""
    await tree_service.remove_image(payload.uid, payload.url)
    return SuccessResponse()


# ============================================================================
# Publishing and deletion
# ============================================================================

@router.post("/publish")
async def publish(tree_service: TreeServiceDep, uid: Annotated[str, Form(min_length=1)]):
    await tree_service.publish(uid)
    return redirect("/home")


@router.post("/publishsave/{uid}", response_model=MessageResponse)
async def publish_save(
    uid: Annotated[str, Path(description="Store key of the tree")],
    tree_service: TreeServiceDep,
) -> MessageResponse:
    await tree_service.publish(uid)
    return MessageResponse(message=f"Tree {uid} marked as published")


@router.post("/delete-drafts")
async def delete_draft(
    tree_service: TreeServiceDep,
    uid: Annotated[str, Form(min_length=1)],
    email: Annotated[str, Form()] = "",
):
    await tree_service.delete_tree(uid)
    return redirect("/drafts", email=email)


@router.post("/delete")
async def delete_published(
    tree_service: TreeServiceDep,
    id: Annotated[str, Form(min_length=1, description="Public ID of the tree")],
    email: Annotated[str, Form()] = "",
):
    await tree_service.delete_by_public_id(id, volunteer=email or None)
    return redirect("/qr-display", email=email)


@router.get("/get-event", response_class=HTMLResponse)
async def get_event(
    request: Request,
    tree_service: TreeServiceDep,
    id: Annotated[str, Query(min_length=1)],
):
    record = await tree_service.get_tree(id)
    return templates.TemplateResponse(request, "fetch.html", {"tree": record})
