"""
API router for QR codes and printable labels.
"""
import base64
import re
from typing import Annotated, Optional
from urllib.parse import quote

from fastapi import APIRouter, Path, Query
from fastapi.responses import Response

from app.api.dependencies import TreeServiceDep
from app.api.v1.models.responses import QRInfoResponse
from app.services.domain.qr_render import (
    render_labelled_qr_png,
    render_qr_pdf,
    render_qr_png,
    viewer_url,
)


router = APIRouter(tags=["labels"])

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _pdf_response(content: bytes, filename: str) -> Response:
    # Header values must be latin-1; the UTF-8 name travels in filename*.
    fallback = _UNSAFE_FILENAME_CHARS.sub("_", filename)
    disposition = f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": disposition},
    )


@router.get(
    "/qr",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}, "description": "QR code PNG"}},
)
async def qr_code(id: Annotated[str, Query(min_length=1, description="Store key of the tree")]):
    return Response(content=render_qr_png(viewer_url(id)), media_type="image/png")


@router.get("/download-pdf", response_class=Response)
async def download_pdf(
    name: Annotated[str, Query(min_length=1)],
    uid: Annotated[Optional[str], Query()] = None,
    id: Annotated[Optional[str], Query(description="Legacy name of uid")] = None,
):
    """Printable label for a tree; ``uid`` and ``id`` are interchangeable."""
    key = uid or id
    if not key:
        raise ValueError("Missing uid or name")
    return _pdf_response(render_qr_pdf(name, viewer_url(key)), f"{name}_{key}.pdf")


@router.get("/download-pdf-tree", response_class=Response)
async def download_pdf_tree(
    id: Annotated[str, Query(min_length=1)],
    name: Annotated[str, Query(min_length=1)],
):
    return _pdf_response(render_qr_pdf(name, viewer_url(id)), f"{name}_{id}.pdf")


@router.get("/generate-direct/{uid}", response_model=QRInfoResponse)
async def generate_direct(
    uid: Annotated[str, Path(description="Store key of the tree")],
    tree_service: TreeServiceDep,
) -> QRInfoResponse:
    """Make sure a tree has a public ID and return its QR code inline."""
    record = await tree_service.assign_public_id(uid)
    url = viewer_url(uid)
    png = render_labelled_qr_png(record.name or record.botanical_name or "", url)
    return QRInfoResponse(
        tree_id=record.public_id,
        qr_base64=base64.b64encode(png).decode("ascii"),
        qr_url=url,
        uid=uid,
    )
