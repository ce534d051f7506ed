"""
API router for user feedback reports.
"""
from typing import Annotated, Optional

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import PlainTextResponse

from app.api.dependencies import ReportServiceDep
from app.api.rate_limit import UPLOAD_LIMIT, limiter


router = APIRouter(tags=["reports"])


@router.post("/report", response_class=PlainTextResponse)
@limiter.limit(UPLOAD_LIMIT)
async def report(
    request: Request,
    report_service: ReportServiceDep,
    comment: Annotated[str, Form()] = "",
    clarity: Annotated[str, Form()] = "",
    helpful: Annotated[str, Form()] = "",
    unsafe: Annotated[str, Form()] = "",
    screenshot: Annotated[Optional[UploadFile], File()] = None,
):
    """Mail a feedback report, with an optional screenshot attached."""
    attachment = await screenshot.read() if screenshot is not None else None
    await report_service.send(
        comment,
        clarity,
        helpful,
        unsafe,
        attachment=attachment,
        filename=screenshot.filename if screenshot is not None else None,
        content_type=screenshot.content_type if screenshot is not None else None,
    )
    return "Report submitted successfully"
