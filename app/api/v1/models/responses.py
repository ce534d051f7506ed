"""
API response models using Pydantic.
"""
from typing import Optional
from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    message: str


class SuccessResponse(BaseModel):
    """Acknowledgement of an image removal."""
    success: bool = True
    deleted: Optional[str] = Field(
        default=None,
        description="URL of the removed photo"
    )


class ImageUrlResponse(BaseModel):
    url: str = Field(description="Secure URL of the uploaded photo")


class TreeCountResponse(BaseModel):
    count: int = Field(description="Published trees tagged by the volunteer")


class QRInfoResponse(BaseModel):
    """QR code of a tree, ready to embed in a page."""
    tree_id: str = Field(alias="treeID", description="Public ID of the tree")
    qr_base64: str = Field(alias="qrBase64", description="Base64 encoded PNG")
    qr_url: str = Field(alias="qrURL", description="URL encoded in the QR code")
    uid: str

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "treeID": "neem-0427",
                "qrBase64": "iVBORw0KGgo...",
                "qrURL": "https://geo-tagging-user.onrender.com/3f1c2b8e-...",
                "uid": "3f1c2b8e-...",
            }
        }


class ModerationResponse(BaseModel):
    status: str = Field(description="approved or rejected")
    email: str


class PendingVolunteer(BaseModel):
    email: str
    timestamp: str = ""


class VerifiedVolunteer(BaseModel):
    email: str
    approved_by: str = ""
    approved_at: str = ""


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
