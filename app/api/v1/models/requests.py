"""
API request models for the JSON endpoints.

Field aliases keep the key names the browser scripts send.
"""
from typing import Optional
from pydantic import BaseModel, Field

from app.domain.models import Location


class ImageReference(BaseModel):
    """Identifies one photo of one tree."""
    uid: str = Field(min_length=1, description="Store key of the tree")
    url: str = Field(min_length=1, description="Exact URL of the photo")


class SaveAIRequest(BaseModel):
    """Reviewed AI description plus the location captured in the browser."""
    response_text: str = Field(alias="responseText")
    location: Optional[Location] = None

    class Config:
        populate_by_name = True


class GenerateIdRequest(BaseModel):
    """JSON mode of ``/generate``: derive the public ID of an existing tree."""
    name: str = Field(description="Tree name to slugify")
    uid: str = Field(min_length=1, description="Store key of the tree")


class CredentialsRequest(BaseModel):
    email: str
    password: str


class PasswordChangeRequest(BaseModel):
    email: str
    current_password: str = Field(alias="currentPassword")
    new_password: str = Field(alias="newPassword")

    class Config:
        populate_by_name = True


class ApproveRequest(BaseModel):
    email: str
    approved_by: str = Field(default="", alias="approvedBy")

    class Config:
        populate_by_name = True


class RejectRequest(BaseModel):
    email: str


class VolunteerPermissionRequest(BaseModel):
    """Time window during which a volunteer may tag trees."""
    email: str
    start_time: str = ""
    end_time: str = ""
    permanent: bool = False


class RoleUpdateRequest(BaseModel):
    role: Optional[str] = None
