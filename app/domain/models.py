"""
Domain models for tree records and volunteers.

These models represent the core domain entities and should be independent
of any infrastructure concerns (API clients, databases, etc.). Field aliases
carry the exact key names used by the stored documents.
"""
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field, StrictBool, StrictStr, ValidationError, field_validator

from app.domain.errors import RecordSchemaError


CLASSIFICATION_KEYS = ("kingdom", "phylum", "class", "order", "family", "genus", "species")


class ImageEntry(BaseModel):
    """One photo attached to a tree."""
    url: StrictStr
    image_type: StrictStr = Field(default="", alias="imageType")

    class Config:
        populate_by_name = True

    def to_store(self) -> Dict[str, str]:
        return {"url": self.url, "imageType": self.image_type}


def decode_images(raw: Any) -> List[ImageEntry]:
    """
    Decode a stored ``images`` value into an ordered list of entries.

    The store returns a dense array for untouched lists and a key-indexed
    mapping once entries have been removed individually. The array shape is
    tried first, then the mapping shape (whose order is not guaranteed).

    Args:
        raw: Value read from the store (``None`` when the field is absent)

    Returns:
        List of ImageEntry

    Raises:
        ValueError: If the value is neither an array nor a mapping of entries
    """
    if raw is None:
        return []
    if isinstance(raw, list):
        # Sparse arrays come back with null holes
        return [ImageEntry.model_validate(item) for item in raw if item is not None]
    if isinstance(raw, dict):
        return [ImageEntry.model_validate(item) for item in raw.values() if item is not None]
    raise ValueError(f"images must be an array or a mapping, got {type(raw).__name__}")


class Classification(BaseModel):
    """Taxonomic ranks of a tree."""
    kingdom: Optional[StrictStr] = None
    phylum: Optional[StrictStr] = None
    class_: Optional[StrictStr] = Field(default=None, alias="class")
    order: Optional[StrictStr] = None
    family: Optional[StrictStr] = None
    genus: Optional[StrictStr] = None
    species: Optional[StrictStr] = None

    class Config:
        populate_by_name = True

    @classmethod
    def from_mapping(cls, mapping: Dict[str, str]) -> "Classification":
        """
        Build from loosely keyed rank names such as ``"phylum (or division)"``.

        Unknown ranks are dropped.
        """
        ranks: Dict[str, str] = {}
        for key, value in mapping.items():
            rank = key.split("(")[0].strip().lower()
            if rank in CLASSIFICATION_KEYS and rank not in ranks:
                ranks[rank] = value
        return cls.model_validate(ranks)

    def to_store(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Location(BaseModel):
    """Where a tree stands."""
    coordinates: Optional[StrictStr] = Field(
        default=None,
        description="'lat,lng' as a single delimited string"
    )
    site: Optional[StrictStr] = None
    address: Optional[StrictStr] = None
    city: Optional[StrictStr] = None

    def lat_lng(self) -> Optional[Tuple[float, float]]:
        """Parse the coordinates string, or None when absent or malformed."""
        if not self.coordinates:
            return None
        parts = self.coordinates.split(",")
        if len(parts) != 2:
            return None
        try:
            return float(parts[0].strip()), float(parts[1].strip())
        except ValueError:
            return None

    def to_store(self) -> Dict[str, str]:
        return self.model_dump(exclude_none=True)


class TreeRecord(BaseModel):
    """
    A scanned or tagged tree.

    ``key`` is the store's own identifier; ``public_id`` is the human-facing
    slug assigned on publish. Text fields are filled in over several workflow
    steps, so their absence is not an error; a field of the wrong type is.
    """
    key: str = Field(default="", exclude=True)
    public_id: Optional[StrictStr] = Field(default=None, alias="ID")
    uid: Optional[StrictStr] = None
    name: Optional[StrictStr] = Field(default=None, alias="Name")
    botanical_name: Optional[StrictStr] = Field(default=None, alias="botanical")
    category: Optional[StrictStr] = None
    description: Optional[StrictStr] = None
    medicinal_benefits: Optional[StrictStr] = Field(default=None, alias="medicinalBenefits")
    environmental_benefits: Optional[StrictStr] = Field(default=None, alias="environmentalBenefits")
    native: Optional[StrictStr] = None
    classification: Classification = Field(default_factory=Classification)
    location: Location = Field(default_factory=Location)
    images: List[ImageEntry] = Field(default_factory=list)
    published: StrictBool = Field(default=False, alias="Published")
    qr: StrictBool = Field(default=False, alias="QR")
    saved: StrictBool = Field(default=False, alias="Saved")
    volunteer_name: Optional[StrictStr] = Field(default=None, alias="volunteerName")
    timestamp: Optional[StrictStr] = None
    last_updated: Optional[StrictStr] = Field(default=None, alias="lastUpdated")

    class Config:
        populate_by_name = True

    @field_validator("images", mode="before")
    @classmethod
    def _decode_images(cls, value: Any) -> List[ImageEntry]:
        return decode_images(value)

    @field_validator("classification", "location", mode="before")
    @classmethod
    def _absent_sub_map(cls, value: Any) -> Any:
        return {} if value is None else value

    @classmethod
    def from_store(cls, key: str, raw: Any) -> "TreeRecord":
        """
        Validate a stored document into a typed record.

        Args:
            key: Store key of the document
            raw: Decoded JSON document

        Returns:
            TreeRecord with ``key`` set

        Raises:
            RecordSchemaError: If the document is not an object or a field
                has the wrong type
        """
        if not isinstance(raw, dict):
            raise RecordSchemaError(key, "<document>", "expected an object")
        try:
            record = cls.model_validate(raw)
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"]) or "<document>"
            raise RecordSchemaError(key, field, error["msg"]) from e
        record.key = key
        return record

    @property
    def first_image_url(self) -> str:
        return self.images[0].url if self.images else ""


class TreeSuggestion(BaseModel):
    """Species candidate returned by the plant identification service."""
    scientific_name: str
    common_names: List[str] = Field(default_factory=list)
    score: float = Field(description="Confidence in percent")


class VolunteerAccount(BaseModel):
    """Entry under the users collection."""
    uid: str = ""
    email: Optional[StrictStr] = None
    verified: Optional[StrictBool] = None
    role: Optional[StrictStr] = None
    timestamp: Optional[StrictStr] = None
    approved_by: Optional[StrictStr] = Field(default=None, alias="approvedBy")
    approved_at: Optional[StrictStr] = Field(default=None, alias="approvedAt")

    class Config:
        populate_by_name = True


class TreeDetails(BaseModel):
    """Free-text fields entered by a volunteer or an admin."""
    name: Optional[str] = Field(default=None, alias="Name")
    botanical_name: Optional[str] = Field(default=None, alias="botanical")
    description: Optional[str] = None
    category: Optional[str] = None
    native: Optional[str] = None
    medicinal_benefits: Optional[str] = Field(default=None, alias="medicinalBenefits")
    environmental_benefits: Optional[str] = Field(default=None, alias="environmentalBenefits")

    class Config:
        populate_by_name = True

    def to_store(self) -> Dict[str, str]:
        """Only the fields that were supplied."""
        return self.model_dump(by_alias=True, exclude_none=True)
