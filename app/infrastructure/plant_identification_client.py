"""
Infrastructure layer: photo-based plant identification client.
"""
import logging
from typing import List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from app.config import settings
from app.domain.models import TreeSuggestion
from app.infrastructure.api_constants import AIEndpoints
from app.infrastructure.errors import ExternalServiceError, ServiceNotConfiguredError
from app.infrastructure.http_client import BaseAPIClient

logger = logging.getLogger(__name__)


class IdentifiedSpecies(BaseModel):
    scientific_name: str = Field(alias="scientificNameWithoutAuthor")
    common_names: List[str] = Field(default_factory=list, alias="commonNames")


class IdentificationResult(BaseModel):
    score: float
    species: IdentifiedSpecies


class IdentificationResponse(BaseModel):
    """Response from the identify endpoint."""
    results: List[IdentificationResult] = Field(default_factory=list)


class PlantIdentificationClient(BaseAPIClient):
    """Ask which species a photo shows."""

    service_name = "plant identification"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url if base_url is not None else settings.plant_id_api_url,
            transport=transport,
        )
        self.api_key = api_key if api_key is not None else settings.plant_id_api_key

    async def identify(
        self,
        image: bytes,
        filename: str = "upload.jpg",
        organ: Optional[str] = None,
    ) -> List[TreeSuggestion]:
        """
        Identify the plant in a photo.

        Args:
            image: Raw image bytes
            filename: Name sent with the multipart part
            organ: Organ hint (leaf, flower, bark...)

        Returns:
            Suggestions in the service's ranking order, scores in percent;
            empty when nothing was recognised
        """
        if not self.api_key:
            raise ServiceNotConfiguredError(self.service_name)

        try:
            data = await self._make_request(
                "POST",
                AIEndpoints.IDENTIFY_ALL,
                params={"api-key": self.api_key.strip()},
                files={"images": (filename, image)},
                data={"organs": organ or settings.plant_id_organ},
            )
        except ExternalServiceError as e:
            # 404 is the service's answer for "species not found"
            if e.upstream_status == 404:
                return []
            raise
        try:
            response = IdentificationResponse.model_validate(data or {})
        except ValidationError as e:
            logger.error(f"Unexpected identification body: {data}")
            raise ExternalServiceError(
                "plant identification returned an unexpected body", service=self.service_name
            ) from e

        return [
            TreeSuggestion(
                scientific_name=result.species.scientific_name,
                common_names=result.species.common_names,
                score=result.score * 100,
            )
            for result in response.results
        ]
