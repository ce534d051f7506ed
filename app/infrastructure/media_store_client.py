"""
Infrastructure layer: client for the remote media host.

Uploads and deletions are authenticated with a SHA-1 request signature:
the sorted ``key=value`` parameters joined by ``&`` followed by the API
secret.
"""
import hashlib
import logging
import re
import time
from pathlib import PurePosixPath
from typing import Any, Dict, Optional

import httpx

from app.config import settings
from app.infrastructure.api_constants import APIConstants, MediaEndpoints
from app.infrastructure.errors import ExternalServiceError, ServiceNotConfiguredError
from app.infrastructure.http_client import BaseAPIClient

logger = logging.getLogger(__name__)

_VERSION_SEGMENT = re.compile(r"^v\d+/")


class MediaStoreClient(BaseAPIClient):
    """Upload photos and destroy them by public ID."""

    service_name = "media store"

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url if base_url is not None else settings.media_api_url,
            timeout=APIConstants.UPLOAD_TIMEOUT,
            transport=transport,
        )
        self.cloud_name = cloud_name if cloud_name is not None else settings.media_cloud_name
        self.api_key = api_key if api_key is not None else settings.media_api_key
        self.api_secret = api_secret if api_secret is not None else settings.media_api_secret

    def _require_credentials(self):
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise ServiceNotConfiguredError(self.service_name)

    def sign(self, params: Dict[str, str]) -> str:
        """Signature for a set of request parameters."""
        to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{to_sign}{self.api_secret}".encode("utf-8")).hexdigest()

    def _signed_form(self, params: Dict[str, str]) -> Dict[str, str]:
        params = {**params, "timestamp": str(int(time.time()))}
        return {**params, "api_key": self.api_key, "signature": self.sign(params)}

    async def upload(
        self,
        data: bytes,
        filename: Optional[str] = None,
        folder: Optional[str] = None,
    ) -> str:
        """
        Upload an image.

        The media host picks the asset name, so two uploads never share an
        asset.

        Args:
            data: Raw image bytes
            filename: Original file name, sent with the multipart part
            folder: Folder prefix on the media host

        Returns:
            Secure URL of the stored image

        Raises:
            ExternalServiceError: If the upload fails or returns no URL
        """
        self._require_credentials()
        params: Dict[str, str] = {}
        if folder:
            params["folder"] = folder

        result = await self._make_request(
            "POST",
            MediaEndpoints.upload(self.cloud_name),
            data=self._signed_form(params),
            files={"file": (filename or "upload.jpg", data)},
        )
        url = result.get("secure_url") if isinstance(result, dict) else None
        if not url:
            raise ExternalServiceError(
                "media store returned no secure URL", service=self.service_name
            )
        logger.info(f"Uploaded image to {url}")
        return url

    async def destroy(self, public_id: str) -> Dict[str, Any]:
        """
        Delete an image.

        Args:
            public_id: Asset ID (see ``public_id_from_url``)

        Returns:
            Acknowledgement body, e.g. ``{"result": "ok"}``
        """
        self._require_credentials()
        result = await self._make_request(
            "POST",
            MediaEndpoints.destroy(self.cloud_name),
            data=self._signed_form({"public_id": public_id}),
        )
        logger.info(f"Destroyed image {public_id}: {result}")
        return result or {}

    @staticmethod
    def public_id_from_url(url: str) -> str:
        """
        Asset ID of a stored image URL.

        ``https://host/<cloud>/image/upload/v123/treeqr/abc/photo.jpg``
        becomes ``treeqr/abc/photo``.

        Returns:
            Public ID, or an empty string when the URL is not a media host URL
        """
        _, marker, rest = url.partition("/upload/")
        if not marker:
            return ""
        rest = _VERSION_SEGMENT.sub("", rest)
        path = PurePosixPath(rest)
        return str(path.with_suffix("")) if path.suffix else rest
