"""
Infrastructure layer: client for the realtime document database.

Documents are addressed by slash separated key paths and exposed over REST
as ``<root>/<path>.json``. There are no transactions and no atomic
multi-path writes; ``update`` is a shallow merge.
"""
import json
import logging
from typing import Any, Dict, Optional

import httpx

from app.config import settings
from app.infrastructure.api_constants import StorePaths
from app.infrastructure.errors import ExternalServiceError, ServiceNotConfiguredError
from app.infrastructure.http_client import BaseAPIClient

logger = logging.getLogger(__name__)


class DocumentStoreClient(BaseAPIClient):
    """
    Key-path addressed document store.

    Reads are retried on transport errors and 5xx responses; writes are sent
    once.
    """

    service_name = "document store"

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url if base_url is not None else settings.document_store_url,
            transport=transport,
        )
        self.auth_token = (
            auth_token if auth_token is not None else settings.document_store_auth_token
        )

    def _params(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        params = dict(extra or {})
        if self.auth_token:
            params["auth"] = self.auth_token
        return params

    def _require_configured(self):
        if not self.base_url:
            raise ServiceNotConfiguredError(self.service_name)

    async def get(self, path: str) -> Any:
        """
        Read the value at a path.

        Args:
            path: Key path, e.g. ``trees/<uid>/images``

        Returns:
            Decoded value, or None when nothing is stored there
        """
        self._require_configured()
        return await self._make_request(
            "GET",
            StorePaths.rest_url(path),
            params=self._params(),
            retry_request=True,
        )

    async def set(self, path: str, value: Any) -> None:
        """Overwrite the value at a path."""
        self._require_configured()
        await self._make_request("PUT", StorePaths.rest_url(path), params=self._params(), json=value)
        logger.debug(f"set {path}")

    async def update(self, path: str, partial: Dict[str, Any]) -> None:
        """
        Merge children into the value at a path.

        Keys may themselves be nested paths (``location/site``).
        """
        self._require_configured()
        await self._make_request(
            "PATCH", StorePaths.rest_url(path), params=self._params(), json=partial
        )
        logger.debug(f"update {path}: {sorted(partial)}")

    async def delete(self, path: str) -> None:
        """Remove the value at a path."""
        self._require_configured()
        await self._make_request("DELETE", StorePaths.rest_url(path), params=self._params())
        logger.info(f"deleted {path}")

    async def query_equal(self, path: str, child: str, value: Any) -> Dict[str, Any]:
        """
        Children of ``path`` whose ``child`` field equals ``value``.

        The server-side filter needs an ``.indexOn`` rule for ``child``. When
        the store rejects the query for lack of one, the whole collection is
        read and filtered here instead.

        Args:
            path: Collection path, e.g. ``trees``
            child: Field to filter on
            value: Value to match

        Returns:
            Mapping of key to document (empty when nothing matches)
        """
        self._require_configured()
        try:
            result = await self._make_request(
                "GET",
                StorePaths.rest_url(path),
                params=self._params({
                    "orderBy": json.dumps(child),
                    "equalTo": json.dumps(value),
                }),
                retry_request=True,
            )
        except ExternalServiceError as e:
            if e.upstream_status != 400:
                raise
            logger.warning(
                f"Store rejected indexed query on {path}/{child}; "
                f"add \".indexOn\": [\"{child}\"] to the rules. Filtering locally"
            )
            collection = await self.get(path) or {}
            return {
                key: doc for key, doc in collection.items()
                if isinstance(doc, dict) and doc.get(child) == value
            }
        return result or {}
