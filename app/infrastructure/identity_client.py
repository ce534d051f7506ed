"""
Infrastructure layer: identity provider client (email/password accounts).
"""
import logging
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from app.config import settings
from app.domain.errors import AuthenticationError
from app.infrastructure.api_constants import IdentityEndpoints
from app.infrastructure.errors import ExternalServiceError, ServiceNotConfiguredError
from app.infrastructure.http_client import BaseAPIClient

logger = logging.getLogger(__name__)


class IdentitySession(BaseModel):
    """Account returned by sign-up and sign-in."""
    uid: str = Field(alias="localId")
    email: str = ""
    id_token: str = Field(default="", alias="idToken")

    class Config:
        populate_by_name = True


class IdentityClient(BaseAPIClient):
    """Create accounts, check passwords and change them."""

    service_name = "identity provider"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url if base_url is not None else settings.identity_api_url,
            transport=transport,
        )
        self.api_key = api_key if api_key is not None else settings.identity_api_key

    async def _post(self, endpoint: str, payload: dict) -> dict:
        if not self.api_key:
            raise ServiceNotConfiguredError(self.service_name)
        data = await self._make_request(
            "POST",
            endpoint,
            params={"key": self.api_key},
            json={**payload, "returnSecureToken": True},
        )
        return data or {}

    async def sign_up(self, email: str, password: str) -> IdentitySession:
        """
        Create an email/password account.

        Raises:
            ValueError: If the provider rejects the account (email taken,
                weak password...)
        """
        try:
            data = await self._post(
                IdentityEndpoints.SIGN_UP, {"email": email, "password": password}
            )
        except ExternalServiceError as e:
            if e.upstream_status is not None and e.upstream_status < 500:
                raise ValueError("Sign up was rejected by the identity provider") from e
            raise
        session = IdentitySession.model_validate(data)
        logger.info(f"Created account {session.uid}")
        return session

    async def sign_in(self, email: str, password: str) -> IdentitySession:
        """
        Check an email/password pair.

        Raises:
            AuthenticationError: If the credentials are wrong
        """
        try:
            data = await self._post(
                IdentityEndpoints.SIGN_IN, {"email": email, "password": password}
            )
        except ExternalServiceError as e:
            if e.upstream_status is not None and e.upstream_status < 500:
                raise AuthenticationError("Invalid email or password") from e
            raise
        return IdentitySession.model_validate(data)

    async def update_password(self, id_token: str, new_password: str) -> None:
        """Set a new password for the account behind ``id_token``."""
        await self._post(
            IdentityEndpoints.UPDATE, {"idToken": id_token, "password": new_password}
        )
