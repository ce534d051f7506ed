"""
Application service: volunteer accounts, approval and roles.

Accounts live with the identity provider; the ``users`` collection holds the
approval state and role of each account, keyed by the provider's user ID.
Time-boxed permissions live in the separate ``volunteers`` collection.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from app.domain.errors import AuthorizationError, VolunteerNotFoundError
from app.domain.models import VolunteerAccount
from app.infrastructure.api_constants import StorePaths
from app.infrastructure.document_store_client import DocumentStoreClient
from app.infrastructure.identity_client import IdentityClient

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"
HEAD_ROLE = "head"


def _timestamp() -> str:
    return datetime.now().astimezone().isoformat(timespec="seconds")


class VolunteerService:
    """Sign-up, sign-in and moderation of volunteer accounts."""

    def __init__(self, identity: IdentityClient, store: DocumentStoreClient):
        self.identity = identity
        self.store = store

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def sign_up(self, email: str, password: str, confirm_password: str) -> VolunteerAccount:
        """
        Register a volunteer; the account waits for a head's approval.

        Raises:
            ValueError: If a field is empty or the passwords differ
        """
        if not (email and password and confirm_password):
            raise ValueError("All fields are required")
        if password != confirm_password:
            raise ValueError("Passwords do not match")

        session = await self.identity.sign_up(email, password)
        account = VolunteerAccount(
            uid=session.uid,
            email=session.email or email,
            verified=False,
            timestamp=_timestamp(),
        )
        await self.store.set(
            StorePaths.user(session.uid),
            account.model_dump(by_alias=True, exclude_none=True),
        )
        logger.info(f"Registered volunteer {account.email}, awaiting approval")
        return account

    async def _load_account(self, uid: str) -> VolunteerAccount:
        raw = await self.store.get(StorePaths.user(uid))
        if not isinstance(raw, dict):
            raise AuthorizationError("Account not found")
        try:
            account = VolunteerAccount.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Malformed user record {uid}: {e}")
            raise AuthorizationError("Account not verified") from e
        account.uid = uid
        return account

    async def sign_in(self, email: str, password: str) -> VolunteerAccount:
        """
        Authenticate a volunteer.

        Raises:
            AuthenticationError: If the credentials are wrong
            AuthorizationError: If the account is not approved yet
        """
        if not (email and password):
            raise ValueError("Email and password required")
        session = await self.identity.sign_in(email, password)
        account = await self._load_account(session.uid)
        if account.verified is not True:
            raise AuthorizationError("Account not verified")
        return account

    async def sign_in_with_role(self, email: str, password: str, role: str) -> VolunteerAccount:
        """
        Authenticate an account that must hold ``role``.

        Raises:
            AuthorizationError: If the account has another role
        """
        if not (email and password):
            raise ValueError("Email and password required")
        session = await self.identity.sign_in(email, password)
        account = await self._load_account(session.uid)
        if account.role != role:
            raise AuthorizationError("Unauthorized role")
        return account

    async def change_password(self, email: str, current_password: str, new_password: str) -> None:
        """Re-authenticate with the current password, then set the new one."""
        if not new_password:
            raise ValueError("New password is required")
        session = await self.identity.sign_in(email, current_password)
        await self.identity.update_password(session.id_token, new_password)
        logger.info(f"Password changed for {email}")

    # ------------------------------------------------------------------
    # Approval
    # ------------------------------------------------------------------

    async def _users(self) -> Dict[str, Dict[str, Any]]:
        raw = await self.store.get(StorePaths.USERS)
        if not isinstance(raw, dict):
            return {}
        return {uid: user for uid, user in raw.items() if isinstance(user, dict)}

    async def _find_user(self, email: str) -> Tuple[str, Dict[str, Any]]:
        for uid, user in (await self._users()).items():
            if user.get("email") == email:
                return uid, user
        raise VolunteerNotFoundError(email)

    async def pending(self) -> List[Dict[str, str]]:
        """Accounts explicitly marked unverified."""
        return [
            {"email": user.get("email") or "", "timestamp": user.get("timestamp") or ""}
            for user in (await self._users()).values()
            if user.get("verified") is False
        ]

    async def approve(self, email: str, approved_by: str) -> None:
        uid, _ = await self._find_user(email)
        await self.store.update(StorePaths.user(uid), {
            "verified": True,
            "approvedBy": approved_by,
            "approvedAt": _timestamp(),
        })
        logger.info(f"{approved_by} approved volunteer {email}")

    async def reject(self, email: str) -> None:
        uid, _ = await self._find_user(email)
        await self.store.delete(StorePaths.user(uid))
        logger.info(f"Rejected volunteer {email}")

    async def verified(self) -> List[Dict[str, str]]:
        return [
            {
                "email": user.get("email") or "",
                "approved_by": user.get("approvedBy") or "",
                "approved_at": user.get("approvedAt") or "",
            }
            for user in (await self._users()).values()
            if user.get("verified") is True
        ]

    # ------------------------------------------------------------------
    # Permissions and roles
    # ------------------------------------------------------------------

    async def _find_volunteer_key(self, email: str) -> str:
        raw = await self.store.get(StorePaths.VOLUNTEERS)
        if isinstance(raw, dict):
            for key, entry in raw.items():
                if isinstance(entry, dict) and entry.get("email") == email:
                    return key
        raise VolunteerNotFoundError(email)

    async def update_permission(
        self,
        email: str,
        start_time: str,
        end_time: str,
        permanent: bool,
    ) -> None:
        key = await self._find_volunteer_key(email)
        await self.store.update(StorePaths.volunteer(key), {
            "start_time": start_time,
            "end_time": end_time,
            "permanent": permanent,
        })

    async def revoke(self, email: str) -> None:
        key = await self._find_volunteer_key(email)
        await self.store.update(StorePaths.volunteer(key), {"permission": False})
        logger.info(f"Revoked permission of {email}")

    async def all_users(self) -> Dict[str, Any]:
        return await self.store.get(StorePaths.USERS) or {}

    async def update_role(self, uid: str, role: Optional[str]) -> None:
        if not uid:
            raise ValueError("UID is required")
        await self.store.set(f"{StorePaths.user(uid)}/role", role)
        logger.info(f"Role of {uid} set to {role}")
