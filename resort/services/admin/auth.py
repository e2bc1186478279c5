"""Admin authentication against Supabase auth.

The bearer token is resolved to a user with the service-role client, then
``is_admin`` runs under the user's own JWT so row-level policies apply.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from supabase import Client

from resort.services.infra.supabase_client import get_user_scoped_client

logger = logging.getLogger(__name__)


class AdminAuthError(Exception):
    """Raised when the caller is not an authenticated admin."""

    def __init__(self, message: str, status_code: int = 401):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class AdminUser:
    id: str
    email: str | None
    access_token: str


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    value = authorization.strip()
    scheme, _, token = value.partition(" ")
    if scheme.lower() == "bearer":
        value = token.strip()
    return value or None


class AdminVerifier:
    def __init__(
        self,
        client: Client,
        user_client_factory: Callable[[str], Client] | None = None,
    ):
        self.client = client
        self.user_client_factory = user_client_factory or get_user_scoped_client

    def verify(self, authorization: str | None) -> AdminUser:
        """Return the admin behind ``authorization``.

        Raises:
            AdminAuthError: 401 for a missing/invalid token, 403 for non-admins.
        """
        token = extract_bearer_token(authorization)
        if not token:
            raise AdminAuthError("No authorization header", status_code=401)

        try:
            response = self.client.auth.get_user(token)
        except Exception as e:
            raise AdminAuthError(f"Unauthorized: {e}", status_code=401) from e
        user = getattr(response, "user", None)
        if user is None:
            raise AdminAuthError("Unauthorized: No user", status_code=401)

        try:
            result = self.user_client_factory(token).rpc("is_admin", {"_user_id": user.id}).execute()
        except Exception as e:
            raise AdminAuthError(f"Error checking permissions: {e}", status_code=403) from e

        if not result.data:
            logger.warning("[ADMIN] Non-admin user %s rejected", user.id)
            raise AdminAuthError("Forbidden - Admin access required", status_code=403)

        return AdminUser(id=str(user.id), email=getattr(user, "email", None), access_token=token)
