"""Staff account provisioning through the Supabase auth admin API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from supabase import Client

from resort.core.errors import StaffProvisioningError
from resort.core.logging import log_event

logger = logging.getLogger(__name__)

USER_ROLES_TABLE = "user_roles"


@dataclass
class StaffResult:
    user: dict[str, Any]
    message: str | None = None
    warning: str | None = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"user": self.user}
        if self.warning:
            body["warning"] = self.warning
        else:
            body["message"] = self.message
        return body


def _user_to_dict(user: Any) -> dict[str, Any]:
    if user is None:
        return {}
    if hasattr(user, "model_dump"):
        return user.model_dump(mode="json")
    return dict(user)


class StaffService:
    def __init__(self, client: Client):
        self.client = client

    def _assign_role(self, user: dict[str, Any], role: str, message: str) -> StaffResult:
        user_id = user.get("id")
        if not user_id:
            return StaffResult(user=user, message=message)
        try:
            self.client.table(USER_ROLES_TABLE).insert({"user_id": user_id, "role": role}).execute()
        except Exception as e:
            logger.error("[STAFF] Role assignment failed for %s: %s", user_id, e)
            return StaffResult(
                user=user, warning=f"User created but role assignment failed: {e}"
            )
        log_event(logger, event="staff_user_created", user_id=user_id, role=role)
        return StaffResult(user=user, message=message)

    def invite(self, email: str, full_name: str, role: str = "staff") -> StaffResult:
        """Send an invitation email and assign ``role``."""
        try:
            response = self.client.auth.admin.invite_user_by_email(
                email, {"data": {"full_name": full_name}}
            )
        except Exception as e:
            raise StaffProvisioningError(str(e)) from e
        user = _user_to_dict(getattr(response, "user", None))
        return self._assign_role(user, role, "Invitation sent successfully")

    def create(self, email: str, password: str, full_name: str, role: str = "staff") -> StaffResult:
        """Create a confirmed account with a password and assign ``role``."""
        try:
            response = self.client.auth.admin.create_user(
                {
                    "email": email,
                    "password": password,
                    "user_metadata": {"full_name": full_name},
                    "email_confirm": True,
                }
            )
        except Exception as e:
            raise StaffProvisioningError(str(e)) from e
        user = _user_to_dict(getattr(response, "user", None))
        return self._assign_role(user, role, "Staff created successfully")
