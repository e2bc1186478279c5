"""Centralized payment configuration.

Single Source of Truth for gateway names, currency defaults and the
admin-facing lead/role vocabularies shared by routers and services.
"""

from __future__ import annotations

from dataclasses import dataclass


# =============================================================================
# GATEWAYS
# =============================================================================

RAZORPAY_PROVIDER = "razorpay"

DEFAULT_CURRENCY = "INR"

# Razorpay amounts are in the smallest currency unit (paise for INR)
MINOR_UNITS_PER_MAJOR = 100

# Razorpay auto-captures authorized payments when this flag is 1
PAYMENT_CAPTURE_AUTO = 1


@dataclass(frozen=True)
class GatewayCredentials:
    key_id: str
    key_secret: str

    @property
    def configured(self) -> bool:
        return bool(self.key_id and self.key_secret)


# Keys inside payment_settings.config never returned to the dashboard in clear
SECRET_CONFIG_KEYS = frozenset({"key_secret", "webhook_secret", "secret"})


def mask_secret(value: str) -> str:
    """Keep the last four characters of a secret for recognition."""
    if not value:
        return ""
    if len(value) <= 4:
        return "****"
    return "****" + value[-4:]


# =============================================================================
# LEADS / ROLES
# =============================================================================

LEAD_STATUSES = ("new", "contacted", "converted", "closed")

INQUIRY_TYPES = ("booking", "general", "safari", "wedding")

STAFF_ROLES = ("admin", "staff")
