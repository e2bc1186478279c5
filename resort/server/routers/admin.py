"""Admin dashboard API.

Every route depends on ``require_admin``: a Supabase user JWT whose owner
passes the ``is_admin`` check. Routes are plain ``def`` so the blocking
supabase-py calls run in the threadpool.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from resort.conf.payment_config import LEAD_STATUSES
from resort.core.errors import StaffProvisioningError
from resort.server.dependencies import (
    AdminDep,
    LeadStoreDep,
    PaymentSettingsStoreDep,
    ResortSettingsDep,
    StaffServiceDep,
)
from resort.server.exceptions import NotFoundError, ValidationError
from resort.server.models.requests import (
    LeadStatusUpdate,
    PaymentSettingsUpdate,
    ResortSettingsUpdate,
    StaffCreateRequest,
    StaffInviteRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])


# =============================================================================
# LEADS
# =============================================================================


@router.get("/admin/leads")
def list_leads(
    admin: AdminDep,
    leads: LeadStoreDep,
    status: str | None = None,
    limit: int = Query(default=100, ge=1, le=500),
) -> dict[str, Any]:
    if status is not None and status not in LEAD_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(LEAD_STATUSES)}")
    return {"leads": leads.list_leads(status=status, limit=limit)}


@router.patch("/admin/leads/{lead_id}")
def update_lead_status(
    lead_id: str,
    body: LeadStatusUpdate,
    admin: AdminDep,
    leads: LeadStoreDep,
) -> dict[str, Any]:
    lead = leads.update_status(lead_id, body.status)
    if lead is None:
        raise NotFoundError(f"Lead {lead_id} not found")
    logger.info("[ADMIN] %s set lead %s to %s", admin.id, lead_id, body.status)
    return {"lead": lead}


# =============================================================================
# RESORT SETTINGS / TAXES
# =============================================================================


@router.get("/admin/settings")
def get_resort_settings(admin: AdminDep, service: ResortSettingsDep) -> dict[str, Any]:
    return {"settings": service.get_resort_settings()}


@router.put("/admin/settings")
def update_resort_settings(
    body: ResortSettingsUpdate,
    admin: AdminDep,
    service: ResortSettingsDep,
) -> dict[str, Any]:
    current = service.get_resort_settings()
    if not current:
        raise NotFoundError("Resort settings not found")
    try:
        updated = service.update_resort_settings(
            current["id"], body.model_dump(exclude_none=True), updated_by=admin.id
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e
    return {"settings": updated}


@router.get("/admin/taxes")
def list_taxes(admin: AdminDep, service: ResortSettingsDep) -> dict[str, Any]:
    taxes = service.list_taxes()
    return {"taxes": taxes, "active": service.active_tax(taxes)}


# =============================================================================
# PAYMENT SETTINGS
# =============================================================================


@router.get("/admin/payment-settings")
def get_payment_settings(admin: AdminDep, store: PaymentSettingsStoreDep) -> dict[str, Any]:
    return {"providers": store.list_masked()}


@router.put("/admin/payment-settings/{provider}")
def update_payment_settings(
    provider: str,
    body: PaymentSettingsUpdate,
    admin: AdminDep,
    store: PaymentSettingsStoreDep,
) -> dict[str, Any]:
    store.upsert(provider.lower(), body.config, is_active=body.is_active)
    logger.info("[ADMIN] %s updated payment settings for %s", admin.id, provider)
    masked = [p for p in store.list_masked() if p.get("provider") == provider.lower()]
    return {"provider": masked[0] if masked else None}


# =============================================================================
# STAFF
# =============================================================================


@router.post("/functions/v1/create-user", response_model=None)
def invite_staff(
    body: StaffInviteRequest,
    admin: AdminDep,
    staff: StaffServiceDep,
) -> dict[str, Any] | JSONResponse:
    if not body.email or not body.full_name:
        return JSONResponse(status_code=400, content={"error": "Email and name are required"})
    try:
        result = staff.invite(body.email, body.full_name, body.role)
    except StaffProvisioningError as e:
        logger.error("[ADMIN] Invite failed for %s: %s", body.email, e)
        return JSONResponse(status_code=400, content={"error": e.message})
    return result.to_dict()


@router.post("/functions/v1/create-staff-user", response_model=None)
def create_staff_user(
    body: StaffCreateRequest,
    admin: AdminDep,
    staff: StaffServiceDep,
) -> dict[str, Any] | JSONResponse:
    if not body.email or not body.full_name:
        return JSONResponse(status_code=400, content={"error": "Email and name are required"})
    try:
        result = staff.create(body.email, body.password, body.full_name, body.role)
    except StaffProvisioningError as e:
        logger.error("[ADMIN] Staff creation failed for %s: %s", body.email, e)
        return JSONResponse(status_code=400, content={"error": e.message})
    return result.to_dict()
