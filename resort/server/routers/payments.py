"""Razorpay order creation router."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from resort.core.errors import PaymentConfigError, RazorpayError
from resort.core.logging import log_event
from resort.server.dependencies import PaymentOrderServiceDep
from resort.server.models.requests import PaymentOrderRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])


@router.post("/functions/v1/create-razorpay-order", response_model=None)
async def create_razorpay_order(
    body: PaymentOrderRequest,
    orders: PaymentOrderServiceDep,
) -> dict[str, Any] | JSONResponse:
    """Create a gateway order and return it as-is for the checkout widget."""
    try:
        return await orders.create_order(body.amount, currency=body.currency, receipt=body.receipt)
    except (PaymentConfigError, RazorpayError) as e:
        log_event(logger, event="payment_order_failed", level="warning", error=e.message)
        return JSONResponse(status_code=400, content={"error": e.message})
