"""Warehouse availability endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from ...schemas.warehouses import (
    DeliveryStatusRequest,
    DeliveryStatusResponse,
    PostalCodeAvailabilityResponse,
    PostalCodeCheckRequest,
    PostalCodeCheckResponse,
)
from ...services.delivery import service as delivery_service
from .delivery import run_service

router = APIRouter(prefix="/warehouses", tags=["warehouses"])


@router.post("/delivery-status", response_model=DeliveryStatusResponse, status_code=status.HTTP_200_OK)
def delivery_status(payload: DeliveryStatusRequest) -> DeliveryStatusResponse:
    return run_service(
        "get delivery status",
        lambda: delivery_service.warehouse_delivery_status(payload.warehouse_id, payload.timezone),
    )


@router.post("/postal-code-check", response_model=PostalCodeCheckResponse, status_code=status.HTTP_200_OK)
def postal_code_check(payload: PostalCodeCheckRequest) -> PostalCodeCheckResponse:
    return run_service(
        "check postal code delivery",
        lambda: delivery_service.check_postal_code(payload.postal_code, payload.timezone),
    )


@router.get(
    "/postal-codes/{postal_code}/availability",
    response_model=PostalCodeAvailabilityResponse,
    status_code=status.HTTP_200_OK,
)
def postal_code_availability(
    postal_code: str,
    exclude_warehouse_id: str | None = Query(default=None, description="Ignore this warehouse, e.g. when editing it"),
) -> PostalCodeAvailabilityResponse:
    return run_service(
        "check postal code availability",
        lambda: delivery_service.postal_code_availability(postal_code, exclude_warehouse_id),
    )
