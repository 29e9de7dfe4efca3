"""Delivery quote endpoints."""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from fastapi import APIRouter, HTTPException, status

from ...models.domain import WarehouseType
from ...schemas.delivery import (
    DeliveryPolicyModel,
    DeliveryQuoteModel,
    DeliveryQuoteRequest,
    LocationCheckRequest,
    LocationCheckResponse,
    MixedCartQuoteRequest,
    MixedCartQuoteResponse,
)
from ...services.delivery import service as delivery_service
from ...services.delivery.errors import DeliveryError

router = APIRouter(prefix="/delivery", tags=["delivery"])

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_service(action: str, call: Callable[[], T]) -> T:
    """Run a service call, mapping domain failures onto HTTP errors."""
    try:
        return call()
    except DeliveryError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict()) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error while trying to {action}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to {action}",
        ) from exc


@router.post("/quote", response_model=DeliveryQuoteModel, status_code=status.HTTP_200_OK)
def quote(payload: DeliveryQuoteRequest) -> DeliveryQuoteModel:
    return run_service("calculate delivery charge", lambda: delivery_service.quote_delivery(payload))


@router.post("/quote/mixed", response_model=MixedCartQuoteResponse, status_code=status.HTTP_200_OK)
def quote_mixed(payload: MixedCartQuoteRequest) -> MixedCartQuoteResponse:
    """Quote a cart whose items ship from several warehouses.

    Warehouses that cannot deliver are reported under ``errors``; the
    response still succeeds with ``has_errors`` set.
    """
    return run_service("calculate mixed cart delivery", lambda: delivery_service.quote_mixed_delivery(payload))


@router.post("/location-check", response_model=LocationCheckResponse, status_code=status.HTTP_200_OK)
def location_check(payload: LocationCheckRequest) -> LocationCheckResponse:
    return run_service(
        "check delivery availability",
        lambda: delivery_service.check_location_delivery(payload.lat, payload.lng),
    )


@router.get("/policies/{warehouse_type}", response_model=DeliveryPolicyModel, status_code=status.HTTP_200_OK)
def get_policy(warehouse_type: WarehouseType) -> DeliveryPolicyModel:
    return run_service("fetch delivery policy", lambda: delivery_service.get_active_policy(warehouse_type))


@router.put("/policies/{warehouse_type}", response_model=DeliveryPolicyModel, status_code=status.HTTP_200_OK)
def update_policy(warehouse_type: WarehouseType, payload: DeliveryPolicyModel) -> DeliveryPolicyModel:
    return run_service(
        "update delivery policy",
        lambda: delivery_service.save_active_policy(warehouse_type, payload),
    )
