"""Warehouse selection for a delivery location.

Resolution runs in three tiers, each subject to the same postal-code and
radius rules:

1. an explicitly requested warehouse,
2. the warehouses referenced by the cart,
3. every warehouse eligible for the postal code, or every enabled
   warehouse when no postal code is known.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Sequence

from ...data.warehouses_repository import WarehouseStore
from ...models.domain import Warehouse
from ..eligibility.postal import deliverable_warehouses
from ..eligibility.schedule import is_currently_open
from ..routing.distance import DistanceProvider
from ..routing.models import DistanceResult, NearestWarehouse
from . import errors
from .errors import DeliveryError

logger = logging.getLogger(__name__)

SelectionTier = Literal["explicit", "cart", "auto"]


@dataclass(slots=True)
class Selection:
    warehouse: Warehouse
    distance: DistanceResult
    tier: SelectionTier


def _route(provider: DistanceProvider, warehouse: Warehouse, customer_lat: float, customer_lng: float) -> DistanceResult:
    try:
        return provider.route(warehouse.latitude, warehouse.longitude, customer_lat, customer_lng)
    except Exception as exc:
        logger.error(f"Distance calculation failed for warehouse {warehouse.warehouse_id}: {exc}")
        raise DeliveryError(
            errors.DISTANCE_CALCULATION_FAILED,
            f"Unable to calculate delivery distance from {warehouse.name}",
            warehouse_id=warehouse.warehouse_id,
        ) from exc


def _nearest(
    provider: DistanceProvider, candidates: Sequence[Warehouse], customer_lat: float, customer_lng: float
) -> NearestWarehouse | None:
    try:
        return provider.find_nearest(customer_lat, customer_lng, candidates)
    except Exception as exc:
        logger.error(f"Nearest-warehouse lookup failed: {exc}")
        raise DeliveryError(
            errors.DISTANCE_CALCULATION_FAILED,
            "Unable to calculate delivery distance to candidate warehouses",
            warehouse_ids=[warehouse.warehouse_id for warehouse in candidates],
        ) from exc


def _radius_details(warehouse: Warehouse, distance_km: float) -> dict:
    return {
        "warehouse_id": warehouse.warehouse_id,
        "distance_km": round(distance_km, 2),
        "max_radius_km": warehouse.max_delivery_radius_km,
    }


def select_explicit(
    warehouse_id: str,
    customer_lat: float,
    customer_lng: float,
    postal_code: str | None,
    store: WarehouseStore,
    provider: DistanceProvider,
) -> Selection:
    warehouse = store.get_warehouse(warehouse_id)
    if warehouse is None or not warehouse.has_location:
        raise DeliveryError(
            errors.WAREHOUSE_NOT_FOUND,
            f"Warehouse '{warehouse_id}' not found or location not set",
            warehouse_id=warehouse_id,
        )

    if not warehouse.is_delivery_enabled:
        status = is_currently_open(warehouse)
        raise DeliveryError(
            errors.WAREHOUSE_NOT_DELIVERING,
            status.human_message,
            warehouse_id=warehouse.warehouse_id,
            reason=status.reason,
        )

    if postal_code and not warehouse.serves_postal_code(postal_code):
        raise DeliveryError(
            errors.PINCODE_NOT_SUPPORTED,
            f"{warehouse.name} does not deliver to postal code {postal_code}",
            warehouse_id=warehouse.warehouse_id,
            postal_code=postal_code,
        )

    distance = _route(provider, warehouse, customer_lat, customer_lng)
    if distance.distance_km > warehouse.max_delivery_radius_km:
        raise DeliveryError(
            errors.DELIVERY_RADIUS_EXCEEDED,
            f"Delivery not available to this location from {warehouse.name}. "
            f"Maximum delivery radius is {warehouse.max_delivery_radius_km} km, "
            f"but your location is {distance.distance_km:.2f} km away.",
            **_radius_details(warehouse, distance.distance_km),
        )
    return Selection(warehouse=warehouse, distance=distance, tier="explicit")


def _select_nearest(
    candidates: Sequence[Warehouse],
    customer_lat: float,
    customer_lng: float,
    provider: DistanceProvider,
    *,
    tier: SelectionTier,
    error_code: str,
    postal_code: str | None,
) -> Selection:
    if not candidates:
        raise DeliveryError(
            error_code,
            f"No warehouse available for delivery to postal code {postal_code}"
            if postal_code
            else "No warehouse available for delivery to this location",
            postal_code=postal_code,
        )

    nearest = _nearest(provider, candidates, customer_lat, customer_lng)
    if nearest is None:
        raise DeliveryError(error_code, "No warehouse available for delivery to this location", postal_code=postal_code)

    if nearest.distance_km > nearest.warehouse.max_delivery_radius_km:
        raise DeliveryError(
            error_code,
            f"Nearest warehouse {nearest.warehouse.name} is {nearest.distance_km:.2f} km away, "
            f"beyond its {nearest.warehouse.max_delivery_radius_km} km delivery radius",
            postal_code=postal_code,
            **_radius_details(nearest.warehouse, nearest.distance_km),
        )
    return Selection(warehouse=nearest.warehouse, distance=nearest.distance, tier=tier)


def select_warehouse(
    customer_lat: float,
    customer_lng: float,
    *,
    store: WarehouseStore,
    provider: DistanceProvider,
    postal_code: str | None = None,
    warehouse_id: str | None = None,
    cart_warehouse_ids: Sequence[str] | None = None,
) -> Selection:
    if warehouse_id:
        return select_explicit(warehouse_id, customer_lat, customer_lng, postal_code, store, provider)

    if cart_warehouse_ids:
        scoped = store.find_by_ids(cart_warehouse_ids)
        candidates = deliverable_warehouses(postal_code, scoped)
        logger.debug(f"Cart-scoped candidates for {postal_code}: {[w.warehouse_id for w in candidates]}")
        return _select_nearest(
            candidates,
            customer_lat,
            customer_lng,
            provider,
            tier="cart",
            error_code=errors.NO_CART_WAREHOUSE_AVAILABLE,
            postal_code=postal_code,
        )

    candidates = deliverable_warehouses(postal_code, store.list_warehouses())
    return _select_nearest(
        candidates,
        customer_lat,
        customer_lng,
        provider,
        tier="auto",
        error_code=errors.NO_WAREHOUSE_AVAILABLE,
        postal_code=postal_code,
    )
