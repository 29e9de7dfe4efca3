"""Warehouse status and postal-code schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel

from .delivery import EligibilityModel


class WarehouseSummaryModel(BaseModel):
    id: str
    name: str
    type: Literal["custom", "global"]
    address: str


class DeliveryStatusRequest(BaseModel):
    warehouse_id: Optional[str] = None
    timezone: Optional[str] = None


class DeliveryStatusResponse(BaseModel):
    warehouse: WarehouseSummaryModel
    delivery_status: EligibilityModel
    timezone: str


class PostalCodeCheckRequest(BaseModel):
    postal_code: Optional[str] = None
    timezone: Optional[str] = None


class PostalCodeCheckResponse(BaseModel):
    postal_code: str
    mode: Literal["custom", "custom-disabled", "global", "none"]
    matched_warehouse: Optional[WarehouseSummaryModel] = None
    delivery_status: Optional[EligibilityModel] = None
    custom_warehouses: int
    global_warehouses: int
    has_custom_warehouse: bool
    has_global_warehouse: bool


class PostalCodeConflictModel(BaseModel):
    warehouse_id: str
    warehouse_name: str
    postal_codes: List[str]


class PostalCodeAvailabilityResponse(BaseModel):
    postal_code: str
    is_available: bool
    conflicts: List[PostalCodeConflictModel]
