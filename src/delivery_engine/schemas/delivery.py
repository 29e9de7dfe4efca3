"""Delivery quote request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ..models.domain import CartItem


class CartItemModel(BaseModel):
    product_id: str
    price: float = Field(..., ge=0)
    quantity: int = Field(1, ge=1)
    warehouse_id: Optional[str] = None
    name: Optional[str] = None

    def to_domain(self) -> CartItem:
        return CartItem(
            product_id=self.product_id,
            price=self.price,
            quantity=self.quantity,
            warehouse_id=self.warehouse_id,
            name=self.name,
        )


class DeliveryQuoteRequest(BaseModel):
    # Presence and ranges are checked by the service so failures carry an error code
    customer_lat: Optional[float] = None
    customer_lng: Optional[float] = None
    postal_code: Optional[str] = None
    warehouse_id: Optional[str] = Field(default=None, description="Quote from this warehouse only.")
    cart_total: Optional[float] = None
    payment_method: str = "online"
    cart_items: List[CartItemModel] = Field(
        default_factory=list,
        description="Cart items; their warehouse ids restrict auto-selection to those warehouses.",
    )
    timezone: Optional[str] = None


class MixedCartQuoteRequest(BaseModel):
    customer_lat: Optional[float] = None
    customer_lng: Optional[float] = None
    postal_code: Optional[str] = None
    payment_method: str = "online"
    warehouse_items: Dict[str, List[CartItemModel]] = Field(default_factory=dict)
    timezone: Optional[str] = None


class EligibilityModel(BaseModel):
    is_delivering: bool
    reason: str
    human_message: str
    short_message: str
    next_open_day: Optional[str] = None
    next_open_time: Optional[str] = None


class ChargeBreakdownModel(BaseModel):
    raw_charge: float
    clamped_charge: float
    cod_surcharge: float
    chargeable_distance_km: float
    amount_needed_for_free_delivery: float
    policy: dict


class DeliveryQuoteModel(BaseModel):
    warehouse_id: str
    warehouse_name: str
    warehouse_address: str
    distance_km: float
    duration_minutes: float
    method: Literal["routed", "haversine_fallback"]
    charge: float
    is_free_delivery: bool
    cod_surcharge: Optional[float] = None
    message: str
    delivery_status: EligibilityModel
    breakdown: ChargeBreakdownModel
    tier: Literal["explicit", "cart", "auto"]


class GroupErrorModel(BaseModel):
    warehouse_id: str
    code: str
    message: str
    item_count: int
    reason: Optional[str] = None


class MixedCartQuoteResponse(BaseModel):
    quotes: Dict[str, DeliveryQuoteModel]
    errors: Dict[str, GroupErrorModel]
    total_delivery_charge: float
    cart_total: float
    has_errors: bool


class LocationCheckRequest(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None


class ReachableWarehouseModel(BaseModel):
    warehouse_id: str
    warehouse_name: str
    warehouse_address: str
    distance_km: float
    duration_minutes: float
    method: Literal["routed", "haversine_fallback"]
    max_delivery_radius_km: float
    is_free_delivery_zone: bool


class LocationCheckResponse(BaseModel):
    delivery_available: bool
    message: str
    available_warehouses: List[ReachableWarehouseModel]
    total_warehouses: int


class DeliveryPolicyModel(BaseModel):
    free_delivery_min_amount: float = Field(..., ge=0)
    free_delivery_radius_km: float = Field(..., ge=0)
    base_charge: float = Field(..., ge=0)
    min_charge: float = Field(..., ge=0)
    max_charge: float = Field(..., ge=0)
    per_km_charge: float = Field(..., ge=0)
    cod_surcharge: Optional[float] = Field(default=None, ge=0)
