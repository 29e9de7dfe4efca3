"""Domain models for warehouses, charge policies and cart contents."""

from dataclasses import dataclass, field
from typing import Literal, Optional

WarehouseType = Literal["custom", "global"]

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(slots=True, frozen=True)
class OperatingHours:
    """Daily delivery window as zero-padded 24-hour "HH:MM" strings."""

    start: str = "09:00"
    end: str = "21:00"


@dataclass(slots=True)
class DeliveryPolicy:
    """Charge policy applied to a warehouse type."""

    free_delivery_min_amount: float
    free_delivery_radius_km: float
    base_charge: float
    min_charge: float
    max_charge: float
    per_km_charge: float
    cod_surcharge: Optional[float] = None


@dataclass(slots=True)
class Warehouse:
    """Represents a fulfilment warehouse with its delivery settings."""

    warehouse_id: str
    name: str
    address: str
    latitude: Optional[float]
    longitude: Optional[float]
    is_delivery_enabled: bool = True
    is_24x7: bool = False
    service_postal_codes: frozenset[str] = field(default_factory=frozenset)
    operating_days: tuple[str, ...] = ()
    operating_hours: OperatingHours = field(default_factory=OperatingHours)
    max_delivery_radius_km: float = 50.0
    free_delivery_radius_km: Optional[float] = None
    disabled_message: str = ""
    policy: Optional[DeliveryPolicy] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def warehouse_type(self) -> WarehouseType:
        return "global" if self.is_24x7 else "custom"

    def serves_postal_code(self, postal_code: Optional[str]) -> bool:
        """Global warehouses serve every postal code; custom ones only their own list."""
        if self.is_24x7:
            return True
        if not postal_code:
            return False
        return postal_code in self.service_postal_codes


@dataclass(slots=True)
class CartItem:
    product_id: str
    price: float
    quantity: int = 1
    warehouse_id: Optional[str] = None
    name: Optional[str] = None

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity
