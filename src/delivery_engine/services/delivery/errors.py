"""Typed failures raised while quoting deliveries."""

from __future__ import annotations

from typing import Any

MISSING_REQUIRED_FIELDS = "MISSING_REQUIRED_FIELDS"
INVALID_COORDINATES = "INVALID_COORDINATES"
INVALID_POSTAL_CODE = "INVALID_POSTAL_CODE"
INVALID_CART_TOTAL = "INVALID_CART_TOTAL"
INVALID_TIMEZONE = "INVALID_TIMEZONE"
WAREHOUSE_NOT_FOUND = "WAREHOUSE_NOT_FOUND"
WAREHOUSE_NOT_DELIVERING = "WAREHOUSE_NOT_DELIVERING"
PINCODE_NOT_SUPPORTED = "PINCODE_NOT_SUPPORTED"
DELIVERY_RADIUS_EXCEEDED = "DELIVERY_RADIUS_EXCEEDED"
NO_WAREHOUSE_AVAILABLE = "NO_WAREHOUSE_AVAILABLE"
NO_CART_WAREHOUSE_AVAILABLE = "NO_CART_WAREHOUSE_AVAILABLE"
DISTANCE_CALCULATION_FAILED = "DISTANCE_CALCULATION_FAILED"
INVALID_DELIVERY_POLICY = "INVALID_DELIVERY_POLICY"

_STATUS_CODES = {
    WAREHOUSE_NOT_FOUND: 404,
    DISTANCE_CALCULATION_FAILED: 502,
}


class DeliveryError(Exception):
    """A quote could not be produced for a reason the caller can act on."""

    def __init__(self, code: str, message: str, **details: Any) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    @property
    def status_code(self) -> int:
        return _STATUS_CODES.get(self.code, 400)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.details}


class PolicyValidationError(DeliveryError):
    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(INVALID_DELIVERY_POLICY, message, **details)
