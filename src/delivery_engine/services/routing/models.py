"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Union

from ...models.domain import Warehouse

DistanceMethod = Literal["routed", "haversine_fallback"]


@dataclass(slots=True)
class DistanceResult:
    distance_km: float
    duration_minutes: float
    method: DistanceMethod
    raw_route: Optional[dict] = None

    @property
    def is_fallback(self) -> bool:
        return self.method == "haversine_fallback"


@dataclass(slots=True, frozen=True)
class RoutingFailure:
    """Why a routing call produced no usable distance."""

    reason: str


RoutingOutcome = Union[DistanceResult, RoutingFailure]


@dataclass(slots=True)
class NearestWarehouse:
    warehouse: Warehouse
    distance: DistanceResult

    @property
    def distance_km(self) -> float:
        return self.distance.distance_km

    @property
    def duration_minutes(self) -> float:
        return self.distance.duration_minutes

    @property
    def method(self) -> DistanceMethod:
        return self.distance.method
