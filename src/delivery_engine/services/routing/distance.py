"""Road distance resolution with a deterministic great-circle fallback.

Routing calls produce a ``RoutingOutcome``: either a routed
``DistanceResult`` or a ``RoutingFailure``. ``degrade_to_fallback`` turns
any outcome into a usable ``DistanceResult`` so callers never see a
routing error.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

import httpx

from ...config import settings
from ...models.domain import Warehouse
from ..geospatial import estimate_duration_minutes, haversine_km
from .models import DistanceResult, NearestWarehouse, RoutingFailure, RoutingOutcome
from .osrm_client import OSRMClient

logger = logging.getLogger(__name__)

FallbackEstimator = Callable[[float, float, float, float], DistanceResult]

ROUTING_ERRORS = (httpx.HTTPError, ConnectionError, ValueError, KeyError, TypeError, IndexError)


def haversine_estimate(
    origin_lat: float,
    origin_lng: float,
    dest_lat: float,
    dest_lng: float,
    speed_kmh: float | None = None,
) -> DistanceResult:
    distance_km = haversine_km(origin_lat, origin_lng, dest_lat, dest_lng)
    speed = speed_kmh if speed_kmh is not None else settings.fallback_speed_kmh
    return DistanceResult(
        distance_km=distance_km,
        duration_minutes=estimate_duration_minutes(distance_km, speed),
        method="haversine_fallback",
    )


def degrade_to_fallback(
    outcome: RoutingOutcome,
    origin: tuple[float, float],
    destination: tuple[float, float],
    fallback: FallbackEstimator = haversine_estimate,
) -> DistanceResult:
    if isinstance(outcome, DistanceResult):
        return outcome
    logger.warning(f"Routing unavailable ({outcome.reason}). Using haversine fallback.")
    return fallback(origin[0], origin[1], destination[0], destination[1])


def parse_route_payload(payload: dict) -> DistanceResult:
    route = payload["routes"][0]
    return DistanceResult(
        distance_km=float(route["distance"]) / 1000.0,
        duration_minutes=float(route["duration"]) / 60.0,
        method="routed",
        raw_route={
            "distance_meters": route["distance"],
            "duration_seconds": route["duration"],
            "geometry": route.get("geometry"),
        },
    )


def parse_table_payload(payload: dict, count: int) -> list[RoutingOutcome]:
    distances = payload["distances"][0]
    durations = payload["durations"][0]
    outcomes: list[RoutingOutcome] = []
    for index in range(count):
        distance = distances[index] if index < len(distances) else None
        duration = durations[index] if index < len(durations) else None
        if distance is None or duration is None:
            outcomes.append(RoutingFailure(reason=f"destination {index} unreachable"))
            continue
        outcomes.append(
            DistanceResult(
                distance_km=float(distance) / 1000.0,
                duration_minutes=float(duration) / 60.0,
                method="routed",
            )
        )
    return outcomes


class DistanceProvider:
    """Resolves road distances between customers and warehouses."""

    def __init__(
        self,
        client: OSRMClient | None = None,
        fallback: FallbackEstimator = haversine_estimate,
        use_routing: bool | None = None,
    ) -> None:
        self.use_routing = settings.osrm_enabled if use_routing is None else use_routing
        self.fallback = fallback
        self._client = client

    def _routing_client(self) -> OSRMClient | None:
        if not self.use_routing:
            return None
        if self._client is None:
            try:
                self._client = OSRMClient()
            except ValueError as e:
                logger.warning(f"OSRM client initialization failed: {e}")
                self.use_routing = False
                return None
        return self._client

    def try_route(self, origin: tuple[float, float], destination: tuple[float, float]) -> RoutingOutcome:
        client = self._routing_client()
        if client is None:
            return RoutingFailure(reason="routing disabled")
        try:
            return parse_route_payload(client.route([origin, destination]))
        except ROUTING_ERRORS as e:
            return RoutingFailure(reason=str(e) or type(e).__name__)

    def try_matrix(
        self, origin: tuple[float, float], destinations: Sequence[tuple[float, float]]
    ) -> list[RoutingOutcome]:
        client = self._routing_client()
        if client is None:
            return [RoutingFailure(reason="routing disabled")] * len(destinations)
        try:
            return parse_table_payload(client.table(origin, destinations), len(destinations))
        except ROUTING_ERRORS as e:
            failure = RoutingFailure(reason=str(e) or type(e).__name__)
            return [failure] * len(destinations)

    def route(self, origin_lat: float, origin_lng: float, dest_lat: float, dest_lng: float) -> DistanceResult:
        origin, destination = (origin_lat, origin_lng), (dest_lat, dest_lng)
        return degrade_to_fallback(self.try_route(origin, destination), origin, destination, self.fallback)

    def matrix(
        self, origin: tuple[float, float], destinations: Sequence[tuple[float, float]]
    ) -> list[DistanceResult]:
        if not destinations:
            return []
        outcomes = self.try_matrix(origin, destinations)
        return [
            degrade_to_fallback(outcome, origin, destination, self.fallback)
            for outcome, destination in zip(outcomes, destinations)
        ]

    def find_nearest(
        self, customer_lat: float, customer_lng: float, warehouses: Sequence[Warehouse]
    ) -> NearestWarehouse | None:
        """Pick the closest warehouse; the first candidate wins ties."""
        located = [warehouse for warehouse in warehouses if warehouse.has_location]
        if not located:
            return None
        destinations = [(warehouse.latitude, warehouse.longitude) for warehouse in located]
        results = self.matrix((customer_lat, customer_lng), destinations)

        nearest: NearestWarehouse | None = None
        for warehouse, result in zip(located, results):
            if nearest is None or result.distance_km < nearest.distance_km:
                nearest = NearestWarehouse(warehouse=warehouse, distance=result)
        if nearest is not None:
            logger.info(
                f"Nearest warehouse: {nearest.warehouse.name} at {nearest.distance_km:.2f}km ({nearest.method})"
            )
        return nearest
