"""Delivery quotes for carts whose items ship from several warehouses."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional, Sequence

from ...config import settings
from ...data.policy_repository import DeliveryPolicyRepository
from ...data.warehouses_repository import StaticWarehouseStore, WarehouseStore
from ...models.domain import CartItem
from ..eligibility.schedule import is_currently_open
from ..routing.distance import DistanceProvider
from . import errors
from .errors import DeliveryError
from .quotes import DeliveryQuote, build_quote
from .selector import select_explicit

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GroupError:
    warehouse_id: str
    code: str
    message: str
    item_count: int
    reason: Optional[str] = None


@dataclass(slots=True)
class MixedCartQuote:
    quotes: dict[str, DeliveryQuote] = field(default_factory=dict)
    errors: dict[str, GroupError] = field(default_factory=dict)
    total_delivery_charge: float = 0.0
    cart_total: float = 0.0

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def _group_total(items: Sequence[CartItem]) -> float:
    return sum(item.subtotal for item in items)


def quote_mixed_cart(
    customer_lat: float,
    customer_lng: float,
    groups: Mapping[str, Sequence[CartItem]],
    *,
    store: WarehouseStore,
    policies: DeliveryPolicyRepository,
    provider: DistanceProvider,
    payment_method: Optional[str] = None,
    postal_code: Optional[str] = None,
    now: datetime | None = None,
    timezone: str | None = None,
    max_workers: int | None = None,
) -> MixedCartQuote:
    """Quote every warehouse group independently; failed groups are reported, not raised.

    A group whose warehouse is not delivering right now is reported as failed
    with the eligibility reason.

    Each group's free-delivery threshold is checked against that group's own
    subtotal.
    """
    result = MixedCartQuote(cart_total=round(sum(_group_total(items) for items in groups.values()), 2))
    if not groups:
        return result

    # One warehouse snapshot shared by every group of this request
    snapshot = StaticWarehouseStore(store.find_by_ids(groups.keys()))

    def _quote_group(warehouse_id: str, items: Sequence[CartItem]) -> DeliveryQuote:
        selection = select_explicit(warehouse_id, customer_lat, customer_lng, postal_code, snapshot, provider)
        status = is_currently_open(selection.warehouse, now=now, timezone=timezone)
        if not status.is_delivering:
            raise DeliveryError(
                errors.WAREHOUSE_NOT_DELIVERING,
                status.human_message,
                warehouse_id=warehouse_id,
                reason=status.reason,
            )
        return build_quote(
            selection,
            _group_total(items),
            payment_method,
            policies,
            now=now,
            timezone=timezone,
        )

    workers = min(max_workers or settings.max_parallel_quotes, len(groups))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_group = {
            executor.submit(_quote_group, warehouse_id, items): (warehouse_id, items)
            for warehouse_id, items in groups.items()
        }
        for future in as_completed(future_to_group):
            warehouse_id, items = future_to_group[future]
            try:
                result.quotes[warehouse_id] = future.result()
            except DeliveryError as exc:
                logger.warning(f"Delivery quote failed for warehouse {warehouse_id}: {exc.code} {exc.message}")
                result.errors[warehouse_id] = GroupError(
                    warehouse_id=warehouse_id,
                    code=exc.code,
                    message=exc.message,
                    item_count=len(items),
                    reason=exc.details.get("reason"),
                )
            except Exception as exc:
                logger.exception(f"Unexpected error quoting warehouse {warehouse_id}: {exc}")
                result.errors[warehouse_id] = GroupError(
                    warehouse_id=warehouse_id,
                    code="QUOTE_FAILED",
                    message="Unable to calculate delivery for this warehouse",
                    item_count=len(items),
                )

    # Keep the caller's group order regardless of completion order
    result.quotes = {wid: result.quotes[wid] for wid in groups if wid in result.quotes}
    result.errors = {wid: result.errors[wid] for wid in groups if wid in result.errors}
    result.total_delivery_charge = round(sum(quote.charge for quote in result.quotes.values()), 2)
    return result
