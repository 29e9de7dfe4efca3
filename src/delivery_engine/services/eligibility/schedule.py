"""Operating-hours checks: is a warehouse accepting deliveries right now."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ...config import settings
from ...models.domain import WEEKDAYS, Warehouse

EligibilityReason = Literal[
    "disabled",
    "open_24x7",
    "closed_today",
    "before_opening",
    "after_closing",
    "open_now",
]


@dataclass(slots=True)
class EligibilityResult:
    is_delivering: bool
    reason: EligibilityReason
    human_message: str
    short_message: str
    next_open_day: Optional[str] = None
    next_open_time: Optional[str] = None


def format_clock(value: str) -> str:
    """Render "HH:MM" as a 12-hour clock, e.g. "21:30" -> "9:30 PM"."""
    hours, minutes = (int(part) for part in value.split(":", 1))
    suffix = "AM" if hours < 12 else "PM"
    display_hour = hours % 12 or 12
    return f"{display_hour}:{minutes:02d} {suffix}"


def resolve_timezone(name: str | None) -> ZoneInfo:
    tz_name = name or settings.default_timezone
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone '{tz_name}'.") from exc


def local_now(now: datetime | None, tz: ZoneInfo) -> datetime:
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        # Naive datetimes are taken as already local to the warehouse
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def next_operating_day(today_index: int, operating_days: tuple[str, ...]) -> str:
    """First operating weekday after today, scanning up to a week ahead.

    With no operating days configured every day qualifies, so the answer is
    tomorrow.
    """
    days = {day.lower() for day in operating_days}
    for offset in range(1, 8):
        candidate = WEEKDAYS[(today_index + offset) % 7]
        if not days or candidate in days:
            return candidate
    return WEEKDAYS[(today_index + 1) % 7]


def is_currently_open(
    warehouse: Warehouse,
    now: datetime | None = None,
    timezone: str | None = None,
) -> EligibilityResult:
    if not warehouse.is_delivery_enabled:
        return EligibilityResult(
            is_delivering=False,
            reason="disabled",
            human_message=warehouse.disabled_message
            or f"Delivery from {warehouse.name} is currently unavailable",
            short_message="Delivery unavailable",
        )

    if warehouse.is_24x7:
        return EligibilityResult(
            is_delivering=True,
            reason="open_24x7",
            human_message="Delivering 24x7",
            short_message="24x7",
        )

    local = local_now(now, resolve_timezone(timezone))
    today_index = local.weekday()
    today = WEEKDAYS[today_index]
    current_time = local.strftime("%H:%M")
    start = warehouse.operating_hours.start
    end = warehouse.operating_hours.end
    operating_days = tuple(day.lower() for day in warehouse.operating_days)

    if operating_days and today not in operating_days:
        next_day = next_operating_day(today_index, operating_days).capitalize()
        return EligibilityResult(
            is_delivering=False,
            reason="closed_today",
            human_message=f"No delivery today. Next delivery on {next_day} at {format_clock(start)}",
            short_message=f"Opens {next_day[:3]} {format_clock(start)}",
            next_open_day=next_day,
            next_open_time=start,
        )

    # Zero-padded 24-hour strings compare lexically in clock order
    if current_time < start:
        return EligibilityResult(
            is_delivering=False,
            reason="before_opening",
            human_message=f"Delivery starts today at {format_clock(start)}",
            short_message=f"Opens at {format_clock(start)}",
            next_open_day=today.capitalize(),
            next_open_time=start,
        )

    if current_time > end:
        next_day = next_operating_day(today_index, operating_days).capitalize()
        return EligibilityResult(
            is_delivering=False,
            reason="after_closing",
            human_message=f"Delivery closed for today. Next delivery on {next_day} at {format_clock(start)}",
            short_message=f"Opens {next_day[:3]} {format_clock(start)}",
            next_open_day=next_day,
            next_open_time=start,
        )

    return EligibilityResult(
        is_delivering=True,
        reason="open_now",
        human_message=f"Delivering now until {format_clock(end)}",
        short_message="Open now",
    )
