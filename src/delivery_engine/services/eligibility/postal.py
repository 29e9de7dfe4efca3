"""Postal-code eligibility for custom and global warehouses."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ...models.domain import Warehouse

POSTAL_CODE_PATTERN = re.compile(r"^\d{6}$")


@dataclass(slots=True)
class CandidateSet:
    custom_candidates: list[Warehouse] = field(default_factory=list)
    global_candidates: list[Warehouse] = field(default_factory=list)

    @property
    def mode(self) -> str:
        if self.custom_candidates:
            return "custom"
        if self.global_candidates:
            return "global"
        return "none"

    def selected(self) -> list[Warehouse]:
        """Custom warehouses take priority; global ones are used only when none serve the code."""
        if self.custom_candidates:
            return list(self.custom_candidates)
        return list(self.global_candidates)


@dataclass(slots=True)
class PostalCodeConflict:
    warehouse_id: str
    warehouse_name: str
    postal_codes: list[str]


def is_valid_postal_code(postal_code: str | None) -> bool:
    return bool(postal_code) and POSTAL_CODE_PATTERN.match(postal_code) is not None


def validate_postal_codes(postal_codes: Sequence[str]) -> list[str]:
    """Return the problems with a warehouse's service list (empty when valid)."""
    errors: list[str] = []
    invalid = [code for code in postal_codes if not is_valid_postal_code(code)]
    if invalid:
        errors.append(f"Invalid postal codes: {', '.join(invalid)}. Postal codes must be 6-digit numbers.")
    seen: set[str] = set()
    duplicates: list[str] = []
    for code in postal_codes:
        if code in seen and code not in duplicates:
            duplicates.append(code)
        seen.add(code)
    if duplicates:
        errors.append(f"Duplicate postal codes found: {', '.join(duplicates)}")
    return errors


def _is_usable(warehouse: Warehouse) -> bool:
    return warehouse.is_delivery_enabled and warehouse.has_location


def find_candidates(postal_code: str | None, warehouses: Iterable[Warehouse]) -> CandidateSet:
    """Split warehouses into custom ones serving ``postal_code`` and global fallbacks.

    A custom warehouse with an empty service list serves no postal code.
    """
    candidates = CandidateSet()
    for warehouse in warehouses:
        if not _is_usable(warehouse):
            continue
        if warehouse.is_24x7:
            candidates.global_candidates.append(warehouse)
        elif warehouse.serves_postal_code(postal_code):
            candidates.custom_candidates.append(warehouse)
    return candidates


def deliverable_warehouses(postal_code: str | None, warehouses: Iterable[Warehouse]) -> list[Warehouse]:
    """Warehouses a delivery may be selected from.

    With a postal code, postal eligibility applies and local warehouses take
    priority. Without one, every enabled warehouse with a location competes on
    distance alone.
    """
    if not postal_code:
        return [warehouse for warehouse in warehouses if _is_usable(warehouse)]
    return find_candidates(postal_code, warehouses).selected()


def find_postal_code_conflicts(
    postal_codes: Sequence[str],
    warehouses: Iterable[Warehouse],
    exclude_warehouse_id: str | None = None,
) -> list[PostalCodeConflict]:
    """Report custom warehouses that already serve any of ``postal_codes``."""
    wanted = set(postal_codes)
    conflicts: list[PostalCodeConflict] = []
    for warehouse in warehouses:
        if warehouse.warehouse_id == exclude_warehouse_id or warehouse.is_24x7:
            continue
        overlap = sorted(wanted & warehouse.service_postal_codes)
        if overlap:
            conflicts.append(
                PostalCodeConflict(
                    warehouse_id=warehouse.warehouse_id,
                    warehouse_name=warehouse.name,
                    postal_codes=overlap,
                )
            )
    return conflicts
