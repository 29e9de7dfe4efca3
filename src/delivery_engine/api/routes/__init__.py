"""Route group exports."""

from . import delivery, health, warehouses

__all__ = ["delivery", "health", "warehouses"]
