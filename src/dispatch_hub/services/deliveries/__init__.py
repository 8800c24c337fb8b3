"""Delivery service exports."""

from .service import DeliveryService, local_today

__all__ = ["DeliveryService", "local_today"]
