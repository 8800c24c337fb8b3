"""Customer service exports."""

from .service import CustomerService

__all__ = ["CustomerService"]
