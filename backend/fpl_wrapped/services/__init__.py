"""Service layer for business logic."""

from fpl_wrapped.services.fpl_client import FplApiClient
from fpl_wrapped.services.wrapped import WrappedService

__all__ = ["FplApiClient", "WrappedService"]
