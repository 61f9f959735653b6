"""
Merchant Console API Dependencies

Dependency injection for the shared merchant service and credential store.
"""

from fastapi import Request

from core.security import SessionContext
from merchant_api import MerchantService


def get_service(request: Request) -> MerchantService:
    """The process-wide merchant service stored on the application."""
    return request.app.state.merchant_service


def get_session(request: Request) -> SessionContext:
    """The credential store shared by every cluster call."""
    return request.app.state.merchant_service.session
