"""
Merchant platform client package.

Cluster-routed access to the merchant admin platform:
  - Cluster resolution   (cluster key → base URL, catalogue)
  - Envelope unwrapping  (bare arrays, data/content wrappers, JSON strings)
  - Date normalization   (ISO, MM/DD vs DD/MM, ms tails, epochs)
  - Domain normalizers   (merchants, prompts, artifacts, engagements, ...)
  - Paginated executor   (reads never raise, always a PageEnvelope)

Usage:
    from merchant_api import MerchantService
    from core.security import SessionContext

    async with MerchantService(session=SessionContext(token)) as service:
        page = await service.get_engagements("4021", cluster="app6e")
"""

from merchant_api import normalizers
from merchant_api.base import (
    PageEnvelope,
    PlatformError,
    SessionExpiredError,
    TransportFailure,
    UpstreamStatusError,
    WriteOperationError,
    get_entity,
    register_entity,
)
from merchant_api.clusters import ClusterResolver, resolve_base_url
from merchant_api.dates import normalize_date
from merchant_api.envelope import unwrap
from merchant_api.executor import fetch_one, fetch_page
from merchant_api.service import MerchantService

__all__ = [
    "normalizers",
    "PageEnvelope",
    "PlatformError",
    "SessionExpiredError",
    "TransportFailure",
    "UpstreamStatusError",
    "WriteOperationError",
    "get_entity",
    "register_entity",
    "ClusterResolver",
    "resolve_base_url",
    "normalize_date",
    "unwrap",
    "fetch_one",
    "fetch_page",
    "MerchantService",
]
