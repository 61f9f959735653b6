"""
Merchant Platform Client — Shared Types

Every cluster endpoint is described by an Endpoint, every entity by an
EntitySpec, and every list call ends in a PageEnvelope, so the rest of
the console is independent of which cluster (or which API generation)
produced a record.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


# ── Errors ────────────────────────────────────────────────────────────────


class PlatformError(Exception):
    """Base class for merchant platform failures."""


class TransportFailure(PlatformError):
    """Network error or timeout after retries were exhausted."""


class UpstreamStatusError(PlatformError):
    """Cluster answered with a non-success HTTP status."""

    def __init__(self, status_code: int, detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Upstream returned HTTP {status_code}: {detail}".rstrip(": "))


class SessionExpiredError(PlatformError):
    """Credential was rejected (or already expired); re-authentication required."""


class WriteOperationError(PlatformError):
    """A create/update/delete call did not succeed."""

    def __init__(self, operation: str, detail: str = "", status_code: int | None = None):
        self.operation = operation
        self.detail = detail
        self.status_code = status_code
        message = f"{operation} failed"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


# ── Endpoint descriptors ──────────────────────────────────────────────────


class CredentialPlacement(str, Enum):
    """Where the platform token travels for a given endpoint."""

    HEADER = "header"  # Authorization: Bearer <token>
    QUERY = "query"  # ?access_token=<token>
    NONE = "none"


class PagingStyle(str, Enum):
    """How an endpoint expects the page request."""

    QUERY_PAGE_SIZE = "query_page_size"  # ?page=0&size=20
    QUERY_INDEX_COUNT = "query_index_count"  # ?pageIndex=0&pageCount=20
    BODY_INDEX_COUNT = "body_index_count"  # {"pageIndex": 0, "pageCount": 20}
    NONE = "none"


@dataclass(frozen=True)
class Endpoint:
    """Static description of one cluster endpoint."""

    name: str
    method: str
    path: str  # relative to the cluster base URL, str.format placeholders allowed
    credential: CredentialPlacement = CredentialPlacement.HEADER
    paging: PagingStyle = PagingStyle.NONE
    headers: dict[str, str] = field(default_factory=dict)

    def render_path(self, **path_params: Any) -> str:
        return self.path.format(**{k: str(v) for k, v in path_params.items()})

    def paging_fields(self, page: int, size: int) -> dict[str, int]:
        if self.paging in (PagingStyle.QUERY_INDEX_COUNT, PagingStyle.BODY_INDEX_COUNT):
            return {"pageIndex": page, "pageCount": size}
        if self.paging is PagingStyle.QUERY_PAGE_SIZE:
            return {"page": page, "size": size}
        return {}


# ── Pagination envelope ───────────────────────────────────────────────────


@dataclass(frozen=True)
class PageEnvelope(Generic[T]):
    """Canonical page returned to the UI for every list call."""

    content: list[T]
    page_number: int = 0
    page_size: int = 0
    total_elements: int = 0
    total_pages: int = 0
    first: bool = True
    last: bool = True

    @classmethod
    def empty(cls, page: int = 0, size: int = 0) -> "PageEnvelope[T]":
        return cls(content=[], page_number=page, page_size=size, total_elements=0, total_pages=0)

    @classmethod
    def single_page(cls, records: list[T]) -> "PageEnvelope[T]":
        """Envelope for endpoints that return the whole collection at once."""
        return cls(
            content=records,
            page_number=0,
            page_size=len(records),
            total_elements=len(records),
            total_pages=1,
        )

    @classmethod
    def from_records(
        cls,
        records: list[T],
        meta: dict[str, Any] | None,
        page: int,
        size: int,
    ) -> "PageEnvelope[T]":
        """
        Assemble an envelope, trusting upstream metadata where present.

        Priority per field:
            page_number    pageNumber → pageIndex → number → requested page
            page_size      pageSize → pageCount → size → requested size
            total_elements totalElements → total → len(content)
            total_pages    totalPages → pages → ceil(total_elements / page_size)
        """
        meta = meta or {}
        page_number = _meta_int(meta, ("pageNumber", "pageIndex", "number"), page)
        page_size = _meta_int(meta, ("pageSize", "pageCount", "size"), size)
        if page_size <= 0:
            page_size = len(records)
        total_elements = _meta_int(meta, ("totalElements", "total"), len(records))

        total_pages = _meta_int(meta, ("totalPages", "pages"), -1)
        if total_pages < 0:
            total_pages = math.ceil(total_elements / page_size) if page_size > 0 else 0

        first = meta.get("first")
        last = meta.get("last")
        return cls(
            content=records,
            page_number=page_number,
            page_size=page_size,
            total_elements=total_elements,
            total_pages=total_pages,
            first=first if isinstance(first, bool) else page_number == 0,
            last=last if isinstance(last, bool) else page_number >= total_pages - 1,
        )

    def first_or_none(self) -> T | None:
        return self.content[0] if self.content else None

    def as_dict(self) -> dict[str, Any]:
        return {
            "content": [_record_dict(item) for item in self.content],
            "page_number": self.page_number,
            "page_size": self.page_size,
            "total_elements": self.total_elements,
            "total_pages": self.total_pages,
            "first": self.first,
            "last": self.last,
        }


def _meta_int(meta: dict[str, Any], keys: tuple[str, ...], default: int) -> int:
    for key in keys:
        value = meta.get(key)
        if value is None or isinstance(value, bool):
            continue
        try:
            return int(value)
        except (TypeError, ValueError):
            continue
    return default


def _record_dict(item: Any) -> Any:
    as_dict = getattr(item, "as_dict", None)
    return as_dict() if callable(as_dict) else item


# ── Entity registry ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class NormalizeContext:
    """Call-site facts a normalizer may fall back on."""

    cluster: str | None = None
    merchant_id: str | None = None
    webchat_base_url: str = ""


Normalizer = Callable[[dict[str, Any], NormalizeContext], Any]


@dataclass(frozen=True)
class EntitySpec:
    """How to find and normalize one entity kind inside a response."""

    key: str
    normalizer: Normalizer
    hint_keys: tuple[str, ...] = ()
    id_keys: tuple[str, ...] = ("id", "merchantId")


_ENTITY_REGISTRY: dict[str, EntitySpec] = {}


def register_entity(key: str, hint_keys: tuple[str, ...] = (), id_keys: tuple[str, ...] = ("id", "merchantId")):
    """Decorator: register a normalizer for an entity key."""

    def _register(normalizer: Normalizer) -> Normalizer:
        _ENTITY_REGISTRY[key] = EntitySpec(key=key, normalizer=normalizer, hint_keys=hint_keys, id_keys=id_keys)
        return normalizer

    return _register


def get_entity(key: str) -> EntitySpec:
    """Return the registered spec for an entity key."""
    spec = _ENTITY_REGISTRY.get(key)
    if spec is None:
        raise ValueError(f"No normalizer registered for entity: {key}")
    return spec
