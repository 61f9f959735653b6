"""
Paginated request executor.

``fetch_page`` is the single read path for list endpoints: request,
unwrap, normalize, then fill page metadata. Reads never raise. Any
transport, HTTP or session failure is logged and answered with an empty
envelope, and the session expiry reaches the console through the
SessionContext instead.
"""

from __future__ import annotations

from typing import Any

import structlog

from merchant_api import envelope
from merchant_api.base import (
    EntitySpec,
    Endpoint,
    NormalizeContext,
    PageEnvelope,
    PagingStyle,
    PlatformError,
    get_entity,
)
from merchant_api.transport import ClusterTransport, response_payload

logger = structlog.get_logger()


def normalize_records(records: list[Any], spec: EntitySpec, context: NormalizeContext) -> list[Any]:
    """
    Normalize dict records in order. Non-dict items and records the
    normalizer cannot map are logged and dropped.
    """
    normalized = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            logger.debug("executor.record_skipped", entity=spec.key, type=type(record).__name__)
            continue
        try:
            normalized.append(spec.normalizer(record, context))
        except Exception as exc:
            logger.warning(
                "executor.record_rejected",
                entity=spec.key,
                index=index,
                error=f"{type(exc).__name__}: {exc}",
            )
    return normalized


def build_page(
    raw: Any,
    spec: EntitySpec,
    context: NormalizeContext,
    page: int,
    size: int,
    paged: bool = True,
) -> PageEnvelope:
    """Turn a decoded response body into a canonical page."""
    found = envelope.decode(raw, spec.hint_keys, spec.id_keys)
    records = normalize_records(found.records, spec, context)
    if not paged:
        return PageEnvelope.single_page(records)
    return PageEnvelope.from_records(records, found.container, page, size)


async def fetch_page(
    transport: ClusterTransport,
    endpoint: Endpoint,
    entity: str,
    cluster: str | None = None,
    page: int = 0,
    size: int = 20,
    *,
    path_params: dict[str, Any] | None = None,
    params: dict[str, Any] | None = None,
    body: dict[str, Any] | None = None,
    merchant_id: str | None = None,
) -> PageEnvelope:
    """Fetch one page of ``entity`` records from ``cluster``; never raises."""
    spec = get_entity(entity)
    paging = endpoint.paging_fields(page, size)
    query = dict(params or {})
    payload = dict(body) if body is not None else None
    if endpoint.paging is PagingStyle.BODY_INDEX_COUNT:
        payload = {**(payload or {}), **paging}
    else:
        query.update(paging)

    try:
        response = await transport.request(
            endpoint,
            cluster,
            path_params=path_params,
            params=query,
            json=payload,
        )
    except PlatformError as exc:
        logger.warning(
            "executor.fetch_page.failed",
            endpoint=endpoint.name,
            entity=entity,
            cluster=cluster,
            error=str(exc),
        )
        return PageEnvelope.empty(page, size)

    context = NormalizeContext(
        cluster=cluster,
        merchant_id=merchant_id,
        webchat_base_url=transport.settings.webchat_base_url,
    )
    paged = endpoint.paging is not PagingStyle.NONE
    return build_page(response_payload(response), spec, context, page, size, paged)


async def fetch_one(
    transport: ClusterTransport,
    endpoint: Endpoint,
    entity: str,
    cluster: str | None = None,
    **kwargs: Any,
) -> Any | None:
    """First record of a single-page fetch, or None; never raises."""
    result = await fetch_page(transport, endpoint, entity, cluster, 0, 1, **kwargs)
    return result.first_or_none()
