"""
Outbound payload builders.

Canonical records and console form data → the raw camelCase bodies the
cluster write endpoints accept.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

from merchant_api.models import AIArtifact, Prompt

logger = structlog.get_logger()

DEFAULT_MODEL_ID = 391
DEFAULT_PROMPT_TYPE = "Standard"

# Verbose dates ("Jul 25, 2025, 10:00:00 AM") fail server-side deserialization
_ENGAGEMENT_DATE_FIELDS = ("createdDate", "lastModifiedDate", "startDate", "endDate")


def merchant_account_payload(
    email: str,
    user_name: str,
    password: str,
    first_name: str = "",
    last_name: str = "",
    auth_type: str | None = None,
    role: str | None = None,
) -> dict[str, Any]:
    """Body for merchant account creation."""
    return {
        "email": email,
        "userName": user_name,
        "password": password,
        "firstName": first_name,
        "lastName": last_name,
        "authType": auth_type or "PG",
        "role": role or "ADMIN",
    }


def prompt_payload(prompt: Prompt, media: list[Any] | None = None) -> dict[str, Any]:
    """Body for prompt create and modify."""
    return {
        "merchantId": prompt.merchant_id,
        "modelId": prompt.model_id or DEFAULT_MODEL_ID,
        "promptDescription": prompt.prompt_text,
        "promptTitle": prompt.title,
        "promptType": prompt.type if prompt.type not in ("", "N/A") else DEFAULT_PROMPT_TYPE,
        "media": list(media or []),
        "requestParams": dict(prompt.request_params),
        "knowledgeBaseId": prompt.knowledge_base_id,
    }


def render_prompt_text(text: str, request_params: dict[str, Any] | None) -> str:
    """Replace every ``$key`` placeholder with its request parameter value."""
    rendered = text or ""
    for key, value in (request_params or {}).items():
        rendered = re.sub(rf"\${re.escape(str(key))}", lambda _match: str(value), rendered)
    return rendered


def artifact_payload(artifact: AIArtifact) -> dict[str, Any]:
    """Serialize an artifact back to the shape the artifact endpoint stores."""
    return {
        "id": artifact.id,
        "name": artifact.name,
        "type": artifact.type,
        "provider": artifact.provider,
        "providerDomain": list(artifact.provider_domain),
        "tags": list(artifact.tags),
        "description": artifact.description,
        "host": artifact.host,
        "authentication": {
            "type": artifact.authentication.type,
            "value": dict(artifact.authentication.value),
        },
        "otherAttributes": [{"key": attr.key, "value": attr.value} for attr in artifact.other_attributes],
        "access": artifact.access.value,
        "status": artifact.status,
        "merchantId": artifact.merchant_id,
        "category": artifact.category,
        "createdBy": artifact.created_by,
        "createdDate": artifact.created_date,
        "modifiedBy": artifact.modified_by,
        "modifiedDate": artifact.modified_date,
    }


def sanitize_engagement_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Prepare an engagement body for update/remove.

    Numeric merchant ids are sent as numbers, and date fields carrying a
    comma are dropped. The input is not modified.
    """
    clean = dict(payload)
    merchant_id = clean.get("merchantId")
    if isinstance(merchant_id, str) and merchant_id.strip().isdigit():
        clean["merchantId"] = int(merchant_id.strip())

    for field_name in _ENGAGEMENT_DATE_FIELDS:
        value = clean.get(field_name)
        if isinstance(value, str) and "," in value:
            logger.info("payloads.engagement_date_dropped", field=field_name)
            del clean[field_name]
    return clean
