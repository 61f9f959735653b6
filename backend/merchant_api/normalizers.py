"""
Domain normalizers: raw cluster record → canonical record.

Each normalizer resolves canonical fields from an ordered list of
upstream aliases (first present value wins), derives composite fields,
runs every timestamp through ``normalize_date`` and never mutates its
input. Normalizers are registered per entity key together with the
plural keys their lists hide under in responses.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import quote

from merchant_api.base import NormalizeContext, register_entity
from merchant_api.dates import normalize_date
from merchant_api.models import (
    AIArtifact,
    ArtifactAccess,
    ArtifactAttribute,
    ArtifactAuthentication,
    Engagement,
    KnowledgeBase,
    Merchant,
    MerchantAttribute,
    MerchantStatus,
    MerchantUser,
    OpenRecord,
    Prompt,
    RawVisitor,
)

_MISSING = object()


def _present(value: Any) -> bool:
    return value is not None and value != ""


def pick(record: dict[str, Any] | None, *keys: str, default: Any = None) -> Any:
    """First present (non-null, non-empty) value among ``keys``."""
    if not isinstance(record, dict):
        return default
    for key in keys:
        value = record.get(key, _MISSING)
        if value is not _MISSING and _present(value):
            return value
    return default


def pick_from(sources: list[dict[str, Any]], *keys: str, default: Any = None) -> Any:
    """Like :func:`pick`, trying each key across ``sources`` in order."""
    for key in keys:
        for source in sources:
            value = pick(source, key, default=_MISSING)
            if value is not _MISSING:
                return value
    return default


def _text(value: Any, default: str = "") -> str:
    return default if value is None else str(value)


def _extra(record: dict[str, Any], consumed: set[str]) -> dict[str, Any]:
    return {key: value for key, value in record.items() if key not in consumed}


def _truthy_flag(value: Any) -> bool:
    if value is True:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 1
    return str(value).strip().lower() in {"true", "1"}


# ── Merchant ──────────────────────────────────────────────────────────────


def derive_merchant_status(active: Any, raw_status: Any) -> MerchantStatus:
    """
    Boolean ``active`` wins over any status text. Text is matched for
    "inactive" before "active" since one contains the other.
    """
    if active is True:
        return MerchantStatus.ACTIVE
    if active is False:
        return MerchantStatus.INACTIVE
    if not _present(raw_status):
        return MerchantStatus.UNKNOWN

    status = str(raw_status).strip().lower()
    if "inactive" in status:
        return MerchantStatus.INACTIVE
    if status == "active" or status.startswith("active") or " active" in status:
        return MerchantStatus.ACTIVE
    if "suspended" in status:
        return MerchantStatus.SUSPENDED
    return MerchantStatus.UNKNOWN


def _merchant_channels(merchant: dict[str, Any], item: dict[str, Any]) -> tuple[str, ...]:
    channel_config = pick_from([merchant, item], "channelConfig")
    if isinstance(channel_config, list) and channel_config:
        descriptors = []
        for channel in channel_config:
            if not isinstance(channel, dict):
                continue
            provider = pick(channel, "provider", default="Unknown")
            number = pick(channel, "phoneNumber", "name", default="")
            descriptors.append(f"{provider} ({number})" if number else str(provider))
        return tuple(descriptors)
    channels = pick_from([merchant, item], "channels", default=[])
    return tuple(str(channel) for channel in channels) if isinstance(channels, list) else ()


def _full_name(first: Any, last: Any) -> str:
    return f"{first} {last or ''}".strip()


def _listed(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


@register_entity(
    "merchant",
    hint_keys=("merchants", "items", "list", "results"),
    id_keys=("merchantId", "id", "merchant"),
)
def normalize_merchant(item: dict[str, Any], context: NormalizeContext | None = None) -> Merchant:
    """Map any merchant shape (legacy attributes, account, v2 page item) to a Merchant."""
    context = context or NormalizeContext()
    merchant = pick(item, "merchant", "data")
    if not isinstance(merchant, dict):
        merchant = item
    sources = [merchant, item]
    address = merchant.get("address") if isinstance(merchant.get("address"), dict) else {}
    other_params = merchant.get("other_params") if isinstance(merchant.get("other_params"), dict) else {}

    active = merchant.get("active") if "active" in merchant else item.get("active")
    raw_status = pick_from(sources, "status", "merchantStatus")

    name = pick(merchant, "businessName", "merchantName", "name")
    if name is None:
        if _present(merchant.get("firstName")):
            name = _full_name(merchant["firstName"], merchant.get("lastName"))
        elif _present(merchant.get("contactFirstName")):
            name = _full_name(merchant["contactFirstName"], merchant.get("contactLastName"))
        else:
            name = "Unknown"

    emails = _listed(address.get("email_addresses"))
    phones = _listed(address.get("phone_numbers"))

    return Merchant(
        id=_text(pick(merchant, "merchantId", "id", default=pick(item, "id", default=""))),
        name=str(name),
        email=_text(pick(merchant, "emailAddress", "email", default=emails[0] if emails else "N/A")),
        phone=_text(pick(merchant, "phone", default=phones[0] if phones else "N/A")),
        status=derive_merchant_status(active, raw_status),
        cluster=_text(context.cluster or pick(merchant, "region", "type", default="Unknown")),
        business_type=_text(pick(merchant, "businessType", "type", default="N/A")),
        created_at=normalize_date(
            pick_from(sources, "createTime", "createDate", "createdDate", "createdAt")
        ),
        updated_at=normalize_date(
            pick_from(sources, "modifiedTime", "lastModifiedDate", "updatedAt", "modifiedDate")
        ),
        address=_text(pick(merchant, "street", default=pick(address, "address1", default=""))),
        city=_text(pick(merchant, "city", default=pick(address, "city", default=""))),
        state=_text(pick(merchant, "state", default=pick(address, "state", default=""))),
        country=_text(pick(merchant, "country", default=pick(address, "country", default=""))),
        tax_id=_text(pick(merchant, "licenseId", "taxId", default="")),
        channels=_merchant_channels(merchant, item),
        caption=_text(pick(merchant, "caption", default=pick(other_params, "caption", default=""))),
        website=_text(pick(merchant, "website", default=pick(other_params, "website", default=""))),
        time_zone=_text(pick(merchant, "timeZone", default="")),
        contact_first_name=_text(pick(merchant, "contactFirstName", "firstName", default="")),
        contact_last_name=_text(pick(merchant, "contactLastName", "lastName", default="")),
    )


# ── Prompt ────────────────────────────────────────────────────────────────


def _request_params(value: Any) -> dict[str, Any]:
    if isinstance(value, str) and value.strip():
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return {}
    if not isinstance(value, dict):
        return {}
    return {str(key): param for key, param in value.items()}


@register_entity("prompt", hint_keys=("prompt", "prompts", "items", "list"), id_keys=("promptId", "id"))
def normalize_prompt(item: dict[str, Any], context: NormalizeContext | None = None) -> Prompt:
    context = context or NormalizeContext()
    version = pick(item, "version")
    return Prompt(
        id=_text(pick(item, "promptId", "id", default="")),
        merchant_id=_text(pick(item, "merchantId", default=context.merchant_id or "")),
        prompt_text=_text(pick(item, "promptDescription", "promptText", default="N/A")),
        title=_text(pick(item, "promptTitle", "title", default="Untitled")),
        type=_text(pick(item, "promptType", "type", default="N/A")),
        model_id=pick(item, "modelId"),
        request_params=_request_params(item.get("requestParams")),
        version=int(version) if isinstance(version, (int, float)) or str(version).isdigit() else None,
        knowledge_base_id=pick(item, "knowledgeBaseId"),
        created_at=normalize_date(pick(item, "createdDate", "createdAt")),
        updated_at=normalize_date(pick(item, "modifiedDate", "updatedAt")),
        is_deleted=_truthy_flag(pick(item, "deleted", "isDeleted", default=False)),
    )


# ── Knowledge base ────────────────────────────────────────────────────────


@register_entity(
    "knowledge_base",
    hint_keys=("knowledgeBase", "knowledgeBases", "items", "list"),
    id_keys=("knowledgeBaseId", "id"),
)
def normalize_knowledge_base(item: dict[str, Any], context: NormalizeContext | None = None) -> KnowledgeBase:
    return KnowledgeBase(
        id=_text(pick(item, "knowledgeBaseId", "id", default="")),
        name=_text(pick(item, "knowledgeBaseName", "name", "title", default="Untitled")),
        description=_text(pick(item, "knowledgeBaseDesc", "description", "content", default="")),
        model_id=_text(pick(item, "modelId", default="")),
        model_name=_text(pick(item, "modelName", default="")),
        status=_text(pick(item, "aiTrainingStatus", "status", default="")),
        created_at=normalize_date(pick(item, "createdDate", "createdAt")),
        updated_at=normalize_date(pick(item, "modifiedDate", "updatedAt")),
    )


# ── AI artifact ───────────────────────────────────────────────────────────


def normalize_access(value: Any) -> ArtifactAccess:
    try:
        return ArtifactAccess(str(value).strip().upper())
    except ValueError:
        return ArtifactAccess.PRIVATE


def _authentication(value: Any) -> ArtifactAuthentication:
    if not isinstance(value, dict):
        return ArtifactAuthentication()
    secret = value.get("value")
    if isinstance(secret, str):
        secret = {"token": secret}
    return ArtifactAuthentication(
        type=_text(pick(value, "type", default="TOKEN")),
        value=dict(secret) if isinstance(secret, dict) else {},
    )


def _other_attributes(value: Any) -> tuple[ArtifactAttribute, ...]:
    if isinstance(value, dict):
        return tuple(ArtifactAttribute(str(key), _text(val)) for key, val in value.items())
    if not isinstance(value, list):
        return ()
    attributes = []
    for entry in value:
        if isinstance(entry, dict) and _present(entry.get("key")):
            attributes.append(ArtifactAttribute(str(entry["key"]), _text(entry.get("value"))))
    return tuple(attributes)


def _string_list(value: Any) -> tuple[str, ...]:
    if isinstance(value, list):
        return tuple(str(entry) for entry in value if _present(entry))
    if isinstance(value, str) and value:
        return tuple(part.strip() for part in value.split(",") if part.strip())
    return ()


@register_entity("ai_artifact", hint_keys=("aiArtifacts", "artifacts", "items", "list", "results"))
def normalize_ai_artifact(item: dict[str, Any], context: NormalizeContext | None = None) -> AIArtifact:
    context = context or NormalizeContext()
    return AIArtifact(
        id=_text(pick(item, "id", "artifactId", default="")),
        name=_text(pick(item, "name", default="")),
        type=_text(pick(item, "type", default="")),
        provider=_text(pick(item, "provider", default="")),
        provider_domain=_string_list(item.get("providerDomain")),
        tags=_string_list(item.get("tags")),
        description=_text(pick(item, "description", default="")),
        host=_text(pick(item, "host", default="")),
        authentication=_authentication(item.get("authentication")),
        other_attributes=_other_attributes(item.get("otherAttributes")),
        access=normalize_access(item.get("access")),
        status=_text(pick(item, "status", default="")),
        merchant_id=_text(pick(item, "merchantId", "ownerMerchantId", default=context.merchant_id or "")),
        category=pick(item, "category"),
        created_by=_text(pick(item, "createdBy", default="")),
        created_date=normalize_date(pick(item, "createdDate", "createdAt")),
        modified_by=_text(pick(item, "modifiedBy", "lastModifiedBy", default="")),
        modified_date=normalize_date(pick(item, "modifiedDate", "lastModifiedDate", "updatedAt")),
    )


# ── Engagement ────────────────────────────────────────────────────────────

_ENGAGEMENT_CONSUMED = {
    "id",
    "engagementId",
    "merchantId",
    "name",
    "engagementName",
    "type",
    "engagementType",
    "status",
    "startDate",
    "createdDate",
    "createdAt",
    "lastModifiedDate",
    "updatedAt",
    "createdBy",
    "lastModifiedBy",
}


def engagement_preview_url(base_url: str, engagement_id: Any, merchant_id: Any, name: str) -> str:
    if not base_url:
        return ""
    return f"{base_url}?id={engagement_id}&mid={merchant_id}&name={quote(name, safe='')}"


@register_entity("engagement", hint_keys=("engagements", "items", "list", "results"), id_keys=("id", "engagementId"))
def normalize_engagement(item: dict[str, Any], context: NormalizeContext | None = None) -> Engagement:
    context = context or NormalizeContext()
    merchant_id = _text(pick(item, "merchantId", default=context.merchant_id or ""))
    name = _text(pick(item, "name", "engagementName", default="Untitled"))

    bot_template = ""
    bot_list = item.get("botList")
    if isinstance(bot_list, list) and bot_list and isinstance(bot_list[0], dict):
        bot_template = _text(pick(bot_list[0], "botTemplateName", default=""))

    return Engagement(
        id=_text(pick(item, "id", "engagementId", default="")),
        merchant_id=merchant_id,
        engagement_id=_text(pick(item, "engagementId", default="")),
        name=name,
        type=_text(pick(item, "type", "engagementType", default="")),
        channel_name=_text(pick(item.get("channel"), "name", default="")),
        preview_url=engagement_preview_url(
            context.webchat_base_url,
            pick(item, "engagementId", "id", default=""),
            merchant_id,
            name,
        ),
        bot_template_name=bot_template,
        status=_text(pick(item, "status", default="")),
        start_date=normalize_date(pick(item, "startDate")),
        created_at=normalize_date(pick(item, "createdDate", "createdAt")),
        updated_at=normalize_date(pick(item, "lastModifiedDate", "updatedAt")),
        ai_agent_name=_text(pick(item.get("aiAgent"), "name", default="")),
        created_by=_text(pick(item, "createdBy", default="")),
        last_modified_by=_text(pick(item, "lastModifiedBy", default="")),
        user_email=_text(pick(item.get("user"), "name", "email", default="")),
        extra=_extra(item, _ENGAGEMENT_CONSUMED),
    )


# ── Visitors, attributes, users, generic records ──────────────────────────

_VISITOR_CONSUMED = {
    "id",
    "merchantId",
    "merchantID",
    "visitorId",
    "sessionId",
    "ipAddress",
    "userAgent",
    "visitedAt",
    "visitDate",
    "createdDate",
    "pageUrl",
    "referrer",
    "device",
    "browser",
    "location",
}


@register_entity(
    "raw_visitor",
    hint_keys=("items", "list", "rawVisitors", "visitors"),
    id_keys=("id", "visitorId", "sessionId"),
)
def normalize_raw_visitor(item: dict[str, Any], context: NormalizeContext | None = None) -> RawVisitor:
    context = context or NormalizeContext()
    return RawVisitor(
        id=_text(pick(item, "id", "visitorId", "sessionId", default="")),
        merchant_id=_text(pick(item, "merchantId", "merchantID", default=context.merchant_id or "")),
        visitor_id=_text(pick(item, "visitorId", default="")),
        session_id=_text(pick(item, "sessionId", default="")),
        ip_address=_text(pick(item, "ipAddress", default="")),
        user_agent=_text(pick(item, "userAgent", default="")),
        visited_at=normalize_date(pick(item, "visitedAt", "visitDate", "createdDate")),
        page_url=_text(pick(item, "pageUrl", default="")),
        referrer=_text(pick(item, "referrer", default="")),
        device=_text(pick(item, "device", default="")),
        browser=_text(pick(item, "browser", default="")),
        location=_text(pick(item, "location", default="")),
        extra=_extra(item, _VISITOR_CONSUMED),
    )


_ATTRIBUTE_CONSUMED = {
    "id",
    "merchantId",
    "attributeKey",
    "attributeValue",
    "dataType",
    "category",
    "description",
    "createdAt",
    "createdDate",
    "updatedAt",
    "modifiedDate",
}


@register_entity(
    "merchant_attribute",
    hint_keys=("items", "list", "merchantAttributes", "attributes", "results"),
)
def normalize_merchant_attribute(item: dict[str, Any], context: NormalizeContext | None = None) -> MerchantAttribute:
    context = context or NormalizeContext()
    return MerchantAttribute(
        id=_text(pick(item, "id", "merchantId", default="")),
        merchant_id=_text(pick(item, "merchantId", default=context.merchant_id or "")),
        attribute_key=_text(pick(item, "attributeKey", default="")),
        attribute_value=item.get("attributeValue", ""),
        data_type=_text(pick(item, "dataType", default="")),
        category=_text(pick(item, "category", default="")),
        description=_text(pick(item, "description", default="")),
        created_at=normalize_date(pick(item, "createdAt", "createdDate")),
        updated_at=normalize_date(pick(item, "updatedAt", "modifiedDate")),
        extra=_extra(item, _ATTRIBUTE_CONSUMED),
    )


_USER_CONSUMED = {
    "id",
    "merchantId",
    "userName",
    "firstName",
    "lastName",
    "email",
    "role",
    "status",
    "authType",
    "available",
    "isOnline",
    "online",
    "supervisorId",
    "createTime",
    "modifiedTime",
}


@register_entity("user", hint_keys=("users", "userDetails", "items", "list"), id_keys=("id", "userName"))
def normalize_user(item: dict[str, Any], context: NormalizeContext | None = None) -> MerchantUser:
    context = context or NormalizeContext()
    supervisor = pick(item, "supervisorId")
    return MerchantUser(
        id=_text(pick(item, "id", default="")),
        merchant_id=_text(pick(item, "merchantId", default=context.merchant_id or "")),
        user_name=_text(pick(item, "userName", default="")),
        first_name=_text(pick(item, "firstName", default="")),
        last_name=_text(pick(item, "lastName", default="")),
        email=_text(pick(item, "email", default="")),
        role=_text(pick(item, "role", default="USER")),
        status=_text(pick(item, "status", default="INACTIVE")),
        auth_type=_text(pick(item, "authType", default="N/A")),
        available=any(_truthy_flag(item.get(key)) for key in ("available", "isOnline", "online")),
        supervisor_id=None if supervisor is None else str(supervisor),
        created_at=normalize_date(pick(item, "createTime", "createdDate")),
        updated_at=normalize_date(pick(item, "modifiedTime", "modifiedDate")),
        extra=_extra(item, _USER_CONSUMED),
    )


_RECORD_CONSUMED = {"id", "merchantId", "status", "createdDate", "createdAt", "lastModifiedDate", "updatedAt"}


@register_entity("record", hint_keys=("items", "list", "channels", "results"))
def normalize_record(item: dict[str, Any], context: NormalizeContext | None = None) -> OpenRecord:
    """Generic open record for endpoints without a dedicated shape (channels, documents)."""
    context = context or NormalizeContext()
    return OpenRecord(
        id=_text(pick(item, "id", default="")),
        merchant_id=_text(pick(item, "merchantId", default=context.merchant_id or "")),
        status=_text(pick(item, "status", default="")),
        created_at=normalize_date(pick(item, "createdDate", "createdAt")),
        updated_at=normalize_date(pick(item, "lastModifiedDate", "updatedAt")),
        extra=_extra(item, _RECORD_CONSUMED),
    )
