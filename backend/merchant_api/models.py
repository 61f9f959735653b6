"""
Canonical merchant platform records.

All records are frozen: a record changes only by normalizing a fresh
fetch. Collection fields are stored as tuples and read-only mappings.
"Open" records keep every upstream field they did not consume in
``extra`` so the console can show cluster-specific extras.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Any


def _frozen_map(value: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


def _freeze(record: Any, tuples: tuple[str, ...] = (), mappings: tuple[str, ...] = ()) -> None:
    """Coerce collection fields of a frozen record after __init__."""
    for name in tuples:
        object.__setattr__(record, name, tuple(getattr(record, name) or ()))
    for name in mappings:
        object.__setattr__(record, name, _frozen_map(getattr(record, name)))


def to_plain(value: Any) -> Any:
    """JSON-ready copy: records → dicts, enums → values, tuples → lists."""
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {key: to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    return value


class MerchantStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    UNKNOWN = "unknown"


class ArtifactAccess(str, Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    RESTRICTED = "RESTRICTED"


@dataclass(frozen=True)
class Merchant:
    id: str
    name: str = "Unknown"
    email: str = "N/A"
    phone: str = "N/A"
    status: MerchantStatus = MerchantStatus.UNKNOWN
    cluster: str = "Unknown"
    business_type: str = "N/A"
    created_at: str = ""
    updated_at: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    tax_id: str = ""
    channels: tuple[str, ...] = ()
    caption: str = ""
    website: str = ""
    time_zone: str = ""
    contact_first_name: str = ""
    contact_last_name: str = ""

    def __post_init__(self):
        _freeze(self, tuples=("channels",))

    def as_dict(self) -> dict[str, Any]:
        return to_plain(self)


@dataclass(frozen=True)
class Prompt:
    id: str
    merchant_id: str
    prompt_text: str = "N/A"
    title: str = "Untitled"
    type: str = "N/A"
    model_id: str | int | None = None
    request_params: Mapping[str, Any] = field(default_factory=dict)
    version: int | None = None
    knowledge_base_id: int | str | None = None
    created_at: str = ""
    updated_at: str = ""
    is_deleted: bool = False

    @property
    def status(self) -> str:
        return "Deleted" if self.is_deleted else "Active"

    def __post_init__(self):
        _freeze(self, mappings=("request_params",))

    def as_dict(self) -> dict[str, Any]:
        data = to_plain(self)
        data["status"] = self.status
        return data


@dataclass(frozen=True)
class KnowledgeBase:
    id: str
    name: str = "Untitled"
    description: str = ""
    model_id: str = ""
    model_name: str = ""
    status: str = ""
    created_at: str = ""
    updated_at: str = ""

    def as_dict(self) -> dict[str, Any]:
        return to_plain(self)


@dataclass(frozen=True)
class ArtifactAuthentication:
    type: str = "TOKEN"
    value: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        _freeze(self, mappings=("value",))


@dataclass(frozen=True)
class ArtifactAttribute:
    key: str
    value: str = ""


@dataclass(frozen=True)
class AIArtifact:
    id: str
    name: str = ""
    type: str = ""
    provider: str = ""
    provider_domain: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    description: str = ""
    host: str = ""
    authentication: ArtifactAuthentication = field(default_factory=ArtifactAuthentication)
    other_attributes: tuple[ArtifactAttribute, ...] = ()
    access: ArtifactAccess = ArtifactAccess.PRIVATE
    status: str = ""
    merchant_id: str = ""
    category: str | None = None
    created_by: str = ""
    created_date: str = ""
    modified_by: str = ""
    modified_date: str = ""

    def __post_init__(self):
        _freeze(self, tuples=("provider_domain", "tags", "other_attributes"))

    def with_attribute(self, key: str, value: str = "") -> "AIArtifact":
        """Append a key/value attribute; keys cannot be renamed afterwards."""
        if not key:
            raise ValueError("Attribute key is required")
        return replace(self, other_attributes=self.other_attributes + (ArtifactAttribute(key, value),))

    def with_attribute_value(self, index: int, value: str) -> "AIArtifact":
        """Change the value of the attribute at ``index``, keeping its key."""
        attributes = list(self.other_attributes)
        attributes[index] = ArtifactAttribute(attributes[index].key, value)
        return replace(self, other_attributes=tuple(attributes))

    def without_attribute(self, index: int) -> "AIArtifact":
        attributes = list(self.other_attributes)
        del attributes[index]
        return replace(self, other_attributes=tuple(attributes))

    def as_dict(self) -> dict[str, Any]:
        return to_plain(self)


# ── Open records ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class _OpenRecord:
    """Canonical fields plus the verbatim remainder of the upstream record."""

    def __post_init__(self):
        _freeze(self, mappings=("extra",))

    def as_dict(self) -> dict[str, Any]:
        canonical = {f.name: to_plain(getattr(self, f.name)) for f in fields(self) if f.name != "extra"}
        return {**to_plain(self.extra), **canonical}


@dataclass(frozen=True)
class OpenRecord(_OpenRecord):
    id: str
    merchant_id: str = ""
    status: str = ""
    created_at: str = ""
    updated_at: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RawVisitor(_OpenRecord):
    id: str
    merchant_id: str = ""
    visitor_id: str = ""
    session_id: str = ""
    ip_address: str = ""
    user_agent: str = ""
    visited_at: str = ""
    page_url: str = ""
    referrer: str = ""
    device: str = ""
    browser: str = ""
    location: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MerchantAttribute(_OpenRecord):
    id: str
    merchant_id: str = ""
    attribute_key: str = ""
    attribute_value: Any = ""
    data_type: str = ""
    category: str = ""
    description: str = ""
    created_at: str = ""
    updated_at: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Engagement(_OpenRecord):
    id: str
    merchant_id: str = ""
    engagement_id: str = ""
    name: str = "Untitled"
    type: str = ""
    channel_name: str = ""
    preview_url: str = ""
    bot_template_name: str = ""
    status: str = ""
    start_date: str = ""
    created_at: str = ""
    updated_at: str = ""
    ai_agent_name: str = ""
    created_by: str = ""
    last_modified_by: str = ""
    user_email: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MerchantUser(_OpenRecord):
    id: str
    merchant_id: str = ""
    user_name: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    role: str = "USER"
    status: str = "INACTIVE"
    auth_type: str = "N/A"
    available: bool = False
    supervisor_id: str | None = None
    created_at: str = ""
    updated_at: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict)
