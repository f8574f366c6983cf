"""Workspace tag model and the partial-update reconciler.

A tag update is always a full write: the caller's partial fields are laid over
a freshly fetched copy of the tag so that fields the API requires (``type``,
``parameter``...) are never dropped, and exactly one fingerprint is chosen for
the optimistic-concurrency check.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .errors import MissingFingerprintError

log = logging.getLogger(__name__)

# GA4 tag template types (GTM Web)
GA4_CONFIG_TYPE = "gaawc"
GA4_EVENT_TYPE = "gaawe"

# Parameter keys that only a GA4 Configuration tag carries.
GA4_CONFIG_PARAM_KEYS = frozenset({"measurementId", "sendPageView"})

IDENTIFIER_FIELDS = ("account_id", "container_id", "workspace_id", "tag_id", "path")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass
class Tag:
    """One GTM workspace tag. ``None`` means the field is absent."""

    account_id: Optional[str] = None
    container_id: Optional[str] = None
    workspace_id: Optional[str] = None
    tag_id: Optional[str] = None
    path: Optional[str] = None
    fingerprint: Optional[str] = None

    name: Optional[str] = None
    type: Optional[str] = None
    parameter: Optional[list[dict[str, Any]]] = None
    firing_trigger_id: Optional[list[str]] = None
    blocking_trigger_id: Optional[list[str]] = None
    firing_rule_id: Optional[list[str]] = None
    blocking_rule_id: Optional[list[str]] = None
    live_only: Optional[bool] = None
    schedule_start_ms: Optional[str] = None
    schedule_end_ms: Optional[str] = None
    priority: Optional[dict[str, Any]] = None
    notes: Optional[str] = None
    parent_folder_id: Optional[str] = None
    tag_firing_option: Optional[str] = None
    tag_manager_url: Optional[str] = None
    paused: Optional[bool] = None
    monitoring_metadata: Optional[dict[str, Any]] = None
    monitoring_metadata_tag_name_key: Optional[str] = None
    setup_tag: Optional[list[dict[str, Any]]] = None
    teardown_tag: Optional[list[dict[str, Any]]] = None
    consent_settings: Optional[dict[str, Any]] = None

    # wire keys this model does not know; round-tripped untouched
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Tag":
        known = {_camel(f.name): f.name for f in _model_fields()}
        values: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in data.items():
            if key in known:
                values[known[key]] = value
            else:
                extra[key] = value
        return cls(extra=extra, **values)

    def to_api(self) -> dict[str, Any]:
        body = dict(self.extra)
        for f in _model_fields():
            value = getattr(self, f.name)
            if value is not None:
                body[_camel(f.name)] = value
        return body


def _model_fields() -> tuple[dataclasses.Field, ...]:
    return tuple(f for f in dataclasses.fields(Tag) if f.name != "extra")


# Fields a caller may change through a partial payload.
PAYLOAD_FIELDS = tuple(
    f.name for f in _model_fields() if f.name not in IDENTIFIER_FIELDS and f.name != "fingerprint"
)
PAYLOAD_KEYS = tuple(_camel(name) for name in PAYLOAD_FIELDS)


@dataclass(frozen=True)
class TagPatch:
    """Caller-supplied partial tag plus any fingerprint it smuggled in."""

    fields: Tag
    fingerprint: Optional[str] = None
    ignored_keys: tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TagPatch":
        allowed = dict(zip(PAYLOAD_KEYS, PAYLOAD_FIELDS))
        values = {allowed[k]: v for k, v in payload.items() if k in allowed and v is not None}
        ignored = tuple(sorted(k for k in payload if k not in allowed and k != "fingerprint"))
        embedded = payload.get("fingerprint")
        return cls(
            fields=Tag(**values),
            fingerprint=embedded if isinstance(embedded, str) and embedded else None,
            ignored_keys=ignored,
        )


def merge_tag(existing: Tag, partial: Tag) -> Tag:
    """Shallow field-level overwrite of ``existing`` by every field set in ``partial``.

    Lists and nested objects are replaced wholesale, never merged element-wise.
    Identifiers and the fingerprint are taken from ``existing`` only.
    """
    changes = {}
    for name in PAYLOAD_FIELDS:
        value = getattr(partial, name)
        if value is not None:
            changes[name] = value
    return dataclasses.replace(existing, extra=dict(existing.extra), **changes)


def ensure_minimal_integrity(tag: Tag) -> Tag:
    """Infer a missing ``type`` from parameters that only one tag type uses."""
    if tag.type or not tag.parameter:
        return tag
    keys = {p.get("key") for p in tag.parameter if isinstance(p, Mapping)}
    if keys & GA4_CONFIG_PARAM_KEYS:
        log.debug("Inferred tag type %s from parameters %s", GA4_CONFIG_TYPE, sorted(keys & GA4_CONFIG_PARAM_KEYS))
        return dataclasses.replace(tag, type=GA4_CONFIG_TYPE)
    return tag


def resolve_fingerprint(explicit: Optional[str], patch: TagPatch, existing: Tag) -> str:
    for candidate in (explicit, patch.fingerprint, existing.fingerprint):
        if candidate:
            return candidate
    raise MissingFingerprintError(
        "fingerprint is required for update action. The existing tag does not have a fingerprint, "
        "so you must provide one."
    )


def reconcile(existing: Tag, patch: TagPatch, fingerprint: Optional[str] = None) -> Tag:
    """Build the full tag to write back for an update.

    Priority for the fingerprint: explicit argument, then one embedded in the
    payload, then the one on ``existing``.
    """
    token = resolve_fingerprint(fingerprint, patch, existing)
    merged = ensure_minimal_integrity(merge_tag(existing, patch.fields))
    return dataclasses.replace(merged, fingerprint=token)
