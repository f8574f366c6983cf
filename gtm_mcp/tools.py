"""MCP tool descriptors and handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from .context import ServerContext
from .errors import (
    REMOVE_SESSION_TOOL,
    ValidationError,
    WritesDisabledError,
    error_result,
    json_result,
)
from .pagination import paginate
from .store import tag_path, workspace_path
from .tag import Tag, TagPatch, reconcile

log = logging.getLogger(__name__)

ITEMS_PER_PAGE = 20

TAG_ACTIONS = ("create", "get", "list", "update", "remove", "revert")
WRITE_ACTIONS = frozenset({"create", "update", "remove", "revert"})

_PARAMETER_SCHEMA = {
    "type": "object",
    "properties": {
        "type": {"type": "string"}, "key": {"type": "string"}, "value": {"type": "string"},
        "list": {"type": "array", "items": {"type": "object"}},
        "map": {"type": "array", "items": {"type": "object"}},
        "isWeakReference": {"type": "boolean"},
    },
}

_ID_LIST = {"type": "array", "items": {"type": "string"}}

_TAG_PAYLOAD_SCHEMA = {
    "type": "object",
    "description": "Configuration for 'create' and 'update' actions. All fields correspond to the GTM tag resource, except IDs.",
    "properties": {
        "name": {"type": "string", "description": "Tag display name."},
        "type": {"type": "string", "description": "GTM tag type, e.g. 'gaawc' for GA4 Configuration, 'gaawe' for GA4 Event, 'html' for Custom HTML."},
        "parameter": {"type": "array", "items": _PARAMETER_SCHEMA, "description": "The tag's parameters."},
        "firingTriggerId": _ID_LIST, "blockingTriggerId": _ID_LIST,
        "firingRuleId": _ID_LIST, "blockingRuleId": _ID_LIST,
        "liveOnly": {"type": "boolean"},
        "scheduleStartMs": {"type": "string"}, "scheduleEndMs": {"type": "string"},
        "priority": _PARAMETER_SCHEMA,
        "notes": {"type": "string"},
        "parentFolderId": {"type": "string"},
        "tagFiringOption": {"type": "string", "enum": ["tagFiringOptionUnspecified", "unlimited", "oncePerEvent", "oncePerLoad"]},
        "tagManagerUrl": {"type": "string"},
        "paused": {"type": "boolean"},
        "monitoringMetadata": _PARAMETER_SCHEMA,
        "monitoringMetadataTagNameKey": {"type": "string"},
        "setupTag": {"type": "array", "items": {"type": "object"}},
        "teardownTag": {"type": "array", "items": {"type": "object"}},
        "consentSettings": {"type": "object"},
    },
}


def tools_descriptor() -> dict:
    tools = [
        {
            "name": "gtm_tag",
            "description": (
                "Performs all GTM tag operations: create, get, list, update, remove, revert. "
                f"The 'list' action returns up to {ITEMS_PER_PAGE} items per page. "
                "'update' merges the given fields into the current tag, so only changed fields need to be sent."
            ),
            "inputSchema": {
                "type": "object",
                "properties": {
                    "action": {"type": "string", "enum": list(TAG_ACTIONS), "description": "The GTM tag operation to perform."},
                    "accountId": {"type": "string", "description": "The unique ID of the GTM Account containing the tag."},
                    "containerId": {"type": "string", "description": "The unique ID of the GTM Container containing the tag."},
                    "workspaceId": {"type": "string", "description": "The unique ID of the GTM Workspace containing the tag."},
                    "tagId": {"type": "string", "description": "Required for 'get', 'update', 'remove', and 'revert' actions."},
                    "createOrUpdateConfig": _TAG_PAYLOAD_SCHEMA,
                    "fingerprint": {
                        "type": "string",
                        "description": "Fingerprint for optimistic concurrency control. Optional for 'update' (the current tag's fingerprint is used). Required for 'revert'.",
                    },
                    "page": {"type": "integer", "minimum": 1, "default": 1, "description": "Page number for 'list' (starts from 1)."},
                    "itemsPerPage": {
                        "type": "integer", "minimum": 1, "maximum": ITEMS_PER_PAGE, "default": ITEMS_PER_PAGE,
                        "description": f"Number of items per page (1-{ITEMS_PER_PAGE}). Use lower values if experiencing response issues.",
                    },
                },
                "required": ["action", "accountId", "containerId", "workspaceId"],
            },
        },
        {
            "name": REMOVE_SESSION_TOOL,
            "description": "Clears cached Google credentials. Use when a tool reports that the token has expired.",
            "inputSchema": {"type": "object", "properties": {}},
        },
    ]
    return {"tools": tools}


# ---- gtm_tag ----
@dataclass(frozen=True)
class TagCall:
    action: str
    account_id: str
    container_id: str
    workspace_id: str
    tag_id: Optional[str] = None
    patch: Optional[TagPatch] = None
    fingerprint: Optional[str] = None
    page: int = 1
    items_per_page: int = ITEMS_PER_PAGE

    @property
    def parent(self) -> str:
        return workspace_path(self.account_id, self.container_id, self.workspace_id)

    @property
    def path(self) -> str:
        return tag_path(self.account_id, self.container_id, self.workspace_id, self.tag_id or "")


def _optional_str(args: Mapping[str, Any], key: str) -> Optional[str]:
    value = args.get(key)
    if value is None or value == "":
        return None
    return str(value)


def _int_arg(args: Mapping[str, Any], key: str, default: int) -> Optional[int]:
    value = args.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    # 2.0 is accepted as 2
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def validate_tag_call(args: Mapping[str, Any]) -> Union[TagCall, ValidationError]:
    """Check everything the chosen action needs before any request is made."""
    action = args.get("action")
    if action not in TAG_ACTIONS:
        return ValidationError(f"Unknown action: {action}. Must be one of: {', '.join(TAG_ACTIONS)}")

    ids = {}
    for key in ("accountId", "containerId", "workspaceId"):
        value = _optional_str(args, key)
        if value is None:
            return ValidationError(f"{key} is required for {action} action")
        ids[key] = value

    tag_id = _optional_str(args, "tagId")
    if action in ("get", "update", "remove", "revert") and tag_id is None:
        return ValidationError(f"tagId is required for {action} action")

    config = args.get("createOrUpdateConfig")
    patch = None
    if action in ("create", "update"):
        if config is None:
            return ValidationError(f"createOrUpdateConfig is required for {action} action")
        if not isinstance(config, Mapping):
            return ValidationError("createOrUpdateConfig must be an object")
        patch = TagPatch.from_payload(config)
        if patch.ignored_keys:
            log.warning("Ignoring unsupported createOrUpdateConfig keys: %s", ", ".join(patch.ignored_keys))
        if action == "create" and not patch.fields.type:
            return ValidationError(
                f"'type' field is required in createOrUpdateConfig for {action} action. "
                "Specify the tag type (e.g., 'gaawc' for GA4 Configuration)."
            )

    fingerprint = _optional_str(args, "fingerprint")
    if action == "revert" and fingerprint is None:
        return ValidationError(f"fingerprint is required for {action} action")

    page = _int_arg(args, "page", 1)
    if page is None or page < 1:
        return ValidationError("page must be an integer >= 1")
    items_per_page = _int_arg(args, "itemsPerPage", ITEMS_PER_PAGE)
    if items_per_page is None or not 1 <= items_per_page <= ITEMS_PER_PAGE:
        return ValidationError(f"itemsPerPage must be an integer between 1 and {ITEMS_PER_PAGE}")

    return TagCall(
        action=action,
        account_id=ids["accountId"],
        container_id=ids["containerId"],
        workspace_id=ids["workspaceId"],
        tag_id=tag_id,
        patch=patch,
        fingerprint=fingerprint,
        page=page,
        items_per_page=items_per_page,
    )


def _update_tag(ctx: ServerContext, call: TagCall) -> dict:
    store = ctx.tags()
    log.info("Fetching existing tag %s before update", call.tag_id)
    existing = store.get(call.path)
    if not existing:
        raise LookupError(f"Could not retrieve existing tag {call.tag_id} for update")

    merged = reconcile(Tag.from_api(existing), call.patch, call.fingerprint)
    log.info("Updating tag %s with merged fields", call.tag_id)
    return store.update(call.path, merged.to_api(), merged.fingerprint)


def run_tag_action(ctx: ServerContext, call: TagCall) -> dict:
    if call.action in WRITE_ACTIONS and not ctx.settings.allow_writes:
        raise WritesDisabledError()

    if call.action == "create":
        return ctx.tags().create(call.parent, call.patch.fields.to_api())
    if call.action == "get":
        return ctx.tags().get(call.path)
    if call.action == "list":
        return paginate(ctx.tags().list_all(call.parent), call.page, call.items_per_page)
    if call.action == "update":
        return _update_tag(ctx, call)
    if call.action == "remove":
        ctx.tags().delete(call.path)
        return {"success": True, "message": f"Tag {call.tag_id} was successfully deleted"}
    # revert
    return ctx.tags().revert(call.path, call.fingerprint)


def gtm_tag(ctx: ServerContext, args: Mapping[str, Any]) -> dict:
    action = args.get("action")
    log.info("Running tool: gtm_tag with action %s", action)
    context = f"Error performing {action} on GTM tag"

    checked = validate_tag_call(args)
    if isinstance(checked, ValidationError):
        return error_result(context, checked)

    try:
        return json_result(run_tag_action(ctx, checked))
    except Exception as e:
        return error_result(context, e)


# ---- session ----
def remove_session_data(ctx: ServerContext, args: Mapping[str, Any]) -> dict:
    log.info("Running tool: %s", REMOVE_SESSION_TOOL)
    cleared = ctx.reset()
    message = "Cached Google credentials were cleared" if cleared else "No cached Google credentials to clear"
    return json_result({"success": True, "message": message})


TOOL_HANDLERS: dict[str, Callable[[ServerContext, Mapping[str, Any]], dict]] = {
    "gtm_tag": gtm_tag,
    REMOVE_SESSION_TOOL: remove_session_data,
}


def handle_tool_call(ctx: ServerContext, name: str, arguments: Mapping[str, Any]) -> dict:
    handler = TOOL_HANDLERS.get(name)
    if not isinstance(arguments, Mapping):
        arguments = {}
    if handler is None:
        return error_result("Error calling tool", f"Unsupported tool '{name}'")
    return handler(ctx, arguments)
