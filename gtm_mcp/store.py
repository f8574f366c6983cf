"""Workspace tag endpoints of the Tag Manager v2 API."""

from __future__ import annotations

import logging
from typing import Any

log = logging.getLogger(__name__)


def workspace_path(account_id: str, container_id: str, workspace_id: str) -> str:
    return f"accounts/{account_id}/containers/{container_id}/workspaces/{workspace_id}"


def tag_path(account_id: str, container_id: str, workspace_id: str, tag_id: str) -> str:
    return f"{workspace_path(account_id, container_id, workspace_id)}/tags/{tag_id}"


class TagStore:
    """Thin wrapper over ``service.accounts().containers().workspaces().tags()``.

    Every method issues exactly one request, except ``list_all`` which follows
    ``nextPageToken`` until the collection is exhausted.
    """

    def __init__(self, service: Any):
        self._service = service

    def _tags(self):
        return self._service.accounts().containers().workspaces().tags()

    def get(self, path: str) -> dict:
        return self._tags().get(path=path).execute()

    def list_all(self, parent: str) -> list[dict]:
        items: list[dict] = []
        page_token = ""
        fetches = 0
        while True:
            resp = self._tags().list(parent=parent, pageToken=page_token).execute()
            fetches += 1
            items.extend(resp.get("tag", []) or [])
            page_token = resp.get("nextPageToken") or ""
            if not page_token:
                break
        log.debug("Listed %d tags under %s in %d request(s)", len(items), parent, fetches)
        return items

    def create(self, parent: str, body: dict) -> dict:
        return self._tags().create(parent=parent, body=body).execute()

    def update(self, path: str, body: dict, fingerprint: str) -> dict:
        return self._tags().update(path=path, body=body, fingerprint=fingerprint).execute()

    def delete(self, path: str) -> None:
        self._tags().delete(path=path).execute()

    def revert(self, path: str, fingerprint: str) -> dict:
        return self._tags().revert(path=path, fingerprint=fingerprint).execute()
