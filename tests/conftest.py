from __future__ import annotations

import copy

import pytest

from gtm_mcp.config import Settings
from gtm_mcp.context import ServerContext

WS = "accounts/1/containers/2/workspaces/3"


class _Request:
    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


class FakeTagsResource:
    """In-memory stand-in for service.accounts().containers().workspaces().tags()."""

    def __init__(self):
        self.tags: dict[str, dict] = {}
        self.list_pages: list[dict] | None = None
        self.calls: list[tuple[str, dict]] = []
        self.fail_with: Exception | None = None

    def _record(self, name, fn, **kwargs):
        self.calls.append((name, kwargs))

        def run():
            if self.fail_with is not None:
                raise self.fail_with
            return fn()

        return _Request(run)

    def calls_named(self, name):
        return [kw for n, kw in self.calls if n == name]

    def get(self, path):
        return self._record("get", lambda: copy.deepcopy(self.tags[path]), path=path)

    def list(self, parent, pageToken=""):
        def run():
            if self.list_pages is not None:
                by_token = {p.get("_token", ""): p for p in self.list_pages}
                page = by_token[pageToken]
                return {k: v for k, v in page.items() if k != "_token"}
            return {"tag": [copy.deepcopy(t) for p, t in self.tags.items() if p.startswith(parent + "/")]}

        return self._record("list", run, parent=parent, pageToken=pageToken)

    def create(self, parent, body):
        def run():
            tag_id = str(len(self.tags) + 100)
            created = dict(body, tagId=tag_id, path=f"{parent}/tags/{tag_id}", fingerprint="f-new")
            self.tags[created["path"]] = created
            return copy.deepcopy(created)

        return self._record("create", run, parent=parent, body=body)

    def update(self, path, body, fingerprint=None):
        def run():
            stored = dict(body, fingerprint=f"{fingerprint}-next")
            self.tags[path] = stored
            return copy.deepcopy(stored)

        return self._record("update", run, path=path, body=copy.deepcopy(body), fingerprint=fingerprint)

    def delete(self, path):
        return self._record("delete", lambda: self.tags.pop(path) and None, path=path)

    def revert(self, path, fingerprint=None):
        return self._record("revert", lambda: {"tag": copy.deepcopy(self.tags[path])}, path=path, fingerprint=fingerprint)


class FakeTagManager:
    def __init__(self):
        self.tags_resource = FakeTagsResource()

    def accounts(self):
        return self

    def containers(self):
        return self

    def workspaces(self):
        return self

    def tags(self):
        return self.tags_resource


@pytest.fixture
def tagmanager():
    return FakeTagManager()


@pytest.fixture
def fake_tags(tagmanager):
    return tagmanager.tags_resource


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def ctx(settings, tagmanager):
    return ServerContext(settings, credentials_factory=object, service_factory=lambda creds: tagmanager)
