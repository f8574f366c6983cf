"""Process-wide server context: settings plus a lazily built Tag Manager service."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import google.auth
from googleapiclient.discovery import build

from .config import Settings
from .store import TagStore

log = logging.getLogger(__name__)

TAG_MANAGER_SCOPES = (
    "https://www.googleapis.com/auth/tagmanager.readonly",
    "https://www.googleapis.com/auth/tagmanager.edit.containers",
    "https://www.googleapis.com/auth/tagmanager.edit.containerversions",
    "https://www.googleapis.com/auth/tagmanager.manage.users",
    "https://www.googleapis.com/auth/tagmanager.manage.accounts",
    "https://www.googleapis.com/auth/tagmanager.publish",
)


def load_credentials() -> Any:
    """Application Default Credentials scoped for Tag Manager."""
    log.debug("Required scopes: %s", ", ".join(TAG_MANAGER_SCOPES))
    credentials, project = google.auth.default(scopes=list(TAG_MANAGER_SCOPES))
    log.debug("Google credentials acquired (project=%s)", project or "n/a")
    return credentials


def build_tagmanager_service(credentials: Any) -> Any:
    return build("tagmanager", "v2", credentials=credentials, cache_discovery=False)


class ServerContext:
    """Created once at startup and handed to every transport and tool.

    Only the credentials are cached; loading them twice under a race is
    harmless. Each invocation gets its own service because the underlying
    ``httplib2.Http`` must not be shared between request threads. ``reset``
    forgets the credentials so the next call acquires fresh ones.
    """

    def __init__(
        self,
        settings: Settings,
        credentials_factory: Optional[Callable[[], Any]] = None,
        service_factory: Optional[Callable[[Any], Any]] = None,
    ):
        self.settings = settings
        self._credentials_factory = credentials_factory or load_credentials
        self._service_factory = service_factory or build_tagmanager_service
        self._credentials: Any = None

    def credentials(self) -> Any:
        if self._credentials is None:
            log.debug(
                "Loading Google credentials (GOOGLE_APPLICATION_CREDENTIALS %s)",
                "set" if self.settings.credentials_file else "not set",
            )
            self._credentials = self._credentials_factory()
        return self._credentials

    def tagmanager(self) -> Any:
        return self._service_factory(self.credentials())

    def tags(self) -> TagStore:
        return TagStore(self.tagmanager())

    def reset(self) -> bool:
        had_credentials = self._credentials is not None
        self._credentials = None
        log.info("Cleared cached Tag Manager credentials")
        return had_credentials
