"""Granola API client: one coroutine per endpoint plus legacy name resolution."""
from __future__ import annotations

from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

import httpx

from .config import DEFAULT_BASE_URL, HttpOptions, Settings
from .http import Http, Sleep, TokenProvider
from .models import DocumentMetadata, TranscriptSegment
from .pagination import Page, paginate

METHOD_ALIASES: Dict[str, str] = {
    "v1_get_workspaces": "get_workspaces",
    "v2_get_documents": "get_documents",
    "v1_get_document_metadata": "get_document_metadata",
    "v1_get_document_transcript": "get_document_transcript",
    "v1_update_document": "update_document",
    "v1_update_document_panel": "update_document_panel",
    "v1_get_panel_templates": "get_panel_templates",
    "v1_get_people": "get_people",
    "v1_get_feature_flags": "get_feature_flags",
    "v1_get_notion_integration": "get_notion_integration",
    "v1_get_subscriptions": "get_subscriptions",
    "v1_refresh_google_events": "refresh_google_events",
    "v1_check_for_update_latest_mac_yml": "check_for_update",
}


class GranolaClient:
    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        options: Optional[HttpOptions] = None,
        *,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.http = Http(
            token,
            base_url,
            options,
            token_provider=token_provider,
            transport=transport,
            sleep=sleep,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "GranolaClient":
        return cls(settings.token, settings.base_url, settings.http_options(), **kwargs)

    def set_token(self, token: str) -> None:
        self.http.set_token(token)

    def set_token_provider(self, provider: TokenProvider) -> None:
        self.http.set_token_provider(provider)

    async def get_workspaces(self, body: Optional[Dict[str, Any]] = None) -> Any:
        return await self.http.post("/v1/get-workspaces", body or {})

    async def get_documents(self, options: Optional[Dict[str, Any]] = None) -> Any:
        return await self.http.post("/v2/get-documents", options or {})

    async def get_document_metadata(self, document_id: str) -> DocumentMetadata:
        payload = await self.http.post("/v1/get-document-metadata", {"document_id": document_id})
        return DocumentMetadata.model_validate(payload or {})

    async def get_document_transcript(self, document_id: str) -> List[TranscriptSegment]:
        payload = await self.http.post("/v1/get-document-transcript", {"document_id": document_id})
        if isinstance(payload, dict):
            payload = payload.get("transcript")
        return [TranscriptSegment.model_validate(item) for item in payload or []]

    async def update_document(self, document_id: str, updates: Dict[str, Any]) -> Any:
        return await self.http.post("/v1/update-document", {"document_id": document_id, **updates})

    async def update_document_panel(self, document_id: str, panel_id: str, content: Any = None) -> Any:
        return await self.http.post(
            "/v1/update-document-panel",
            {"document_id": document_id, "panel_id": panel_id, "content": content},
        )

    async def get_panel_templates(self, body: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        payload = await self.http.post("/v1/get-panel-templates", body or {})
        if isinstance(payload, dict):
            return payload.get("panel_templates") or []
        return payload or []

    async def get_people(self, body: Optional[Dict[str, Any]] = None) -> Any:
        return await self.http.post("/v1/get-people", body or {})

    async def get_feature_flags(self, body: Optional[Dict[str, Any]] = None) -> Any:
        return await self.http.post("/v1/get-feature-flags", body or {})

    async def get_notion_integration(self, body: Optional[Dict[str, Any]] = None) -> Any:
        return await self.http.post("/v1/get-notion-integration", body or {})

    async def get_subscriptions(self, body: Optional[Dict[str, Any]] = None) -> Any:
        return await self.http.post("/v1/get-subscriptions", body or {})

    async def refresh_google_events(self, body: Optional[Dict[str, Any]] = None) -> Any:
        return await self.http.post("/v1/refresh-google-events", body or {})

    async def check_for_update(self) -> str:
        """Return the YAML release feed of the macOS desktop app."""
        return await self.http.get_text("/v1/check-for-update/latest-mac.yml")

    def list_all_documents(self, options: Optional[Dict[str, Any]] = None) -> AsyncIterator[Dict[str, Any]]:
        base = dict(options or {})

        async def fetch_page(cursor: Optional[str]) -> Page[Dict[str, Any]]:
            body = dict(base)
            if cursor:
                body["cursor"] = cursor
            response = await self.get_documents(body)
            response = response or {}
            return Page(items=response.get("docs") or [], next=response.get("next_cursor"))

        return paginate(fetch_page)

    # legacy endpoint-style names

    async def _legacy_v1_get_document_metadata(self, body: Dict[str, Any]) -> DocumentMetadata:
        return await self.get_document_metadata(body["document_id"])

    async def _legacy_v1_get_document_transcript(self, body: Dict[str, Any]) -> Dict[str, Any]:
        transcript = await self.get_document_transcript(body["document_id"])
        return {"transcript": transcript}

    async def _legacy_v1_update_document(self, body: Dict[str, Any]) -> Any:
        updates = dict(body)
        document_id = updates.pop("document_id")
        return await self.update_document(document_id, updates)

    async def _legacy_v1_update_document_panel(self, body: Dict[str, Any]) -> Any:
        return await self.update_document_panel(body["document_id"], body["panel_id"], body.get("content"))

    async def _legacy_v1_get_panel_templates(self, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        templates = await self.get_panel_templates(body)
        return {"panel_templates": templates}

    def resolve_method(self, name: str) -> Callable[..., Awaitable[Any]]:
        """Return the coroutine function behind ``name``, accepting legacy endpoint names."""
        if name in METHOD_ALIASES:
            adapter = getattr(self, f"_legacy_{name}", None)
            if adapter is not None:
                return adapter
            name = METHOD_ALIASES[name]
        if name.startswith("_") or name not in METHOD_ALIASES.values():
            raise AttributeError(f"{type(self).__name__} has no API method {name!r}")
        return getattr(self, name)
