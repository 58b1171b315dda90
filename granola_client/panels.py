"""Document panels (AI summaries, action items) served by an undocumented endpoint."""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from .client import GranolaClient
from .http import GranolaError
from .models import DocumentPanel

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")
_SECTION_RE = re.compile(r"<h1>(.*?)</h1>([\s\S]*?)(?=<h1>|$)")
_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&nbsp;", " "),
)


def _decode_entities(text: str) -> str:
    for entity, value in _ENTITIES:
        text = text.replace(entity, value)
    return text


def _prosemirror_text(node: Any) -> str:
    if isinstance(node, str):
        return node
    if not isinstance(node, dict):
        return ""
    if node.get("text"):
        return node["text"]
    children = node.get("content")
    if isinstance(children, list):
        return " ".join(_prosemirror_text(child) for child in children)
    return ""


class PanelClient(GranolaClient):
    async def get_document_panels(self, document_id: str) -> List[DocumentPanel]:
        payload = await self.http.post("/v1/get-document-panels", {"document_id": document_id})
        return [DocumentPanel.model_validate(item) for item in payload or []]

    async def get_document_panel_by_title(self, document_id: str, title: str) -> Optional[DocumentPanel]:
        wanted = title.lower()
        for panel in await self.get_document_panels(document_id):
            if panel.title.lower() == wanted:
                return panel
        return None

    async def has_ai_generated_summary(self, document_id: str) -> bool:
        panel = await self.get_document_panel_by_title(document_id, "Summary")
        return bool(panel and panel.generated_lines)

    async def extract_ai_generated_summary(self, document_id: str) -> Optional[str]:
        panel = await self.get_document_panel_by_title(document_id, "Summary")
        if panel is None or panel.generated_lines is None:
            return None
        text = "\n".join(line.text for line in panel.generated_lines)
        return text or None

    async def has_document_panels(self, document_id: str) -> bool:
        try:
            panels = await self.get_document_panels(document_id)
        except (GranolaError, httpx.HTTPError) as exc:
            logger.warning("Could not load panels for %s: %s", document_id, exc)
            return False
        return bool(panels)

    @staticmethod
    def extract_plain_text_from_panel(panel: DocumentPanel) -> str:
        if panel.original_content:
            text = _decode_entities(_TAG_RE.sub(" ", panel.original_content))
            return re.sub(r"\s+", " ", text).strip()
        if panel.content and panel.content.get("content"):
            return _prosemirror_text(panel.content)
        return ""

    @staticmethod
    def extract_structured_content(panel: DocumentPanel) -> Dict[str, str]:
        """Split the panel HTML into ``{heading: text}`` using its ``<h1>`` sections."""
        if not panel.original_content:
            return {}
        sections: Dict[str, str] = {}
        for match in _SECTION_RE.finditer(panel.original_content):
            heading = match.group(1).strip()
            content = match.group(2).strip()
            content = re.sub(r"<p>([\s\S]*?)</p>", r"\1\n\n", content)
            content = re.sub(r"<li>([\s\S]*?)</li>", "\u2022 \\1\n", content)
            content = re.sub(r"</?[^>]+(>|$)", "", content)
            content = _decode_entities(content)
            content = re.sub(r"\n{3,}", "\n\n", content).strip()
            sections[heading] = content
        return sections
