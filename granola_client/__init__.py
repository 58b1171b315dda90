"""Async client for the Granola API with transcript post-processing."""
from __future__ import annotations

from .client import METHOD_ALIASES, GranolaClient
from .config import DEFAULT_BASE_URL, ClientIdentity, HttpOptions, Settings, get_settings
from .http import APIStatusError, AuthenticationRequiredError, GranolaError, Http, RequestTimeoutError
from .organization import DEFAULT_CONFIG, OrganizationConfig, OrganizationDetector, OrganizationDetectorConfig
from .pagination import Page, paginate
from .panels import PanelClient
from .transcript import TranscriptClient, deduplicate_segments, improve_speaker_assignment, text_similarity

__all__ = [
    "APIStatusError",
    "AuthenticationRequiredError",
    "ClientIdentity",
    "DEFAULT_BASE_URL",
    "DEFAULT_CONFIG",
    "GranolaClient",
    "GranolaError",
    "Http",
    "HttpOptions",
    "METHOD_ALIASES",
    "OrganizationConfig",
    "OrganizationDetector",
    "OrganizationDetectorConfig",
    "Page",
    "PanelClient",
    "RequestTimeoutError",
    "Settings",
    "TranscriptClient",
    "deduplicate_segments",
    "get_settings",
    "improve_speaker_assignment",
    "paginate",
    "text_similarity",
]
