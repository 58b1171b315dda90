"""Rule based detection of the organization a meeting belongs to."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from .config import Settings

logger = logging.getLogger(__name__)


class OrganizationConfig(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    name: str
    title_keywords: Tuple[str, ...] = ()
    email_domains: Tuple[str, ...] = ()
    email_addresses: Tuple[str, ...] = ()
    company_names: Tuple[str, ...] = ()


class OrganizationDetectorConfig(BaseModel):
    """Organizations in priority order plus feature toggles.

    Field names accept both ``snake_case`` and the ``camelCase`` keys used by
    existing JSON config files.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    organizations: Tuple[OrganizationConfig, ...] = ()
    default_organization: Optional[str] = "Unknown"
    use_calendar_data: bool = True
    use_people_data: bool = True
    use_title_keywords: bool = True


DEFAULT_CONFIG = OrganizationDetectorConfig(
    organizations=(
        OrganizationConfig(
            name="Organization1",
            title_keywords=("org1", "organization1"),
            email_domains=("org1.com", "organization1.com"),
            email_addresses=("admin@org1.com",),
            company_names=("Organization One, Inc.",),
        ),
        OrganizationConfig(
            name="Organization2",
            title_keywords=("org2", "organization2"),
            email_domains=("org2.org", "organization2.org"),
            email_addresses=("admin@org2.org",),
            company_names=("Organization Two, LLC",),
        ),
    ),
)


def _get(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, Mapping):
            return None
        data = data.get(key)
    return data


def _domain(email: str) -> str:
    _, _, domain = email.lower().partition("@")
    return domain


class OrganizationDetector:
    def __init__(self, config: OrganizationDetectorConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def detect_organization(self, meeting: Optional[Mapping[str, Any]]) -> Optional[str]:
        if not meeting:
            return self.config.default_organization

        strategies: List[Tuple[bool, Callable[[], Optional[str]]]] = [
            (self.config.use_calendar_data, lambda: self._detect_from_calendar(meeting.get("google_calendar_event"))),
            (self.config.use_title_keywords, lambda: self._detect_from_title(meeting.get("title"))),
            (self.config.use_people_data, lambda: self._detect_from_people(meeting.get("people"))),
        ]
        for enabled, strategy in strategies:
            if not enabled:
                continue
            organization = strategy()
            if organization:
                return organization
        return self.config.default_organization

    def _detect_from_title(self, title: Optional[str]) -> Optional[str]:
        if not title:
            return None
        lowered = title.lower()
        for org in self.config.organizations:
            if any(keyword.lower() in lowered for keyword in org.title_keywords):
                return org.name
        return None

    def _match_email(self, email: Optional[str]) -> Optional[str]:
        if not email:
            return None
        lowered = email.lower()
        for org in self.config.organizations:
            if any(address.lower() == lowered for address in org.email_addresses):
                return org.name
        return self._match_domain(lowered)

    def _match_domain(self, email: str) -> Optional[str]:
        domain = _domain(email)
        for org in self.config.organizations:
            if any(candidate.lower() in domain for candidate in org.email_domains):
                return org.name
        return None

    def _majority_by_domain(self, attendees: Any) -> Optional[str]:
        if not isinstance(attendees, list) or not attendees:
            return None
        counts: Dict[str, int] = {}
        for attendee in attendees:
            email = _get(attendee, "email")
            if not email:
                continue
            domain = _domain(email)
            for org in self.config.organizations:
                if any(candidate.lower() in domain for candidate in org.email_domains):
                    counts[org.name] = counts.get(org.name, 0) + 1
        best: Optional[str] = None
        best_count = 0
        # strict comparison: ties stay with the first organization that reached the count
        for name, count in counts.items():
            if count > best_count:
                best, best_count = name, count
        return best

    def _detect_from_calendar(self, event: Any) -> Optional[str]:
        if not event:
            return None
        return self._match_email(_get(event, "creator", "email")) or self._majority_by_domain(
            _get(event, "attendees")
        )

    def _detect_from_people(self, people: Any) -> Optional[str]:
        if not people:
            return None
        company = _get(people, "creator", "details", "company", "name")
        if company:
            lowered = company.lower()
            for org in self.config.organizations:
                if any(name.lower() in lowered for name in org.company_names):
                    return org.name
        return self._match_email(_get(people, "creator", "email")) or self._majority_by_domain(
            _get(people, "attendees")
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "OrganizationDetector":
        """Load a JSON config, falling back to ``DEFAULT_CONFIG`` when it cannot be used."""
        try:
            raw = Path(path).read_text(encoding="utf-8")
            config = OrganizationDetectorConfig.model_validate_json(raw)
        except (OSError, UnicodeDecodeError, ValidationError) as exc:
            logger.warning("Could not load organization config from %s, using defaults: %s", path, exc)
            return cls()
        return cls(config)

    @classmethod
    def from_settings(cls, settings: Settings) -> "OrganizationDetector":
        if settings.organization_config is None:
            return cls()
        return cls.from_file(settings.organization_config)
