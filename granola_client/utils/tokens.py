"""Read access tokens stored by the Granola desktop app."""
from __future__ import annotations

import json
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import jwt

from ..http import AuthenticationRequiredError, TokenProvider

logger = logging.getLogger(__name__)

# newest first
TOKEN_FIELDS = (("workos_tokens", "workos"), ("cognito_tokens", "cognito"))


@dataclass(slots=True)
class TokenInfo:
    access_token: str
    token_type: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    is_valid: bool = False


def token_file_path(platform: Optional[str] = None, home: Optional[Path] = None) -> Path:
    platform = platform or sys.platform
    home = home or Path.home()
    if platform == "darwin":
        return home / "Library" / "Application Support" / "Granola" / "supabase.json"
    return home / ".config" / "Granola" / "supabase.json"


def is_token_likely_valid(token: str, buffer_minutes: int = 5) -> bool:
    """Check the ``exp`` claim without verifying the signature."""
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return False
    exp = payload.get("exp")
    if exp is None:
        return True
    return time.time() < float(exp) - buffer_minutes * 60


def _parse_tokens(raw: Any) -> Optional[Dict[str, Any]]:
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        return None
    try:
        tokens = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return tokens if isinstance(tokens, dict) else None


def extract_token(path: Optional[Path] = None) -> Optional[TokenInfo]:
    """Return the newest usable token from the desktop app's ``supabase.json``."""
    path = path or token_file_path()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read token file %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        return None

    for field_name, token_type in TOKEN_FIELDS:
        tokens = _parse_tokens(data.get(field_name))
        if not tokens:
            continue
        access_token = tokens.get("access_token")
        if not access_token or access_token == "null":
            continue
        expires_at = None
        if tokens.get("obtained_at") and tokens.get("expires_in"):
            expires_at = int(tokens["obtained_at"] + tokens["expires_in"] * 1000)
        return TokenInfo(
            access_token=access_token,
            token_type=token_type,
            refresh_token=tokens.get("refresh_token"),
            expires_at=expires_at,
            is_valid=is_token_likely_valid(access_token),
        )
    return None


def desktop_token_provider(path: Optional[Path] = None) -> TokenProvider:
    async def provider() -> str:
        info = extract_token(path)
        if info is None:
            raise AuthenticationRequiredError("No Granola desktop token found")
        if not info.is_valid:
            logger.warning("Granola %s token looks expired", info.token_type)
        return info.access_token

    return provider
