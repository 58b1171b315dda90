from __future__ import annotations

import asyncio
import json
import logging
import time
from pathlib import Path

import jwt
import pytest

from granola_client.http import AuthenticationRequiredError
from granola_client.utils.tokens import (
    desktop_token_provider,
    extract_token,
    is_token_likely_valid,
    token_file_path,
)

SIGNING_KEY = "granola-test-signing-key-0123456789abcdef"


def _jwt(exp_offset: int) -> str:
    return jwt.encode({"sub": "user", "exp": int(time.time()) + exp_offset}, SIGNING_KEY, algorithm="HS256")


def _write_tokens(path: Path, **fields) -> Path:
    path.write_text(json.dumps(fields), encoding="utf-8")
    return path


def test_token_file_path_per_platform(tmp_path):
    assert token_file_path("darwin", tmp_path) == (
        tmp_path / "Library" / "Application Support" / "Granola" / "supabase.json"
    )
    assert token_file_path("linux", tmp_path) == tmp_path / ".config" / "Granola" / "supabase.json"


def test_is_token_likely_valid():
    assert is_token_likely_valid(_jwt(3600)) is True
    assert is_token_likely_valid(_jwt(-60)) is False
    assert is_token_likely_valid(_jwt(120)) is False
    assert is_token_likely_valid(jwt.encode({"sub": "user"}, SIGNING_KEY, algorithm="HS256")) is True
    assert is_token_likely_valid("not-a-jwt") is False


def test_extract_prefers_workos_tokens(tmp_path):
    access = _jwt(3600)
    path = _write_tokens(
        tmp_path / "supabase.json",
        workos_tokens=json.dumps(
            {"access_token": access, "refresh_token": "refresh", "obtained_at": 1700000000000, "expires_in": 3600}
        ),
        cognito_tokens=json.dumps({"access_token": "cognito-token"}),
    )

    info = extract_token(path)

    assert info is not None
    assert info.access_token == access
    assert info.token_type == "workos"
    assert info.refresh_token == "refresh"
    assert info.expires_at == 1700003600000
    assert info.is_valid is True


def test_extract_falls_back_to_cognito(tmp_path):
    path = _write_tokens(
        tmp_path / "supabase.json",
        workos_tokens="null",
        cognito_tokens=json.dumps({"access_token": "cognito-token"}),
    )

    info = extract_token(path)

    assert info is not None
    assert info.token_type == "cognito"
    assert info.access_token == "cognito-token"
    assert info.is_valid is False


def test_extract_skips_null_access_token(tmp_path):
    path = _write_tokens(tmp_path / "supabase.json", workos_tokens=json.dumps({"access_token": "null"}))

    assert extract_token(path) is None


def test_extract_missing_file(tmp_path):
    assert extract_token(tmp_path / "missing.json") is None


def test_extract_unreadable_file_logs_warning(tmp_path, caplog):
    path = tmp_path / "supabase.json"
    path.write_text("{broken", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        assert extract_token(path) is None

    assert "Could not read token file" in caplog.text


def test_desktop_token_provider(tmp_path):
    access = _jwt(3600)
    path = _write_tokens(tmp_path / "supabase.json", workos_tokens=json.dumps({"access_token": access}))

    provider = desktop_token_provider(path)

    assert asyncio.run(provider()) == access


def test_desktop_token_provider_without_token(tmp_path):
    provider = desktop_token_provider(tmp_path / "missing.json")

    with pytest.raises(AuthenticationRequiredError):
        asyncio.run(provider())
