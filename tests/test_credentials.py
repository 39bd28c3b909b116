"""Tests for the per-session credential bundle."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from adhd_scheduler.credentials import CredentialBundle, InvalidTokenResponseError

pytestmark = pytest.mark.unit

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


class TestFromTokenResponse:
    def test_full_payload(self):
        bundle = CredentialBundle.from_token_response(
            {
                "access_token": "ya29.abc",
                "refresh_token": "1//refresh",
                "expires_in": 3600,
                "scope": "calendar",
                "token_type": "Bearer",
            },
            now=NOW,
        )
        assert bundle.access_token == "ya29.abc"
        assert bundle.refresh_token == "1//refresh"
        assert bundle.expires_at == NOW + timedelta(seconds=3600)
        assert bundle.scope == "calendar"

    def test_missing_access_token_rejected(self):
        with pytest.raises(InvalidTokenResponseError):
            CredentialBundle.from_token_response({"refresh_token": "x"})

    def test_non_object_rejected(self):
        with pytest.raises(InvalidTokenResponseError):
            CredentialBundle.from_token_response(["ya29.abc"])

    def test_no_expiry_means_never_expired(self):
        bundle = CredentialBundle.from_token_response({"access_token": "a"}, now=NOW)
        assert bundle.expires_at is None
        assert bundle.is_expired(now=NOW + timedelta(days=365)) is False

    def test_fallback_refresh_token_used_when_absent(self):
        bundle = CredentialBundle.from_token_response(
            {"access_token": "a", "expires_in": 60}, fallback_refresh_token="1//old"
        )
        assert bundle.refresh_token == "1//old"

    def test_blank_access_token_rejected_by_model(self):
        with pytest.raises(ValidationError):
            CredentialBundle(access_token="   ")


class TestExpiry:
    def test_not_expired_before_skew_window(self):
        bundle = CredentialBundle(access_token="a", expires_at=NOW + timedelta(minutes=5))
        assert bundle.is_expired(now=NOW) is False

    def test_expired_inside_skew_window(self):
        bundle = CredentialBundle(access_token="a", expires_at=NOW + timedelta(seconds=30))
        assert bundle.is_expired(now=NOW) is True

    def test_naive_expiry_treated_as_utc(self):
        bundle = CredentialBundle(access_token="a", expires_at=datetime(2024, 1, 1, 13, 0))
        assert bundle.expires_at.tzinfo is UTC

    def test_with_refreshed_keeps_refresh_token(self):
        bundle = CredentialBundle(access_token="old", refresh_token="1//keep", expires_at=NOW)
        refreshed = bundle.with_refreshed({"access_token": "new", "expires_in": 3600}, now=NOW)
        assert refreshed.access_token == "new"
        assert refreshed.refresh_token == "1//keep"
        assert refreshed.is_expired(now=NOW) is False


class TestRedaction:
    def test_repr_hides_tokens(self):
        bundle = CredentialBundle(access_token="ya29.secret", refresh_token="1//secret")
        assert "ya29.secret" not in repr(bundle)
        assert "1//secret" not in str(bundle)
        assert "<REDACTED>" in repr(bundle)

    def test_authorization_header(self):
        bundle = CredentialBundle(access_token="ya29.abc")
        assert bundle.authorization_header() == {"Authorization": "Bearer ya29.abc"}

    def test_bundle_is_immutable(self):
        bundle = CredentialBundle(access_token="a")
        with pytest.raises(ValidationError):
            bundle.access_token = "b"
