"""
Unit tests for ApplicantSession.

The applicant login is a POST made with the company token, so these tests also
check that it rides on the company session's refresh and retry handling.

Run: python3 -m pytest heyrecruit/auth/__tests__/test_applicant_session.py -v
"""

import hashlib
import hmac
import json
from datetime import timedelta

import pytest

from heyrecruit.auth.applicant_session import ApplicantSession
from heyrecruit.auth.errors import AuthenticationError, ConfigurationError
from heyrecruit.auth.models import ApplicantCredentials, SessionState

APPLICANT = {"email": "jane@example.com", "password": "hunter2"}


@pytest.fixture
def applicant(make_session):
    return ApplicantSession(make_session(), APPLICANT)


class TestConfigure:

    @pytest.mark.parametrize("credentials", [
        None,
        {},
        {"email": "jane@example.com"},
        {"password": "hunter2"},
        {"email": "  ", "password": "hunter2"},
        {"email": "jane@example.com", "password": ""},
    ])
    def test_missing_credentials_rejected(self, make_session, upstream, credentials):
        with pytest.raises(ConfigurationError):
            ApplicantSession(make_session(), credentials)
        assert upstream.applicant_requests == []
        assert upstream.auth_calls == 0

    def test_configure_resets_state(self, applicant):
        applicant.authenticate()

        applicant.configure(ApplicantCredentials(email="john@example.com", password="pw"))

        assert applicant.state == SessionState.UNAUTHENTICATED
        assert applicant.get_auth_data()["token"] is None


class TestAuthenticate:

    def test_login_uses_company_token(self, applicant, upstream, clock, bearer_of):
        result = applicant.authenticate()

        assert upstream.auth_calls == 1
        request = upstream.applicant_requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/v2/rest_applicants/auth"
        assert bearer_of(request) == "token-1"

        assert result.token == "applicant-token-1"
        assert result.expires_at == clock() + timedelta(seconds=3600)
        assert applicant.state == SessionState.VALID

    def test_payload_is_signed(self, applicant, upstream, clock):
        applicant.authenticate()

        stamp = int(clock().timestamp())
        expected = hmac.new(b"hunter2", str(stamp).encode(), hashlib.sha256).hexdigest()
        assert json.loads(upstream.applicant_requests[0].read()) == {
            "applicant_email": "jane@example.com",
            "applicant_signature": expected,
            "timestamp": stamp,
        }

    def test_auth_data_includes_applicant_data(self, applicant):
        applicant.authenticate()

        data = applicant.get_auth_data()

        assert data["token"] == "applicant-token-1"
        assert data["data"] == {"applicant_id": "a-1"}

    def test_refused_login(self, applicant, upstream):
        upstream.applicant_responses.append((200, {"success": False, "error": {"message": "Wrong password"}}))

        with pytest.raises(AuthenticationError) as exc_info:
            applicant.authenticate()

        assert "Wrong password" in str(exc_info.value)
        assert applicant.state == SessionState.FAILED
        assert applicant.ensure_valid() is False
        assert len(upstream.applicant_requests) == 1

    def test_company_auth_failure(self, applicant, upstream):
        upstream.auth_responses.append((200, {"status": "error", "message": "Client disabled"}))

        with pytest.raises(AuthenticationError) as exc_info:
            applicant.authenticate()

        assert "Client disabled" in str(exc_info.value)
        assert upstream.applicant_requests == []
        assert applicant.company_session.state == SessionState.FAILED

    def test_expired_company_token_refreshed(self, applicant, upstream, expired_token_body, bearer_of):
        upstream.applicant_responses.append((401, expired_token_body))

        result = applicant.authenticate()

        assert result.token == "applicant-token-2"
        assert upstream.auth_calls == 2
        assert [bearer_of(r) for r in upstream.applicant_requests] == ["token-1", "token-2"]

    def test_unusable_expiry(self, applicant, upstream):
        upstream.applicant_responses.append(
            (200, {"success": True, "token": "t", "expiration_date": "1700000000000"})
        )

        with pytest.raises(AuthenticationError):
            applicant.authenticate()
        assert applicant.state == SessionState.FAILED


class TestEnsureValid:

    def test_valid_token_no_network(self, applicant, upstream):
        applicant.authenticate()

        assert applicant.ensure_valid() is True
        assert len(upstream.applicant_requests) == 1

    def test_renewed_inside_margin(self, applicant, upstream, clock):
        applicant.authenticate()
        clock.advance(3600 - 30)

        assert applicant.state == SessionState.EXPIRED
        assert applicant.ensure_valid() is True
        assert applicant.session.token == "applicant-token-2"

    def test_reset_leaves_failed(self, applicant, upstream):
        upstream.applicant_responses.append((200, {"success": False, "error": {"message": "Locked"}}))
        assert applicant.ensure_valid() is False

        applicant.reset()

        assert applicant.state == SessionState.UNAUTHENTICATED
        assert applicant.ensure_valid() is True

    def test_repr_hides_password(self, applicant):
        assert "hunter2" not in repr(applicant)
        assert "hunter2" not in repr(applicant.credentials)
