"""
Pytest configuration and fixtures for testing.

No real network: every TokenSession under test talks to MockUpstream through
httpx.MockTransport.
- MockUpstream issues tokens 'token-1', 'token-2', ... from its auth endpoint
  and counts auth calls (thread-safe, for the concurrency tests)
- The applicant login answers in the SCOPE shape with 'applicant-token-N'
- Business responses can be scripted as (status, body) tuples or callables
- FakeClock drives expiry so tests never sleep past a token's lifetime
"""
import threading
import time
from collections import deque
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from heyrecruit.auth.token_session import TokenSession

BASE_URL = "https://api.heyrecruit.test/api/v2"

EXPIRED_TOKEN_BODY = {
    "success": False,
    "error": {"code": 401, "detail": "Expired token", "message": "Unauthorized"},
}


class FakeClock:
    """Controllable replacement for datetime.now(timezone.utc)"""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime.now(timezone.utc).replace(microsecond=0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class MockUpstream:
    """
    In-process fake of the Heyrecruit API.

    Usage:
        upstream.api_responses.append((401, EXPIRED_TOKEN_BODY))
        upstream.api_responses.append(lambda request: httpx.Response(200, json={}))
    """

    def __init__(self, clock: FakeClock, token_lifetime: int = 3600):
        self.clock = clock
        self.token_lifetime = token_lifetime
        self.auth_calls = 0
        self.auth_requests: list[httpx.Request] = []
        self.requests: list[httpx.Request] = []
        self.auth_responses: deque = deque()
        self.applicant_requests: list[httpx.Request] = []
        self.applicant_responses: deque = deque()
        self.api_responses: deque = deque()
        self.default_api_response = (200, {"success": True, "data": []})
        self.auth_delay = 0.0
        self._lock = threading.Lock()

    def _respond(self, scripted, request: httpx.Request) -> httpx.Response:
        if callable(scripted):
            return scripted(request)
        status, body = scripted
        return httpx.Response(status, json=body)

    def applicant_login(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.applicant_requests.append(request)
            number = len(self.applicant_requests)
            scripted = self.applicant_responses.popleft() if self.applicant_responses else None
        if scripted is not None:
            return self._respond(scripted, request)
        expires_at = self.clock() + timedelta(seconds=self.token_lifetime)
        return httpx.Response(200, json={
            "success": True,
            "token": f"applicant-token-{number}",
            "expiration_date": expires_at.strftime("%Y-%m-%d %H:%M:%S"),
            "data": {"applicant_id": "a-1"},
        })

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/rest_applicants/auth"):
            return self.applicant_login(request)

        if request.url.path.endswith("/auth"):
            with self._lock:
                self.auth_calls += 1
                number = self.auth_calls
                self.auth_requests.append(request)
                scripted = self.auth_responses.popleft() if self.auth_responses else None
            if self.auth_delay:
                time.sleep(self.auth_delay)
            if scripted is not None:
                return self._respond(scripted, request)
            return httpx.Response(200, json={
                "status": "OK",
                "data": {
                    "token": f"token-{number}",
                    "expiration": int(self.clock().timestamp()) + self.token_lifetime,
                },
            })

        with self._lock:
            self.requests.append(request)
            scripted = self.api_responses.popleft() if self.api_responses else None
        return self._respond(scripted or self.default_api_response, request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def bearer(request: httpx.Request) -> str:
    """Token sent in a request's Authorization header"""
    return request.headers.get("Authorization", "").removeprefix("Bearer ")


@pytest.fixture
def base_url():
    return BASE_URL


@pytest.fixture
def expired_token_body():
    return dict(EXPIRED_TOKEN_BODY)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upstream(clock):
    return MockUpstream(clock)


@pytest.fixture
def make_session(upstream, clock):
    """
    Factory for TokenSessions wired to the mock upstream.

    Usage:
        def test_something(make_session):
            session = make_session(max_attempts=2)
    """
    created = []

    def _make(**kwargs) -> TokenSession:
        kwargs.setdefault("credentials", {"client_id": "42", "client_secret": "s3cret"})
        kwargs.setdefault("transport", upstream.transport)
        kwargs.setdefault("clock", clock)
        session = TokenSession(kwargs.pop("api_base_url", BASE_URL), **kwargs)
        created.append(session)
        return session

    yield _make

    for session in created:
        session.close()


@pytest.fixture
def bearer_of():
    return bearer
