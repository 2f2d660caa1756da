"""
TokenSession: the authenticated-request lifecycle.

Guarantees every outbound request carries a currently-valid bearer token:

1. authenticate(): exchange credentials for a token (or adopt a cached one)
2. ensure_valid(): refresh proactively once the token is inside the expiry margin
3. authorized_request(): attach the token, and on an expired-token 401 refresh
   and re-issue the request, at most max_attempts times in total

State machine:
    UNAUTHENTICATED -> VALID -> EXPIRED -> VALID   (successful authenticate)
                                        -> FAILED  (hard auth error / retry bound hit)

FAILED is terminal until configure() or reset() is called.

Usage:
    session = TokenSession(
        "https://api.heyrecruit.de/api/v2",
        Credentials(client_id="42", client_secret="s3cret"),
    )
    result = session.authorized_request("GET", "jobs/index", {"company": 42})
    if result.ok:
        jobs = result.body["data"]
"""

import json
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import httpx

from heyrecruit.auth.cache import SessionCache
from heyrecruit.auth.errors import AuthenticationError, ConfigurationError
from heyrecruit.auth.models import ApiResponse, Credentials, CredentialsInput, Session, SessionState
from heyrecruit.auth.strategies import AuthResponseStrategy, StatusOkStrategy, get_strategy
from heyrecruit.utils.sdk_logging import ComponentType, SdkLoggerMixin

DEFAULT_EXPIRY_MARGIN = timedelta(seconds=60)
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_TIMEOUT = 10.0


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_json_body(response: httpx.Response) -> Any:
    """
    Parse a response body as JSON.

    The upstream sometimes prefixes payloads with a UTF-8 BOM, so decode with
    utf-8-sig first. Empty or non-JSON bodies return None.
    """
    if not response.content:
        return None
    try:
        return json.loads(response.content.decode("utf-8-sig"))
    except (ValueError, UnicodeDecodeError):
        return None


class TokenSession(SdkLoggerMixin):
    """
    Owns credentials, the current Session, and refresh/retry logic.

    Thread-safety: one RLock guards every refresh. Readers take the immutable
    Session snapshot without locking; callers that see an expired token queue
    on the lock and re-check, so only one auth call is ever in flight.
    """

    component_type = ComponentType.TOKEN_SESSION

    def __init__(
        self,
        api_base_url: str,
        credentials: CredentialsInput,
        strategy: Optional[AuthResponseStrategy] = None,
        cache: Optional[SessionCache] = None,
        expiry_margin: timedelta = DEFAULT_EXPIRY_MARGIN,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
        http_client: Optional[httpx.Client] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize a token session. No network call is made.

        Args:
            api_base_url: Base URL of the REST API (trailing slash optional)
            credentials: Credentials or a {'client_id', 'client_secret'} mapping
            strategy: Auth response interpretation (default: Heyrecruit status=OK)
            cache: Optional cross-request session store
            expiry_margin: Treat tokens as expired this long before their expiry
            max_attempts: Total attempts per request when the token is rejected as expired
            timeout: HTTP timeout in seconds (ignored when http_client is given)
            transport: Optional httpx transport (tests use httpx.MockTransport)
            http_client: Optional preconfigured httpx.Client; not closed by close()
            clock: Returns the current aware datetime

        Raises:
            ConfigurationError: If the base URL or credentials are missing
        """
        if not isinstance(api_base_url, str) or not api_base_url.strip():
            raise ConfigurationError("Missing api_base_url parameter.")
        if max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        if expiry_margin < timedelta(0):
            raise ConfigurationError("expiry_margin cannot be negative")

        self.api_base_url = api_base_url.strip().rstrip("/")
        self.strategy = strategy or StatusOkStrategy()
        self.cache = cache
        self.expiry_margin = expiry_margin
        self.max_attempts = max_attempts
        self._clock = clock or utc_now

        self._lock = threading.RLock()
        self._session = Session()
        self._failed = False
        self.last_error: Optional[AuthenticationError] = None
        self.credentials: Optional[Credentials] = None
        self.configure(credentials)

        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(
            base_url=self.api_base_url,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]], **kwargs) -> "TokenSession":
        """
        Build from a config mapping (see Settings.to_client_config()).

        Required keys: api_base_url, client_id, client_secret.
        Optional keys: auth_format, expiry_margin_seconds, max_attempts, timeout,
        expired_token_markers. Extra kwargs are passed to __init__.

        Raises:
            ConfigurationError: If config is empty or a required key is missing
        """
        if not config:
            raise ConfigurationError("No configuration settings submitted.")

        if "strategy" not in kwargs:
            markers: Optional[Sequence[str]] = config.get("expired_token_markers") or None
            try:
                kwargs["strategy"] = get_strategy(
                    config.get("auth_format") or "heyrecruit",
                    expired_token_markers=markers,
                )
            except ValueError as e:
                raise ConfigurationError(str(e))

        return cls(
            api_base_url=config.get("api_base_url"),
            credentials={
                "client_id": config.get("client_id"),
                "client_secret": config.get("client_secret"),
            },
            expiry_margin=timedelta(
                seconds=config.get("expiry_margin_seconds", DEFAULT_EXPIRY_MARGIN.total_seconds())
            ),
            max_attempts=config.get("max_attempts", DEFAULT_MAX_ATTEMPTS),
            timeout=config.get("timeout", DEFAULT_TIMEOUT),
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Configuration & state
    # ------------------------------------------------------------------

    def configure(self, credentials: CredentialsInput) -> None:
        """
        Validate and store credentials. Resets the session to UNAUTHENTICATED.

        Raises:
            ConfigurationError: If client_id or client_secret is missing/empty
        """
        if not isinstance(credentials, Credentials):
            credentials = Credentials.from_dict(credentials)

        with self._lock:
            self.credentials = credentials
            self._session = Session()
            self._failed = False
            self.last_error = None

    def reset(self) -> None:
        """Drop the current token (locally and in the cache) and leave FAILED."""
        with self._lock:
            self._session = Session()
            self._failed = False
            self.last_error = None
            if self.cache is not None:
                self.cache.set(Session())
        self.log_info("Session reset")

    @property
    def session(self) -> Session:
        return self._session

    @property
    def state(self) -> SessionState:
        if self._failed:
            return SessionState.FAILED
        current = self._session
        if not current.has_token:
            return SessionState.UNAUTHENTICATED
        if current.is_valid(self._clock(), self.expiry_margin):
            return SessionState.VALID
        return SessionState.EXPIRED

    def get_auth_data(self) -> Dict[str, Any]:
        """Current token and expiry as a plain dict"""
        return self._session.to_dict()

    def _log_context(self) -> str:
        client_id = self.credentials.client_id if self.credentials else "-"
        return f"client_id={client_id}"

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def _is_usable(self, session: Optional[Session]) -> bool:
        return isinstance(session, Session) and session.is_valid(self._clock(), self.expiry_margin)

    def _fail(self, error: AuthenticationError) -> None:
        self._failed = True
        self.last_error = error

    def authenticate(self, rejected_token: Optional[str] = None) -> Session:
        """
        Exchange the stored credentials for a token.

        A still-valid session from the cache is adopted without a network
        call, unless it was issued to another client_id or carries
        rejected_token (the token the upstream just refused as expired).

        Returns:
            The new (or cached) Session

        Raises:
            AuthenticationError: If the upstream refuses the credentials or
                returns an unusable token. The session enters FAILED.
            httpx.HTTPError: On transport failures
        """
        with self._lock:
            if self.cache is not None:
                cached = self.cache.get()
                if (
                    self._is_usable(cached)
                    and cached.belongs_to(self.credentials.client_id)
                    and cached.token != rejected_token
                ):
                    self._session = cached
                    self._failed = False
                    self.log_debug(f"Reusing cached token valid until {cached.expires_at.isoformat()}")
                    return cached

            request = self.strategy.build_auth_request(self.credentials)
            self.log_info(f"Requesting token from {request.path}")
            response = self._http.post(request.path, data=request.data)
            body = parse_json_body(response)

            if not self.strategy.is_success(body):
                message = self.strategy.error_message(body)
                error = AuthenticationError(
                    f"Auth error! Message from Heyrecruit: {message}",
                    status_code=response.status_code,
                    body=body,
                )
                self._fail(error)
                self.log_error(f"Authentication failed ({response.status_code}): {message}")
                raise error

            try:
                session = Session(
                    token=self.strategy.extract_token(body),
                    expires_at=self.strategy.extract_expiry(body),
                    client_id=self.credentials.client_id,
                )
            except AuthenticationError as e:
                self._fail(e)
                self.log_error(str(e))
                raise

            if not self._is_usable(session):
                error = AuthenticationError(
                    f"Upstream issued a token expiring at {session.expires_at.isoformat()}, "
                    f"inside the {int(self.expiry_margin.total_seconds())}s expiry margin",
                    status_code=response.status_code,
                    body=body,
                )
                self._fail(error)
                self.log_error(str(error))
                raise error

            self._session = session
            self._failed = False
            self.last_error = None
            if self.cache is not None:
                self.cache.set(session)

            self.log_info(f"Authenticated, token valid until {session.expires_at.isoformat()}")
            return session

    def ensure_valid(self) -> bool:
        """
        Make sure a token outside the expiry margin is available.

        Returns:
            True if the current token is valid or was refreshed,
            False if the session is FAILED or authentication failed
            (the error is kept in last_error)
        """
        if self._failed:
            return False
        if self._is_usable(self._session):
            return True

        with self._lock:
            # Another caller may have refreshed while we waited
            if self._failed:
                return False
            if self._is_usable(self._session):
                return True
            try:
                self.authenticate()
            except AuthenticationError as e:
                self.log_warning(f"Token refresh failed: {e.message}")
                return False
            return True

    def _refresh_rejected(self, rejected_token: str) -> bool:
        """Refresh after the upstream refused rejected_token, once per stale token."""
        with self._lock:
            if self._failed:
                return False
            current = self._session
            if current.token != rejected_token and self._is_usable(current):
                return True
            try:
                self.authenticate(rejected_token=rejected_token)
            except AuthenticationError as e:
                self.log_warning(f"Token refresh failed: {e.message}")
                return False
            return True

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _auth_failure(self, message: Optional[str] = None, upstream_body: Any = None) -> ApiResponse:
        if message is None:
            message = self.last_error.message if self.last_error else "Auth error!"
        body: Dict[str, Any] = {"success": False, "message": message}
        if upstream_body is not None:
            body["response"] = upstream_body
        return ApiResponse(status_code=401, body=body)

    def _send(
        self,
        method: str,
        path: str,
        token: str,
        payload: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        request_headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        if headers:
            request_headers.update(headers)

        if method == "GET":
            response = self._http.request(method, path, params=payload, headers=request_headers)
        else:
            response = self._http.request(method, path, json=payload, headers=request_headers)

        self.log_debug(f"{method} {path} -> {response.status_code}")
        return ApiResponse(status_code=response.status_code, body=parse_json_body(response))

    def authorized_request(
        self,
        method: str,
        path: str,
        payload: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        """
        Issue a request with a valid bearer token. Every endpoint goes through here.

        Args:
            method: HTTP method
            path: Path relative to the base URL (e.g. 'jobs/index')
            payload: Query params for GET, JSON body otherwise
            headers: Extra headers (Authorization is always set)

        Returns:
            ApiResponse with the raw status code and parsed body. Auth failures
            come back as status 401 with {'success': False, 'message': ...}.

        Raises:
            httpx.HTTPError: On transport failures
        """
        method = method.upper()

        if not self.ensure_valid():
            return self._auth_failure()

        last_response: Optional[ApiResponse] = None
        for attempt in range(1, self.max_attempts + 1):
            token = self._session.token
            if token is None:
                # Dropped by a concurrent reset() or configure()
                return self._auth_failure()
            response = self._send(method, path, token, payload, headers)

            if not self.strategy.is_expired_token(response.status_code, response.body):
                return response

            last_response = response
            self.log_warning(
                f"{method} {path} rejected with expired token "
                f"(attempt {attempt}/{self.max_attempts})"
            )
            if attempt == self.max_attempts:
                break
            if not self._refresh_rejected(token):
                return self._auth_failure(upstream_body=response.body)

        error = AuthenticationError(
            f"Auth error! Token rejected as expired {self.max_attempts} times",
            status_code=401,
            body=last_response.body,
        )
        with self._lock:
            self._fail(error)
        self.log_error(error.message)
        return self._auth_failure(error.message, upstream_body=last_response.body)

    def get(self, path: str, params: Any = None) -> ApiResponse:
        return self.authorized_request("GET", path, params)

    def post(self, path: str, data: Any = None) -> ApiResponse:
        return self.authorized_request("POST", path, data)

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "TokenSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(base_url={self.api_base_url}, "
            f"client_id={self.credentials.client_id if self.credentials else None}, "
            f"state={self.state.value})"
        )
