"""
ApplicantSession: token for an applicant who already applied with the company.

The applicant login is not a second credential exchange against the auth
endpoint. It is a business call made with the company token, so it goes
through the company TokenSession.authorized_request() and inherits its
refresh and retry handling. The upstream answers in the SCOPE shape
({success, token, expiration_date, data}).

Usage:
    company = TokenSession(base_url, {"client_id": "42", "client_secret": "s3cret"})
    applicant = ApplicantSession(company, {"email": "jane@example.com", "password": "..."})
    applicant.authenticate()
    applicant.get_auth_data()  # {'token': ..., 'expiration': ..., 'data': {...}}
"""

import hashlib
import hmac
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from heyrecruit.auth.errors import AuthenticationError
from heyrecruit.auth.models import ApplicantCredentials, ApplicantCredentialsInput, Session, SessionState
from heyrecruit.auth.strategies import SuccessFlagStrategy
from heyrecruit.auth.token_session import TokenSession
from heyrecruit.utils.sdk_logging import ComponentType, SdkLoggerMixin


class ApplicantSession(SdkLoggerMixin):
    """
    Applicant login on top of an authenticated company session.

    The password never goes over the wire; the request carries an
    HMAC-SHA256 signature of the current unix timestamp keyed with it.
    """

    component_type = ComponentType.APPLICANT_SESSION
    AUTH_PATH = "rest_applicants/auth"

    def __init__(
        self,
        company_session: TokenSession,
        credentials: ApplicantCredentialsInput,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            company_session: Session whose token authorizes the applicant login
            credentials: ApplicantCredentials or an {'email', 'password'} mapping
            clock: Returns the current aware datetime (default: the company session clock)

        Raises:
            ConfigurationError: If email or password is missing
        """
        self.company_session = company_session
        self._clock = clock or company_session._clock
        self._reader = SuccessFlagStrategy()
        self._lock = threading.RLock()
        self._session = Session()
        self._data: Any = None
        self._failed = False
        self.last_error: Optional[AuthenticationError] = None
        self.credentials: Optional[ApplicantCredentials] = None
        self.configure(credentials)

    def configure(self, credentials: ApplicantCredentialsInput) -> None:
        if not isinstance(credentials, ApplicantCredentials):
            credentials = ApplicantCredentials.from_dict(credentials)

        with self._lock:
            self.credentials = credentials
            self._session = Session()
            self._data = None
            self._failed = False
            self.last_error = None

    def reset(self) -> None:
        with self._lock:
            self._session = Session()
            self._data = None
            self._failed = False
            self.last_error = None

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
        if current.is_valid(self._clock(), self.company_session.expiry_margin):
            return SessionState.VALID
        return SessionState.EXPIRED

    def get_auth_data(self) -> Dict[str, Any]:
        """Applicant token, expiry and the applicant data returned at login"""
        return {**self._session.to_dict(), "data": self._data}

    def _log_context(self) -> str:
        return f"client_id={self.company_session.credentials.client_id}"

    def sign(self, timestamp: int) -> str:
        return hmac.new(
            self.credentials.password.encode("utf-8"),
            str(timestamp).encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def build_payload(self) -> Dict[str, Any]:
        stamp = int(self._clock().timestamp())
        return {
            "applicant_email": self.credentials.email,
            "applicant_signature": self.sign(stamp),
            "timestamp": stamp,
        }

    def _fail(self, error: AuthenticationError) -> None:
        self._failed = True
        self.last_error = error
        self.log_error(error.message)

    def authenticate(self) -> Session:
        """
        Log the applicant in using the company token.

        Raises:
            AuthenticationError: If the company session cannot authenticate or
                the upstream refuses the applicant. The session enters FAILED.
            httpx.HTTPError: On transport failures
        """
        with self._lock:
            result = self.company_session.authorized_request("POST", self.AUTH_PATH, self.build_payload())
            body = result.body

            if not self._reader.is_success(body):
                message = self._reader.error_message(body)
                error = AuthenticationError(
                    f"Auth error! Message from Heyrecruit: {message}",
                    status_code=result.status_code,
                    body=body,
                )
                self._fail(error)
                raise error

            try:
                session = Session(
                    token=self._reader.extract_token(body),
                    expires_at=self._reader.extract_expiry(body),
                    client_id=self.company_session.credentials.client_id,
                )
            except AuthenticationError as e:
                self._fail(e)
                raise

            self._session = session
            self._data = body.get("data")
            self._failed = False
            self.last_error = None
            self.log_info(f"Applicant authenticated, token valid until {session.expires_at.isoformat()}")
            return session

    def ensure_valid(self) -> bool:
        """True if the applicant token is outside the expiry margin or was renewed"""
        if self._failed:
            return False
        margin = self.company_session.expiry_margin
        if self._session.is_valid(self._clock(), margin):
            return True

        with self._lock:
            if self._failed:
                return False
            if self._session.is_valid(self._clock(), margin):
                return True
            try:
                self.authenticate()
            except AuthenticationError as e:
                self.log_warning(f"Applicant login failed: {e.message}")
                return False
            return True

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(email={self.credentials.email if self.credentials else None}, "
            f"state={self.state.value})"
        )
