"""
Data model for the token lifecycle.

Credentials and Session are frozen dataclasses: a Session is replaced as a
whole on every refresh, so token and expiry can never be observed out of step.
ApiResponse is the pydantic result shape returned by every authorized request.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel

from heyrecruit.auth.errors import AuthenticationError, ConfigurationError, UpstreamError


class SessionState(str, Enum):
    """Lifecycle state of a TokenSession"""
    UNAUTHENTICATED = "unauthenticated"
    VALID = "valid"
    EXPIRED = "expired"
    FAILED = "failed"


@dataclass(frozen=True)
class Credentials:
    """
    Client credentials of a registered Heyrecruit company.

    Examples:
        creds = Credentials(client_id="42", client_secret="s3cret")
        creds = Credentials.from_dict({"client_id": 42, "client_secret": "s3cret"})
    """
    client_id: str
    client_secret: str

    def __post_init__(self):
        if self.client_id is None or str(self.client_id).strip() == "":
            raise ConfigurationError("Missing CLIENT_ID parameter.")
        if not isinstance(self.client_secret, str) or not self.client_secret.strip():
            raise ConfigurationError("Missing CLIENT_SECRET parameter.")
        # Company ids arrive as ints from some configs
        if not isinstance(self.client_id, str):
            object.__setattr__(self, "client_id", str(self.client_id))

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Credentials":
        """
        Create from a config mapping.

        Raises:
            ConfigurationError: If data is not a mapping or a field is missing/empty
        """
        if not isinstance(data, dict):
            raise ConfigurationError("No credentials submitted.")
        return cls(
            client_id=data.get("client_id"),
            client_secret=data.get("client_secret"),
        )

    def __repr__(self) -> str:
        return f"Credentials(client_id={self.client_id!r}, client_secret='***')"


@dataclass(frozen=True)
class ApplicantCredentials:
    """Login of an applicant who has already applied with the company"""
    email: str
    password: str

    def __post_init__(self):
        if not isinstance(self.email, str) or not self.email.strip():
            raise ConfigurationError("Missing email parameter.")
        if not isinstance(self.password, str) or not self.password:
            raise ConfigurationError("Missing password parameter.")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ApplicantCredentials":
        if not isinstance(data, dict):
            raise ConfigurationError("No applicant credentials submitted.")
        return cls(email=data.get("email"), password=data.get("password"))

    def __repr__(self) -> str:
        return f"ApplicantCredentials(email={self.email!r}, password='***')"


@dataclass(frozen=True)
class Session:
    """
    Current bearer token and its upstream expiry.

    token and expires_at are set and cleared together. An empty Session()
    means no token has been acquired yet. client_id records which client the
    token was issued to, so a shared cache never hands it to another client.
    """
    token: Optional[str] = None
    expires_at: Optional[datetime] = None
    client_id: Optional[str] = None

    def __post_init__(self):
        if (self.token is None) != (self.expires_at is None):
            raise ValueError("token and expires_at must be set together")
        if self.token is not None and not self.token:
            raise ValueError("token cannot be empty")
        if self.expires_at is not None and self.expires_at.tzinfo is None:
            # Naive datetimes are treated as UTC
            object.__setattr__(self, "expires_at", self.expires_at.replace(tzinfo=timezone.utc))

    @property
    def has_token(self) -> bool:
        return self.token is not None

    def belongs_to(self, client_id: Optional[str]) -> bool:
        return self.client_id is not None and self.client_id == client_id

    def is_valid(self, now: datetime, margin: timedelta = timedelta(0)) -> bool:
        """True if a token is present and now < expires_at - margin"""
        if not self.has_token:
            return False
        return now < self.expires_at - margin

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for an external store (JSON friendly)"""
        return {
            "token": self.token,
            "expiration": self.expires_at.isoformat() if self.expires_at else None,
            "client_id": self.client_id,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Session":
        """
        Restore from an external store.

        Malformed data yields an empty Session; the caller still has to check
        is_valid() before trusting a restored token.
        """
        if not isinstance(data, dict):
            return cls()

        token = data.get("token")
        expiration = data.get("expiration")
        if not token or expiration is None:
            return cls()

        try:
            if isinstance(expiration, (int, float)):
                expires_at = datetime.fromtimestamp(expiration, tz=timezone.utc)
            elif isinstance(expiration, datetime):
                expires_at = expiration
            else:
                expires_at = datetime.fromisoformat(str(expiration))
        except (ValueError, OverflowError, OSError):
            return cls()

        client_id = data.get("client_id")
        return cls(
            token=str(token),
            expires_at=expires_at,
            client_id=str(client_id) if client_id is not None else None,
        )


class ApiResponse(BaseModel):
    """Result of an authorized request: raw status code and parsed JSON body (or None)"""
    status_code: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def raise_for_status(self) -> "ApiResponse":
        """
        Convert a failed result into an exception, for callers that prefer them.

        Raises:
            AuthenticationError: On 401
            UpstreamError: On any other non-2xx status
        """
        if self.ok:
            return self
        if self.status_code == 401:
            message = "Auth error!"
            if isinstance(self.body, dict) and self.body.get("message"):
                message = str(self.body["message"])
            raise AuthenticationError(message, status_code=401, body=self.body)
        raise UpstreamError(self.status_code, self.body)


CredentialsInput = Union[Credentials, Dict[str, Any]]
ApplicantCredentialsInput = Union[ApplicantCredentials, Dict[str, Any]]
