"""
Auth response interpretation strategies

The platform has shipped several auth endpoints over time and they disagree on
the request payload and on the response shape:

- Heyrecruit:  POST auth                {status: "OK", data: {token, expiration}}
- SCOPE:       POST rest_companies/auth {success: true, token, expiration_date}
- JWT tokens:  either of the above, expiry read from the token's own exp claim

TokenSession never looks at auth payloads itself; it asks a strategy. The same
strategy also decides whether a 401 from a business endpoint means "your token
expired" (refresh and retry) or something else (return as-is).

Usage:
    from heyrecruit.auth.strategies import AuthResponseFormat, get_strategy

    strategy = get_strategy(AuthResponseFormat.HEYRECRUIT)
    strategy = get_strategy("scope")
"""

import hashlib
import hmac
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple, Type

from jose import JWTError, jwt

from heyrecruit.auth.errors import AuthenticationError
from heyrecruit.auth.models import Credentials

# Matched case-insensitively against the error detail/code/message of a 401 body
DEFAULT_EXPIRED_TOKEN_MARKERS: Tuple[str, ...] = (
    "expired token",
    "token expired",
    "token has expired",
    "expired_token",
    "token_expired",
)

SCOPE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class AuthResponseFormat(str, Enum):
    """Supported upstream auth flavours"""
    HEYRECRUIT = "heyrecruit"
    SCOPE = "scope"
    JWT = "jwt"


@dataclass
class AuthRequest:
    """What to POST to the auth endpoint"""
    path: str
    data: Dict[str, Any] = field(default_factory=dict)  # form-encoded body


def _from_timestamp(value: float) -> datetime:
    # Millisecond stamps and other out-of-range values overflow datetime
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        raise AuthenticationError(f"Auth response has out-of-range expiry: {value!r}")


def parse_expiry(value: Any) -> datetime:
    """
    Parse an upstream expiry value into an aware UTC datetime.

    Accepts unix seconds (int/float/numeric string), 'YYYY-MM-DD HH:MM:SS'
    and ISO-8601 strings. Naive values are treated as UTC.

    Raises:
        AuthenticationError: If the value cannot be parsed
    """
    if isinstance(value, bool) or value is None:
        raise AuthenticationError(f"Auth response has no usable expiry: {value!r}")

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = _from_timestamp(value)
    elif isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            parsed = _from_timestamp(int(text))
        else:
            try:
                parsed = datetime.strptime(text, SCOPE_DATE_FORMAT)
            except ValueError:
                try:
                    parsed = datetime.fromisoformat(text)
                except ValueError:
                    raise AuthenticationError(f"Auth response has unparseable expiry: {value!r}")
    else:
        raise AuthenticationError(f"Auth response has unparseable expiry: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _error_texts(body: Any) -> Iterable[str]:
    """Yield every error detail/code/message string found in a response body"""
    if isinstance(body, str):
        yield body
        return
    if not isinstance(body, dict):
        return

    error = body.get("error")
    if isinstance(error, dict):
        for key in ("detail", "code", "message"):
            if error.get(key) is not None:
                yield str(error[key])
    elif error is not None:
        yield str(error)

    for key in ("detail", "code", "message"):
        if body.get(key) is not None:
            yield str(body[key])


class AuthResponseStrategy(ABC):
    """
    Abstract base for interpreting the upstream auth contract.

    Each concrete strategy must implement:
    1. build_auth_request(): payload for the token exchange
    2. is_success() / extract_token() / extract_expiry(): read a successful response
    3. error_message(): read a failed response
    """

    def __init__(self, expired_token_markers: Optional[Sequence[str]] = None):
        markers = expired_token_markers or DEFAULT_EXPIRED_TOKEN_MARKERS
        self.expired_token_markers = tuple(m.lower() for m in markers if m)

    @abstractmethod
    def build_auth_request(self, credentials: Credentials) -> AuthRequest:
        pass

    @abstractmethod
    def is_success(self, body: Any) -> bool:
        pass

    @abstractmethod
    def extract_token(self, body: Any) -> str:
        pass

    @abstractmethod
    def extract_expiry(self, body: Any) -> datetime:
        pass

    @abstractmethod
    def error_message(self, body: Any) -> str:
        pass

    def is_expired_token(self, status_code: int, body: Any) -> bool:
        """
        True only for a 401 whose body says the token itself expired.

        Other 401s (bad credentials, revoked client...) are not retried.
        """
        if status_code != 401:
            return False
        for text in _error_texts(body):
            lowered = text.lower()
            if any(marker in lowered for marker in self.expired_token_markers):
                return True
        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class StatusOkStrategy(AuthResponseStrategy):
    """Heyrecruit: {status: 'OK', data: {token, expiration}} / {status: 'error', message}"""

    AUTH_PATH = "auth"

    def build_auth_request(self, credentials: Credentials) -> AuthRequest:
        return AuthRequest(
            path=self.AUTH_PATH,
            data={
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
            },
        )

    def is_success(self, body: Any) -> bool:
        return (
            isinstance(body, dict)
            and body.get("status") == "OK"
            and isinstance(body.get("data"), dict)
            and bool(body["data"].get("token"))
        )

    def extract_token(self, body: Any) -> str:
        return str(body["data"]["token"])

    def extract_expiry(self, body: Any) -> datetime:
        return parse_expiry(body["data"].get("expiration"))

    def error_message(self, body: Any) -> str:
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return "Unknown error"


class SuccessFlagStrategy(AuthResponseStrategy):
    """
    SCOPE Recruiting: {success: true, token, expiration_date, data}.

    The secret never goes over the wire; the request carries an HMAC-SHA256
    signature of the current unix timestamp instead.
    """

    AUTH_PATH = "rest_companies/auth"

    def __init__(self, expired_token_markers: Optional[Sequence[str]] = None, clock=time.time):
        super().__init__(expired_token_markers)
        self._clock = clock

    def sign(self, timestamp: int, secret: str) -> str:
        return hmac.new(
            secret.encode("utf-8"),
            str(timestamp).encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def build_auth_request(self, credentials: Credentials) -> AuthRequest:
        stamp = int(self._clock())
        return AuthRequest(
            path=self.AUTH_PATH,
            data={
                "client_id": credentials.client_id,
                "client_signature": self.sign(stamp, credentials.client_secret),
                "timestamp": stamp,
            },
        )

    def is_success(self, body: Any) -> bool:
        return isinstance(body, dict) and body.get("success") is True and bool(body.get("token"))

    def extract_token(self, body: Any) -> str:
        return str(body["token"])

    def extract_expiry(self, body: Any) -> datetime:
        return parse_expiry(body.get("expiration_date"))

    def error_message(self, body: Any) -> str:
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if body.get("message"):
                return str(body["message"])
        return "Unknown error"


class JwtStrategy(AuthResponseStrategy):
    """
    Wraps another strategy and trusts the JWT's own exp claim for expiry.

    With a key the signature (and exp) is verified via python-jose; without one
    the claims are read unverified, which is enough for expiry tracking.
    """

    def __init__(
        self,
        inner: Optional[AuthResponseStrategy] = None,
        key: Optional[str] = None,
        algorithms: Sequence[str] = ("HS256",),
        audience: Optional[str] = None,
        expired_token_markers: Optional[Sequence[str]] = None,
    ):
        super().__init__(expired_token_markers)
        self.inner = inner or StatusOkStrategy(expired_token_markers)
        self.key = key
        self.algorithms = list(algorithms)
        self.audience = audience

    def build_auth_request(self, credentials: Credentials) -> AuthRequest:
        return self.inner.build_auth_request(credentials)

    def is_success(self, body: Any) -> bool:
        return self.inner.is_success(body)

    def extract_token(self, body: Any) -> str:
        return self.inner.extract_token(body)

    def decode_claims(self, token: str) -> Dict[str, Any]:
        """
        Decode JWT claims.

        Raises:
            AuthenticationError: If the token is malformed or fails verification
        """
        try:
            if self.key:
                return jwt.decode(
                    token,
                    self.key,
                    algorithms=self.algorithms,
                    audience=self.audience,
                    options={"verify_aud": self.audience is not None},
                )
            return jwt.get_unverified_claims(token)
        except JWTError as e:
            raise AuthenticationError(f"Invalid token from upstream: {e}")

    def extract_expiry(self, body: Any) -> datetime:
        claims = self.decode_claims(self.extract_token(body))
        if claims.get("exp") is not None:
            return parse_expiry(claims["exp"])
        return self.inner.extract_expiry(body)

    def error_message(self, body: Any) -> str:
        return self.inner.error_message(body)

    def __repr__(self) -> str:
        return f"JwtStrategy(inner={self.inner!r}, verified={self.key is not None})"


AUTH_STRATEGY_REGISTRY: Dict[AuthResponseFormat, Type[AuthResponseStrategy]] = {
    AuthResponseFormat.HEYRECRUIT: StatusOkStrategy,
    AuthResponseFormat.SCOPE: SuccessFlagStrategy,
    AuthResponseFormat.JWT: JwtStrategy,
}


def get_strategy(
    auth_format: AuthResponseFormat | str,
    expired_token_markers: Optional[Sequence[str]] = None,
) -> AuthResponseStrategy:
    """
    Get an initialized strategy for an auth format

    Args:
        auth_format: AuthResponseFormat or its string value (e.g. 'heyrecruit')
        expired_token_markers: Override for the expired-token 401 markers

    Raises:
        ValueError: If the format is unknown
    """
    if isinstance(auth_format, str) and not isinstance(auth_format, AuthResponseFormat):
        try:
            auth_format = AuthResponseFormat(auth_format.lower())
        except ValueError:
            available = ', '.join([f.value for f in AuthResponseFormat])
            raise ValueError(
                f"Auth format '{auth_format}' not supported. "
                f"Available: {available}"
            )

    strategy_class = AUTH_STRATEGY_REGISTRY[auth_format]
    return strategy_class(expired_token_markers=expired_token_markers)
