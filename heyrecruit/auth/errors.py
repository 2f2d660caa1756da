"""
Exception types raised by the SDK.

- ConfigurationError: missing or invalid credentials/base URL (raised at construction)
- AuthenticationError: upstream rejected the credentials, or the refresh retry bound was exhausted
- UpstreamError: non-auth HTTP failure, only raised on request via ApiResponse.raise_for_status()
"""

from typing import Any, Optional


class HeyrecruitError(Exception):
    """Base class for all SDK errors"""


class ConfigurationError(HeyrecruitError, ValueError):
    """Configuration is missing or invalid. Never defaulted silently."""


class AuthenticationError(HeyrecruitError):
    """
    Token exchange failed or could not be recovered.

    Carries the upstream message (and status/body when available) so callers
    can see why the platform refused the credentials.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body


class UpstreamError(HeyrecruitError):
    """Non-auth HTTP failure from a business endpoint"""

    def __init__(self, status_code: int, body: Any = None):
        super().__init__(f"Upstream request failed with status {status_code}")
        self.status_code = status_code
        self.body = body
