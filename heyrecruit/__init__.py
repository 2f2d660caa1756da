"""
Heyrecruit client SDK

Thin client for the Heyrecruit / SCOPE Recruiting REST API.

Structure:
- auth/: Token lifecycle (TokenSession), auth response strategies, session cache
- api/: Endpoint wrappers (HeyrecruitClient) and the job filter
- config/: Environment-backed settings
- utils/: Logging helpers
"""

from .auth.errors import AuthenticationError, ConfigurationError, HeyrecruitError, UpstreamError
from .auth.models import ApiResponse, ApplicantCredentials, Credentials, Session, SessionState
from .auth.token_session import TokenSession
from .auth.applicant_session import ApplicantSession
from .api.client import HeyrecruitClient

__all__ = [
    'HeyrecruitClient',
    'TokenSession',
    'ApplicantSession',
    'Credentials',
    'ApplicantCredentials',
    'Session',
    'SessionState',
    'ApiResponse',
    'HeyrecruitError',
    'ConfigurationError',
    'AuthenticationError',
    'UpstreamError',
]

__version__ = '0.1.0'
