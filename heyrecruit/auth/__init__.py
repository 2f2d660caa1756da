"""
Authentication package

- TokenSession: acquires, caches and refreshes the bearer token; single
  choke point for authorized requests
- Strategies: interpret the different upstream auth response shapes
- ApplicantSession: applicant login made with the company token
- SessionCache: injectable cross-request token store
"""

from .applicant_session import ApplicantSession
from .cache import InMemorySessionCache, SessionCache
from .strategies import (
    AuthResponseFormat,
    AuthResponseStrategy,
    JwtStrategy,
    StatusOkStrategy,
    SuccessFlagStrategy,
    get_strategy,
)
from .token_session import TokenSession

__all__ = [
    'TokenSession',
    'ApplicantSession',
    'SessionCache',
    'InMemorySessionCache',
    'AuthResponseFormat',
    'AuthResponseStrategy',
    'StatusOkStrategy',
    'SuccessFlagStrategy',
    'JwtStrategy',
    'get_strategy',
]
