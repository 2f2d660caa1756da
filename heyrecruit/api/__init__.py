"""
Business endpoint wrappers.

All calls are thin callers of TokenSession.authorized_request().
"""

from .client import HeyrecruitClient
from .enums import DocumentType, Endpoint
from .filters import JobFilter

__all__ = ['HeyrecruitClient', 'Endpoint', 'DocumentType', 'JobFilter']
