"""
Prefixed logging for SDK components.

All SDK output goes to the "heyrecruit" logger; the host application decides
handlers and levels. A component mixes in SdkLoggerMixin, names itself via
component_type, and describes which client it serves in _log_context():

    [TokenSession:client_id=42] Authenticated, token valid until 2026-01-01T00:00:00+00:00
    [ApplicantSession:client_id=42] Applicant authenticated
    [HeyrecruitClient:base_url=https://api.heyrecruit.de/api/v2] Applicant submitted for job 7 -> 200

Tokens, secrets and passwords must never reach these methods.
"""

import logging
from enum import Enum
from typing import Protocol

logger = logging.getLogger("heyrecruit")


class ComponentType(Enum):
    TOKEN_SESSION = "TokenSession"
    APPLICANT_SESSION = "ApplicantSession"
    CLIENT = "HeyrecruitClient"


class SdkLoggerProtocol(Protocol):
    """Attributes a class must define before mixing in SdkLoggerMixin"""
    component_type: ComponentType

    def _log_context(self) -> str:
        ...


class SdkLoggerMixin:
    """log_debug/log_info/log_warning/log_error with a [Component:context] prefix"""

    def _log_prefix(self: SdkLoggerProtocol) -> str:
        return f"[{self.component_type.value}:{self._log_context()}]"

    def log_debug(self: SdkLoggerProtocol, message: str) -> None:
        logger.debug(f"{self._log_prefix()} {message}")

    def log_info(self: SdkLoggerProtocol, message: str) -> None:
        logger.info(f"{self._log_prefix()} {message}")

    def log_warning(self: SdkLoggerProtocol, message: str) -> None:
        logger.warning(f"{self._log_prefix()} {message}")

    def log_error(self: SdkLoggerProtocol, message: str) -> None:
        logger.error(f"{self._log_prefix()} {message}")
