"""
HeyrecruitClient: typed wrappers over the Heyrecruit REST API

Every call goes through TokenSession.authorized_request(), which attaches the
bearer token and handles refresh/retry. Results are ApiResponse objects
(status_code + parsed body); non-auth failures are returned as-is.

Usage:
    from heyrecruit.api.client import HeyrecruitClient

    client = HeyrecruitClient({
        "api_base_url": "https://api.heyrecruit.de/api/v2",
        "client_id": 42,
        "client_secret": "s3cret",
    })
    client.set_filter("departments=IT&language=en")
    jobs = client.get_jobs(company_id=42)
"""

from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import quote

from heyrecruit.api.enums import DocumentType, Endpoint
from heyrecruit.api.filters import JobFilter
from heyrecruit.auth.applicant_session import ApplicantSession
from heyrecruit.auth.errors import ConfigurationError
from heyrecruit.auth.models import ApiResponse, Session
from heyrecruit.auth.token_session import TokenSession
from heyrecruit.config.settings import Settings, settings
from heyrecruit.utils.sdk_logging import ComponentType, SdkLoggerMixin


def _document_type(value: Union[DocumentType, str]) -> DocumentType:
    try:
        return DocumentType(value)
    except ValueError:
        available = ', '.join([d.value for d in DocumentType])
        raise ValueError(
            f"Document type '{value}' not supported. "
            f"Available: {available}"
        )


def _segment(value: Any) -> str:
    """Escape a caller-supplied value for use as one path segment"""
    return quote(str(value), safe="")


class HeyrecruitClient(SdkLoggerMixin):
    """
    Company-facing client for jobs, companies and applicants.

    Construction validates the configuration but makes no network call; the
    first request authenticates.
    """

    component_type = ComponentType.CLIENT

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        token_session: Optional[TokenSession] = None,
        **session_kwargs: Any,
    ):
        """
        Args:
            config: Mapping with api_base_url, client_id, client_secret and
                optional auth_format, language, expiry_margin_seconds,
                max_attempts, timeout, expired_token_markers
            token_session: Use an existing TokenSession instead of building one
            session_kwargs: Passed to TokenSession (cache, transport, clock...)

        Raises:
            ConfigurationError: If config is empty or missing a required key
        """
        if token_session is None:
            token_session = TokenSession.from_config(config, **session_kwargs)
        self.token_session = token_session
        self.applicant_session: Optional[ApplicantSession] = None

        language = (config or {}).get("language") or "de"
        self.filter = JobFilter(language=language)

    @classmethod
    def from_settings(cls, app_settings: Optional[Settings] = None, **session_kwargs: Any) -> "HeyrecruitClient":
        """Build from environment settings (.env.local / .env)"""
        app_settings = app_settings or settings
        return cls(app_settings.to_client_config(), **session_kwargs)

    def _log_context(self) -> str:
        return f"base_url={self.token_session.api_base_url}"

    # ------------------------------------------------------------------
    # Filter & auth data
    # ------------------------------------------------------------------

    def set_filter(self, query_string: str = "") -> JobFilter:
        """Merge a career page query string into the job filter"""
        self.filter = self.filter.merge_query_string(query_string)
        return self.filter

    def get_auth_data(self) -> Dict[str, Any]:
        return self.token_session.get_auth_data()

    # ------------------------------------------------------------------
    # Applicant login
    # ------------------------------------------------------------------

    def set_applicant_credentials(self, email: str, password: str) -> ApplicantSession:
        """
        Raises:
            ConfigurationError: If email or password is missing
        """
        self.applicant_session = ApplicantSession(
            self.token_session,
            {"email": email, "password": password},
        )
        return self.applicant_session

    def authenticate_applicant(self) -> Session:
        """
        Log the configured applicant in with the company token.

        Raises:
            ConfigurationError: If set_applicant_credentials() was not called
            AuthenticationError: If the upstream refuses the applicant
        """
        if self.applicant_session is None:
            raise ConfigurationError("Missing applicant credentials. Call set_applicant_credentials() first.")
        return self.applicant_session.authenticate()

    def get_applicant_auth_data(self) -> Dict[str, Any]:
        if self.applicant_session is None:
            return {}
        return self.applicant_session.get_auth_data()

    # ------------------------------------------------------------------
    # Companies & jobs
    # ------------------------------------------------------------------

    def _get(self, endpoint: Endpoint, params: Dict[str, Any]) -> ApiResponse:
        params = {**params, "language": self.filter.language}
        return self.token_session.authorized_request("GET", endpoint.value, params)

    def get_company_detail(self, company_id: int) -> ApiResponse:
        return self._get(Endpoint.GET_COMPANY, {"company": company_id})

    def get_company_detail_by_sub_domain(self, sub_domain: str) -> ApiResponse:
        return self._get(Endpoint.GET_COMPANY_BY_SUB_DOMAIN, {"domain": sub_domain})

    def get_jobs(self, company_id: Optional[int] = None) -> ApiResponse:
        """Find jobs matching the current filter"""
        return self.token_session.authorized_request(
            "GET",
            Endpoint.GET_JOBS.value,
            self.filter.to_params(company_id=company_id),
        )

    def get_job(self, company_id: Optional[int], job_id: int, company_location_id: int) -> ApiResponse:
        return self._get(
            Endpoint.GET_JOB,
            {
                "company": company_id,
                "job_id": job_id,
                "company_location_id": company_location_id,
            },
        )

    # ------------------------------------------------------------------
    # Applicants
    # ------------------------------------------------------------------

    def add_applicant(self, data: Dict[str, Any], job_id: int, company_location_id: int) -> ApiResponse:
        """Submit applicant data for a job at a company location"""
        if not data:
            raise ValueError("Missing applicant data")
        path = f"{Endpoint.ADD_APPLICANT.value}/{job_id}/{company_location_id}"
        result = self.token_session.authorized_request("POST", path, data)
        self.log_info(f"Applicant submitted for job {job_id} -> {result.status_code}")
        return result

    def upload_document(
        self,
        data: Dict[str, Any],
        document_type: Union[DocumentType, str],
        job_id: int,
        company_location_id: int,
        applicant_id: Optional[str] = None,
    ) -> ApiResponse:
        """
        Upload an applicant document before or after submitting applicant data.

        After the first successful upload the API responds with the created
        applicant id; pass it as applicant_id for further documents.

        Raises:
            ValueError: If a required argument is missing or the document type is unknown
        """
        if not data:
            raise ValueError("Missing applicant data")
        if not document_type:
            raise ValueError("Missing document type parameter")
        if not job_id:
            raise ValueError("Missing job id parameter")
        if not company_location_id:
            raise ValueError("Missing company location id parameter")

        document_type = _document_type(document_type)

        path = f"{Endpoint.UPLOAD_DOCUMENTS.value}/{document_type.value}/{job_id}/{company_location_id}"
        if applicant_id:
            path = f"{path}/{_segment(applicant_id)}"

        return self.token_session.authorized_request("POST", path, data)

    def delete_document(
        self,
        name: str,
        applicant_id: str,
        company_location_id: int,
        document_type: Union[DocumentType, str],
    ) -> ApiResponse:
        """
        Raises:
            ValueError: If name, applicant_id or document_type is missing,
                or the document type is unknown
        """
        if not name or not applicant_id or not document_type:
            raise ValueError("Missing document name, applicant id or document type")

        document_type = _document_type(document_type)
        path = (
            f"{Endpoint.DELETE_DOCUMENTS.value}/{_segment(name)}/{_segment(applicant_id)}"
            f"/{company_location_id}/{document_type.value}"
        )
        return self.token_session.authorized_request("POST", path, {})

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def close(self) -> None:
        self.token_session.close()

    def __enter__(self) -> "HeyrecruitClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(session={self.token_session!r})"
