"""
Endpoint Enum

Paths of the upstream REST API, relative to the configured base URL.
This is in a separate file so the client and tests can share it without
importing each other.
"""

from enum import Enum


class Endpoint(str, Enum):
    """Heyrecruit REST endpoints used by HeyrecruitClient"""
    AUTH = "auth"
    GET_COMPANY = "companies/view"
    GET_COMPANY_BY_SUB_DOMAIN = "companies/view-by-domain"
    GET_JOBS = "jobs/index"
    GET_JOB = "jobs/view"
    ADD_APPLICANT = "rest-applicants/add"
    UPLOAD_DOCUMENTS = "rest-applicants/uploadDocument"
    DELETE_DOCUMENTS = "rest-applicants/deleteDocument"
    APPLICANT_AUTH = "rest_applicants/auth"


class DocumentType(str, Enum):
    """Applicant document types accepted by the upload endpoint"""
    PICTURE = "picture"
    COVERING_LETTER = "covering_letter"
    CV = "cv"
    CERTIFICATE = "certificate"
    OTHER = "other"
