"""
Job filter sent with get_jobs requests

Career pages forward their own query string (e.g. ?departments=IT&language=en)
to the SDK; only the keys the API understands are picked up.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl

LIST_KEYS = ("job_ids", "company_location_ids", "departments", "employments", "internal_titles")
INT_KEYS = ("area_search_distance", "limit")
TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class JobFilter:
    """
    Job filter configuration.

    Examples:
        # Defaults: German strings, 60 km area search, up to 999 jobs
        job_filter = JobFilter()

        # From a career page query string
        job_filter = JobFilter.from_query_string("departments=IT&departments=Sales&language=en")

        # As query params for the jobs endpoint
        params = job_filter.to_params(company_id=42)
    """
    job_ids: List[str] = field(default_factory=list)
    company_location_ids: List[str] = field(default_factory=list)
    departments: List[str] = field(default_factory=list)
    employments: List[str] = field(default_factory=list)
    internal_titles: List[str] = field(default_factory=list)
    language: str = "de"  # Only one language allowed
    search: Optional[str] = None
    address: Optional[str] = None  # Only one address allowed
    area_search_distance: int = 60000  # meters
    limit: int = 999
    preview: bool = False

    @classmethod
    def from_query_string(cls, query_string: str, **defaults: Any) -> "JobFilter":
        """Create a filter from defaults overlaid with a query string"""
        return cls(**defaults).merge_query_string(query_string)

    def merge_query_string(self, query_string: Optional[str]) -> "JobFilter":
        """
        Return a copy with known keys replaced by values from query_string.

        Rules:
        - Unknown keys are ignored
        - Repeated keys accumulate (list fields); 'key[]' is treated as 'key'
        - language/address/search keep only the first value
        - Non-numeric area_search_distance/limit values are ignored
        - preview is true for 1/true/yes/on
        """
        if not query_string:
            return replace(self)

        values: Dict[str, List[str]] = {}
        for name, value in parse_qsl(query_string.lstrip("?"), keep_blank_values=False):
            if name.endswith("[]"):
                name = name[:-2]
            values.setdefault(name, []).append(value)

        updates: Dict[str, Any] = {}
        for key in LIST_KEYS:
            if key in values:
                updates[key] = values[key]

        for key in ("language", "address", "search"):
            if key in values:
                updates[key] = values[key][0]

        for key in INT_KEYS:
            if key in values:
                try:
                    updates[key] = int(values[key][0])
                except ValueError:
                    pass

        if "preview" in values:
            updates["preview"] = values["preview"][0].strip().lower() in TRUE_VALUES

        return replace(self, **updates)

    def to_params(self, company_id: Optional[int] = None) -> List[Tuple[str, Any]]:
        """Render as query params; list fields use PHP-style 'key[]' names"""
        params: List[Tuple[str, Any]] = []
        if company_id is not None:
            params.append(("company", company_id))

        for key in LIST_KEYS:
            for value in getattr(self, key):
                params.append((f"{key}[]", value))

        params.append(("language", self.language))
        if self.search:
            params.append(("search", self.search))
        if self.address:
            params.append(("address", self.address))
        params.append(("area_search_distance", self.area_search_distance))
        params.append(("limit", self.limit))
        params.append(("preview", 1 if self.preview else 0))
        return params

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_ids": list(self.job_ids),
            "company_location_ids": list(self.company_location_ids),
            "departments": list(self.departments),
            "employments": list(self.employments),
            "internal_titles": list(self.internal_titles),
            "language": self.language,
            "search": self.search,
            "address": self.address,
            "area_search_distance": self.area_search_distance,
            "limit": self.limit,
            "preview": self.preview,
        }
