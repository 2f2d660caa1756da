"""
Unit tests for JobFilter query string handling.

Run: python3 -m pytest heyrecruit/api/__tests__/test_filters.py -v
"""

from heyrecruit.api.filters import JobFilter


class TestMergeQueryString:

    def test_defaults(self):
        job_filter = JobFilter()
        assert job_filter.language == "de"
        assert job_filter.area_search_distance == 60000
        assert job_filter.limit == 999
        assert job_filter.departments == []

    def test_empty_query_string_is_copy(self):
        job_filter = JobFilter(departments=["IT"])
        merged = job_filter.merge_query_string("")

        assert merged == job_filter
        assert merged is not job_filter

    def test_repeated_keys_accumulate(self):
        job_filter = JobFilter.from_query_string("departments=IT&departments=Sales&employments=full_time")

        assert job_filter.departments == ["IT", "Sales"]
        assert job_filter.employments == ["full_time"]

    def test_php_array_keys(self):
        job_filter = JobFilter.from_query_string("?job_ids[]=1&job_ids[]=2")
        assert job_filter.job_ids == ["1", "2"]

    def test_known_keys_replace_existing_values(self):
        job_filter = JobFilter(departments=["HR"], employments=["part_time"])
        merged = job_filter.merge_query_string("departments=IT")

        assert merged.departments == ["IT"]
        assert merged.employments == ["part_time"]
        assert job_filter.departments == ["HR"]

    def test_unknown_keys_ignored(self):
        job_filter = JobFilter.from_query_string("utm_source=newsletter&page=2")
        assert job_filter == JobFilter()

    def test_single_value_keys_keep_first(self):
        job_filter = JobFilter.from_query_string(
            "language=en&language=fr&address=Berlin&address=Hamburg&search=python"
        )

        assert job_filter.language == "en"
        assert job_filter.address == "Berlin"
        assert job_filter.search == "python"

    def test_numeric_keys(self):
        job_filter = JobFilter.from_query_string("area_search_distance=25000&limit=abc")

        assert job_filter.area_search_distance == 25000
        assert job_filter.limit == 999

    def test_preview_flag(self):
        assert JobFilter.from_query_string("preview=1").preview is True
        assert JobFilter.from_query_string("preview=true").preview is True
        assert JobFilter.from_query_string("preview=0").preview is False

    def test_url_decoding(self):
        job_filter = JobFilter.from_query_string("departments=Software%20Development&search=C%2B%2B")

        assert job_filter.departments == ["Software Development"]
        assert job_filter.search == "C++"

    def test_defaults_override(self):
        job_filter = JobFilter.from_query_string("departments=IT", language="en")

        assert job_filter.language == "en"
        assert job_filter.departments == ["IT"]


class TestToParams:

    def test_default_params(self):
        assert JobFilter().to_params() == [
            ("language", "de"),
            ("area_search_distance", 60000),
            ("limit", 999),
            ("preview", 0),
        ]

    def test_full_params(self):
        job_filter = JobFilter(
            departments=["IT", "Sales"],
            company_location_ids=["7"],
            search="python",
            address="Berlin",
            preview=True,
        )

        params = job_filter.to_params(company_id=42)

        assert params[0] == ("company", 42)
        assert ("departments[]", "IT") in params
        assert ("departments[]", "Sales") in params
        assert ("company_location_ids[]", "7") in params
        assert ("search", "python") in params
        assert ("address", "Berlin") in params
        assert ("preview", 1) in params

    def test_to_dict(self):
        data = JobFilter(internal_titles=["DEV-1"]).to_dict()

        assert data["internal_titles"] == ["DEV-1"]
        assert data["address"] is None
        assert data["preview"] is False
