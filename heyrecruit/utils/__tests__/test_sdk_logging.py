"""
Unit tests for the SDK logging mixin.

Run: python3 -m pytest heyrecruit/utils/__tests__/test_sdk_logging.py -v
"""

import logging

from heyrecruit.utils.sdk_logging import ComponentType, SdkLoggerMixin


class SampleContext(SdkLoggerMixin):
    component_type = ComponentType.TOKEN_SESSION

    def __init__(self, client_id: str):
        self.client_id = client_id

    def _log_context(self) -> str:
        return f"client_id={self.client_id}"


class TestSdkLoggerMixin:

    def test_prefix(self):
        assert SampleContext("42")._log_prefix() == "[TokenSession:client_id=42]"

    def test_levels(self, caplog):
        ctx = SampleContext("42")

        with caplog.at_level(logging.DEBUG, logger="heyrecruit"):
            ctx.log_debug("debug")
            ctx.log_info("info")
            ctx.log_warning("warning")
            ctx.log_error("error")

        assert [r.levelname for r in caplog.records] == ["DEBUG", "INFO", "WARNING", "ERROR"]
        assert caplog.records[1].getMessage() == "[TokenSession:client_id=42] info"

    def test_token_session_never_logs_secrets(self, make_session, caplog):
        session = make_session()

        with caplog.at_level(logging.DEBUG, logger="heyrecruit"):
            session.authorized_request("GET", "jobs/index")

        assert caplog.records
        assert all("s3cret" not in r.getMessage() for r in caplog.records)
        assert all("token-1" not in r.getMessage() for r in caplog.records)
