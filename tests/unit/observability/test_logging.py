"""Unit tests for observability logging."""

from __future__ import annotations

import json
import logging
from typing import Iterator

import pytest
import structlog
from structlog.testing import capture_logs

from flcm_rollout.observability.logging import (
    DEFAULT_SENSITIVE_FIELDS,
    JsonLoggerFactory,
    SensitiveFieldsFilter,
    get_logger,
    request_log_context,
)


# ---------------------------------------------------------------------------
# SensitiveFieldsFilter
# ---------------------------------------------------------------------------


class TestSensitiveFieldsFilter:
    def test_redacts_known_key(self) -> None:
        result = SensitiveFieldsFilter().redact({"email": "ana@corp.io", "flag": "v2_mentor_layer"})
        assert result == {"email": SensitiveFieldsFilter.REDACTED, "flag": "v2_mentor_layer"}

    def test_redacts_all_defaults(self) -> None:
        result = SensitiveFieldsFilter().redact({f: "value" for f in DEFAULT_SENSITIVE_FIELDS})
        assert set(result.values()) == {SensitiveFieldsFilter.REDACTED}

    def test_case_insensitive(self) -> None:
        assert SensitiveFieldsFilter().redact({"Authorization": "Bearer x"})["Authorization"] == "[REDACTED]"

    def test_custom_fields(self) -> None:
        f = SensitiveFieldsFilter(frozenset({"plan_type"}))
        assert f.redact({"plan_type": "pro", "email": "a@b"}) == {"plan_type": "[REDACTED]", "email": "a@b"}

    def test_deep(self) -> None:
        data = {"context": {"attributes": {"email": "a@b", "beta_opt_in": True}}, "token": "t"}
        result = SensitiveFieldsFilter().redact_deep(data)
        assert result["token"] == "[REDACTED]"
        assert result["context"]["attributes"] == {"email": "[REDACTED]", "beta_opt_in": True}

    def test_deep_does_not_mutate(self) -> None:
        data = {"nested": {"password": "p"}}
        SensitiveFieldsFilter().redact_deep(data)
        assert data["nested"]["password"] == "p"

    def test_suffix_and_header_names(self) -> None:
        f = SensitiveFieldsFilter()
        result = f.redact({"access_token": "t", "X-Api-Key": "k", "user_email": "a@b", "token_count": 3})
        assert result == {
            "access_token": "[REDACTED]",
            "X-Api-Key": "[REDACTED]",
            "user_email": "[REDACTED]",
            "token_count": 3,
        }

    def test_deep_walks_lists(self) -> None:
        data = {"rules": [{"attribute": "email", "value": "x"}, {"email": "a@b"}], "tags": ("a", "b")}
        result = SensitiveFieldsFilter().redact_deep(data)
        assert result["rules"] == [{"attribute": "email", "value": "x"}, {"email": "[REDACTED]"}]
        assert result["tags"] == ("a", "b")

    def test_usable_as_processor(self) -> None:
        event = SensitiveFieldsFilter()(None, "info", {"event": "flag.evaluated", "password": "p"})
        assert event == {"event": "flag.evaluated", "password": "[REDACTED]"}


# ---------------------------------------------------------------------------
# get_logger / JsonLoggerFactory
# ---------------------------------------------------------------------------


class TestGetLogger:
    def test_bound_values(self) -> None:
        with capture_logs() as logs:
            get_logger("flcm.test", component="router").info("router.routing", version="2.0")
        assert logs == [
            {"component": "router", "version": "2.0", "event": "router.routing", "log_level": "info"}
        ]


class TestRequestLogContext:
    def test_binds_and_clears(self) -> None:
        with request_log_context(request_id="req-1", user_id=None) as bound:
            assert bound == {"request_id": "req-1"}
            assert structlog.contextvars.get_contextvars() == {"request_id": "req-1"}
        assert structlog.contextvars.get_contextvars() == {}


class TestJsonLoggerFactory:
    @pytest.fixture(autouse=True)
    def _restore(self) -> Iterator[None]:
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        structlog.reset_defaults()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_output_redacted(self, capsys: pytest.CaptureFixture[str]) -> None:
        JsonLoggerFactory.configure(level=logging.DEBUG)
        get_logger("flcm.test").info("flag.evaluated", flag="v2_mentor_layer", email="ana@corp.io")
        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "flag.evaluated"
        assert record["flag"] == "v2_mentor_layer"
        assert record["email"] == "[REDACTED]"
        assert record["level"] == "info"
        assert record["logger"] == "flcm.test"

    def test_level_applied(self) -> None:
        JsonLoggerFactory.configure(level=logging.WARNING)
        assert logging.getLogger().level == logging.WARNING

    def test_request_context_in_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        JsonLoggerFactory.configure(level=logging.DEBUG)
        with request_log_context(request_id="req-9", api_key="secret-value"):
            get_logger("flcm.ctx").info("router.routing", version="1.0")
        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["request_id"] == "req-9"
        assert record["api_key"] == "[REDACTED]"
