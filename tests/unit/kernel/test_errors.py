"""Unit tests for the kernel error hierarchy."""

from __future__ import annotations

import json

from flcm_rollout.kernel.errors import (
    ApplicationError,
    BaseError,
    DomainError,
    ExternalServiceError,
    InfrastructureError,
    NotFoundError,
    SerializationError,
    TimeoutError as AppTimeoutError,
    ValidationError,
)


class TestBaseError:
    def test_defaults(self) -> None:
        err = BaseError("boom")
        assert err.message == "boom"
        assert err.code == "base_error"
        assert err.detail == {}
        assert err.cause is None

    def test_cause_chained(self) -> None:
        cause = KeyError("x")
        err = BaseError("boom", cause=cause)
        assert err.__cause__ is cause
        assert err.to_dict()["cause"] == repr(cause)

    def test_str_is_json(self) -> None:
        err = BaseError("boom", code="custom", detail={"flag": "f"})
        assert json.loads(str(err)) == {"code": "custom", "message": "boom", "detail": {"flag": "f"}}

    def test_repr(self) -> None:
        assert repr(ApplicationError("x")) == "ApplicationError(code='application_error', message='x')"


class TestHierarchy:
    def test_domain(self) -> None:
        assert issubclass(ValidationError, DomainError)
        assert issubclass(NotFoundError, DomainError)

    def test_application(self) -> None:
        assert issubclass(AppTimeoutError, ApplicationError)
        assert not issubclass(AppTimeoutError, TimeoutError)

    def test_infrastructure(self) -> None:
        assert issubclass(SerializationError, InfrastructureError)
        assert issubclass(ExternalServiceError, InfrastructureError)


class TestSubclasses:
    def test_validation_errors_serialised(self) -> None:
        err = ValidationError("bad", errors=[{"field": "rollout.percentage"}])
        assert err.to_dict()["errors"] == [{"field": "rollout.percentage"}]

    def test_not_found_message(self) -> None:
        assert NotFoundError("Feature flag", "ghost").message == "Feature flag 'ghost' not found"
        assert NotFoundError("Cohort").message == "Cohort not found"

    def test_external_service(self) -> None:
        err = ExternalServiceError("config", status_code=503)
        assert err.message == "External service 'config' error"
        assert err.status_code == 503

    def test_serialization(self) -> None:
        assert SerializationError("bad", payload_type="json").payload_type == "json"

    def test_external_service_detail(self) -> None:
        err = ExternalServiceError("https://flags.example/config", status_code=502)
        assert err.detail == {"service": "https://flags.example/config", "status_code": 502}

    def test_serialization_detail(self) -> None:
        assert SerializationError("bad", payload_type="yaml").detail == {"payload_type": "yaml"}


# ---------------------------------------------------------------------------
# Structured logging helpers
# ---------------------------------------------------------------------------


class TestLogFields:
    def test_detail_lifted(self) -> None:
        err = BaseError("boom", code="evaluation_error", detail={"flag": "v2_mentor"})
        assert err.log_fields() == {
            "flag": "v2_mentor",
            "error_code": "evaluation_error",
            "error_message": "boom",
        }

    def test_cause_included(self) -> None:
        cause = ValueError("x")
        assert BaseError("boom", cause=cause).log_fields()["error_cause"] == repr(cause)

    def test_validation_lists_fields(self) -> None:
        err = ValidationError("bad", errors=[{"field": "members"}, {"field": "rules"}])
        assert err.log_fields()["invalid_fields"] == ["members", "rules"]


class TestForField:
    def test_single_field(self) -> None:
        err = ValidationError.for_field("rollout.percentage", "must be a number in [0, 100]", value=140)
        assert err.message == "rollout.percentage must be a number in [0, 100]"
        assert err.errors == [
            {"field": "rollout.percentage", "message": "must be a number in [0, 100]", "value": 140}
        ]
        assert err.fields == ["rollout.percentage"]
