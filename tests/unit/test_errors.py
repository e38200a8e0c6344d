"""Tests for the error taxonomy and its JSON payloads."""

from recruitsearch.core.errors import (
    ExternalServiceError,
    FilterValueError,
    GenerativeServiceError,
    NotFoundError,
    RecruitSearchError,
    SchemaValidationError,
    SearchUnavailable,
    TextExtractionError,
    ValidationError,
    error_payload,
)


class TestErrorCodes:
    def test_status_and_codes(self) -> None:
        cases = [
            (ValidationError, 400, "VALIDATION_ERROR"),
            (FilterValueError, 400, "INVALID_FILTER_VALUE"),
            (NotFoundError, 404, "NOT_FOUND"),
            (ExternalServiceError, 502, "EXTERNAL_SERVICE_ERROR"),
            (SearchUnavailable, 503, "SEARCH_UNAVAILABLE"),
            (GenerativeServiceError, 502, "GENERATIVE_SERVICE_ERROR"),
            (SchemaValidationError, 422, "SCHEMA_VALIDATION_ERROR"),
            (TextExtractionError, 422, "TEXT_EXTRACTION_ERROR"),
        ]
        for cls, status, code in cases:
            err = cls("boom")
            assert isinstance(err, RecruitSearchError)
            assert err.status == status
            assert err.code == code

    def test_hierarchy(self) -> None:
        assert issubclass(SearchUnavailable, ExternalServiceError)
        assert issubclass(FilterValueError, ValidationError)


class TestErrorPayload:
    def test_known_error(self) -> None:
        status, payload = error_payload(NotFoundError("Candidate x not found", details={"id": "x"}))
        assert status == 404
        body = payload["error"]
        assert body["code"] == "NOT_FOUND"
        assert body["message"] == "Candidate x not found"
        assert body["details"] == {"id": "x"}
        assert body["timestamp"].endswith("+00:00")

    def test_unknown_exception_is_internal(self) -> None:
        status, payload = error_payload(KeyError("k"))
        assert status == 500
        assert payload["error"]["code"] == "INTERNAL_ERROR"

    def test_message_falls_back_to_class_name(self) -> None:
        _, payload = error_payload(RuntimeError())
        assert payload["error"]["message"] == "RuntimeError"
