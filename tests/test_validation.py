"""
Validation and error handling tests.
Input helpers, error envelope, and edge cases.
"""
import json
from datetime import datetime, timezone

import pytest

from backend.app.utils.error_handlers import (
    DependencyFailure,
    FileUploadError,
    ValidationError,
    create_error_response,
    get_error_message,
)
from backend.app.utils.validation import (
    CANDIDATE_STATUSES,
    parse_desired_salary,
    parse_optional_datetime,
    parse_record_list,
    sanitize_filename,
    validate_candidate_status,
    validate_email,
    validate_job_status,
    validate_password,
    validate_role,
    validate_string_field,
)


class TestEmailValidation:
    def test_valid_email(self):
        assert validate_email("test@example.com") == "test@example.com"
        assert validate_email("USER@EXAMPLE.COM") == "user@example.com"
        assert validate_email("  test@example.com  ") == "test@example.com"

    def test_invalid_email_format(self):
        with pytest.raises(ValidationError) as exc:
            validate_email("invalid")
        assert exc.value.status_code == 400
        assert "Invalid email format" in exc.value.message

    def test_email_too_long(self):
        with pytest.raises(ValidationError) as exc:
            validate_email("a" * 250 + "@test.com")
        assert "too long" in exc.value.message.lower()

    def test_empty_email(self):
        with pytest.raises(ValidationError):
            validate_email("")


class TestPasswordValidation:
    def test_valid_password(self):
        validate_password("password123")
        validate_password("123456")

    def test_password_too_short(self):
        with pytest.raises(ValidationError) as exc:
            validate_password("12345")
        assert "at least 6" in exc.value.message

    def test_password_too_long(self):
        with pytest.raises(ValidationError):
            validate_password("a" * 129)


class TestStringFieldValidation:
    def test_valid_string(self):
        assert validate_string_field("  hello  ", "Field") == "hello"

    def test_blank_optional_is_none(self):
        assert validate_string_field("   ", "Field", required=False) is None
        assert validate_string_field(None, "Field", required=False) is None

    def test_blank_required_fails(self):
        with pytest.raises(ValidationError):
            validate_string_field("   ", "Field")

    def test_length_limits(self):
        with pytest.raises(ValidationError):
            validate_string_field("a", "Field", min_length=2)
        with pytest.raises(ValidationError):
            validate_string_field("a" * 11, "Field", max_length=10)


class TestEnumValidation:
    def test_role_defaults_to_recruiter(self):
        assert validate_role(None) == "recruiter"
        assert validate_role(" ADMIN ") == "admin"
        with pytest.raises(ValidationError):
            validate_role("candidate")

    def test_job_status(self):
        assert validate_job_status(None) == "open"
        assert validate_job_status("Closed") == "closed"
        with pytest.raises(ValidationError):
            validate_job_status("archived")

    def test_candidate_status_accepts_every_stage(self):
        for status in CANDIDATE_STATUSES:
            assert validate_candidate_status(status) == status

    def test_candidate_status_rejects_unknown_and_missing(self):
        with pytest.raises(ValidationError) as exc:
            validate_candidate_status("promoted")
        assert exc.value.details == {"status": "promoted"}
        with pytest.raises(ValidationError):
            validate_candidate_status(None)


class TestStructuredFields:
    def test_record_list_from_json_text(self):
        assert parse_record_list(json.dumps([{"a": 1}]), "education") == [{"a": 1}]
        assert parse_record_list("[]", "education") == []

    def test_record_list_blank_is_unset(self):
        assert parse_record_list(None, "education") is None
        assert parse_record_list("  ", "education") is None

    def test_record_list_rejects_bad_shapes(self):
        for raw in ("{oops", '{"a": 1}', '["x"]', "3"):
            with pytest.raises(ValidationError) as exc:
                parse_record_list(raw, "experience")
            assert exc.value.details["field"] == "experience"

    def test_salary(self):
        assert parse_desired_salary("1500.5") == 1500.5
        assert parse_desired_salary(0) == 0.0
        assert parse_desired_salary("") is None
        assert parse_desired_salary(None) is None

    def test_salary_rejects_garbage(self):
        for raw in ("abc", "-1", "nan", "inf"):
            with pytest.raises(ValidationError):
                parse_desired_salary(raw)

    def test_datetime(self):
        parsed = parse_optional_datetime("2030-01-20T10:00:00Z", "interview_date")
        assert parsed == datetime(2030, 1, 20, 10, 0, tzinfo=timezone.utc)
        assert parse_optional_datetime("", "interview_date") is None
        with pytest.raises(ValidationError):
            parse_optional_datetime("soon", "interview_date")


class TestFilenameSanitization:
    def test_valid_filename(self):
        assert sanitize_filename("resume.pdf") == "resume.pdf"

    def test_path_traversal_removed(self):
        result = sanitize_filename("../../etc/passwd")
        assert ".." not in result
        assert "/" not in result

    def test_whitespace_replaced(self):
        assert sanitize_filename("my cv final.pdf") == "my_cv_final.pdf"

    def test_long_name_keeps_extension(self):
        result = sanitize_filename("a" * 300 + ".pdf")
        assert len(result) == 200
        assert result.endswith(".pdf")

    def test_empty_filename(self):
        with pytest.raises(ValidationError):
            sanitize_filename("")


class TestErrorEnvelope:
    def test_get_error_message(self):
        assert get_error_message("candidate_not_found") == "Candidate not found"
        assert get_error_message("nope") == get_error_message("server_error")

    def test_error_response_shape(self):
        resp = create_error_response(404, "Job not found", {"job_id": "x"})
        assert resp.status_code == 404
        assert json.loads(resp.body) == {"success": False, "error": "Job not found", "details": {"job_id": "x"}}

    def test_error_status_codes(self):
        assert FileUploadError("too big", status_code=413).status_code == 413
        assert DependencyFailure().status_code == 500
