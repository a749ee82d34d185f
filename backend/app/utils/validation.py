"""
Validation utilities for input validation and error handling.

All helpers raise `ValidationError` (400) so services can call them before
touching the database or the upload directory.
"""
import json
import math
import re
from datetime import datetime
from typing import Any

from .error_handlers import ValidationError

# Pipeline stages. Any stage may follow any other.
CANDIDATE_STATUSES = (
    "new",
    "reviewing",
    "interview_scheduled",
    "interview_completed",
    "offer",
    "hired",
    "rejected",
)
JOB_STATUSES = ("open", "closed")
USER_ROLES = ("admin", "recruiter")


def validate_email(email: str) -> str:
    """Validate email format."""
    if not email or not isinstance(email, str):
        raise ValidationError("Email is required")

    email = email.strip().lower()
    if len(email) > 255:
        raise ValidationError("Email too long (max 255 characters)")

    # Basic email regex
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    if not re.match(pattern, email):
        raise ValidationError("Invalid email format")

    return email


def validate_password(password: str) -> None:
    """Validate password strength."""
    if not password or not isinstance(password, str):
        raise ValidationError("Password is required")

    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")

    if len(password) > 128:
        raise ValidationError("Password too long (max 128 characters)")


def validate_string_field(
    value: Any,
    field_name: str,
    min_length: int = 1,
    max_length: int = 1000,
    required: bool = True,
    pattern: str | None = None,
) -> str | None:
    """Validate a string field with common rules."""
    if value is None:
        if required:
            raise ValidationError(f"{field_name} is required")
        return None

    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")

    value = value.strip()

    if not value:
        if required:
            raise ValidationError(f"{field_name} cannot be empty")
        return None

    if len(value) < min_length:
        raise ValidationError(f"{field_name} must be at least {min_length} characters")

    if len(value) > max_length:
        raise ValidationError(f"{field_name} must not exceed {max_length} characters")

    if pattern and not re.match(pattern, value):
        raise ValidationError(f"{field_name} format is invalid")

    return value


def validate_role(role: str | None) -> str:
    """Validate user role."""
    if not role:
        return "recruiter"

    role = role.strip().lower()
    if role not in USER_ROLES:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(USER_ROLES)}")

    return role


def validate_job_status(status: str | None) -> str:
    if not status:
        return "open"

    status = status.strip().lower()
    if status not in JOB_STATUSES:
        raise ValidationError(f"Invalid job status. Must be one of: {', '.join(JOB_STATUSES)}")

    return status


def validate_candidate_status(status: str | None) -> str:
    """Status must be a known pipeline stage; transitions are unrestricted."""
    if not status or not isinstance(status, str):
        raise ValidationError("Status is required")

    status = status.strip().lower()
    if status not in CANDIDATE_STATUSES:
        raise ValidationError(
            f"Invalid status. Must be one of: {', '.join(CANDIDATE_STATUSES)}",
            details={"status": status},
        )

    return status


def parse_record_list(value: Any, field_name: str) -> list[dict] | None:
    """
    Parse `education` / `experience` style input: a list of free-form objects.

    Accepts serialized JSON text (multipart forms) or an already-decoded list.
    Empty input means "not supplied".
    """
    if value is None:
        return None

    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValidationError(f"{field_name} must be valid JSON", details={"field": field_name, "reason": str(e)})

    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ValidationError(f"{field_name} must be a list of objects", details={"field": field_name})

    return value


def parse_desired_salary(value: Any) -> float | None:
    """Desired salary arrives as text; blank leaves it unset."""
    if value is None:
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    try:
        salary = float(value)
    except (TypeError, ValueError):
        raise ValidationError("desired_salary must be a number", details={"field": "desired_salary"})

    if not math.isfinite(salary) or salary < 0:
        raise ValidationError("desired_salary must be a non-negative number", details={"field": "desired_salary"})

    return salary


def parse_optional_datetime(value: Any, field_name: str) -> datetime | None:
    """ISO 8601 input; a trailing `Z` is accepted."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value

    raw = str(value).strip()
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid {field_name} format. Use ISO 8601 format.", details={"field": field_name})


def sanitize_filename(filename: str) -> str:
    """Sanitize filename to prevent directory traversal and other attacks."""
    if not filename:
        raise ValidationError("Filename is required")

    # Remove any path separators
    filename = filename.replace("/", "_").replace("\\", "_")

    # Remove any null bytes
    filename = filename.replace("\x00", "")

    # Remove directory traversal sequences
    filename = filename.replace("..", "_")

    # Remove leading dots to prevent hidden files
    filename = filename.lstrip(".")

    # Keep stored names portable
    filename = re.sub(r"\s+", "_", filename)

    if len(filename) > 200:
        stem, dot, ext = filename.rpartition(".")
        filename = (stem[: 200 - len(ext) - 1] + dot + ext) if dot and len(ext) <= 10 else filename[:200]

    # Ensure it has some content
    if not filename or filename == "_":
        raise ValidationError("Invalid filename")

    return filename
