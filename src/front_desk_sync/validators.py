"""
Input validation functions for the front-desk sync engine.

Provides validation for check-in request fields before an event is
queued or sent to the backend.
"""

import re
from datetime import date

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Booking id")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_identifier(value: object, field_name: str) -> tuple[bool, str]:
    """
    Validate an opaque identifier (booking id, hotel id).

    Identifiers are kept as strings so large numeric ids never lose
    precision. Integers are accepted and compared by their string form.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if value is None or isinstance(value, bool):
        return (False, format_validation_error(field_name, "is required"))
    if not isinstance(value, (str, int)):
        return (
            False,
            format_validation_error(field_name, "must be a string"),
        )
    if not str(value).strip():
        return (False, format_validation_error(field_name, "cannot be empty"))
    return (True, "")


def validate_room_number(room_number: object) -> tuple[bool, str]:
    """
    Validate an assigned room number.

    Validation rules:
        - Must be present
        - Must be an integer (bools rejected)
        - Must be >= 1 (rooms are 1-indexed)
    """
    if room_number is None:
        return (False, format_validation_error("Room number", "is required"))
    if isinstance(room_number, bool) or not isinstance(room_number, int):
        return (
            False,
            format_validation_error("Room number", "must be an integer"),
        )
    if room_number < 1:
        return (
            False,
            format_validation_error("Room number", "must be 1 or greater"),
        )
    return (True, "")


def validate_operational_date(today: object) -> tuple[bool, str]:
    """
    Validate the operational day a check-in applies to.

    Validation rules:
        - Cannot be empty
        - Must be an ISO calendar date (YYYY-MM-DD)
    """
    if today is None or not isinstance(today, str) or not today.strip():
        return (False, format_validation_error("Date", "cannot be empty"))
    if not _DATE_PATTERN.match(today):
        return (
            False,
            format_validation_error("Date", "must use YYYY-MM-DD format"),
        )
    try:
        date.fromisoformat(today)
    except ValueError:
        return (
            False,
            format_validation_error("Date", f"'{today}' is not a valid date"),
        )
    return (True, "")


def validate_checkin_fields(
    booking_id: object,
    room_number: object,
    hotel_id: object,
    today: object,
) -> tuple[bool, str]:
    """
    Validate all four fields of an offline check-in request.

    Returns the first failure found, in field order.
    """
    checks = (
        validate_identifier(booking_id, "Booking id"),
        validate_room_number(room_number),
        validate_identifier(hotel_id, "Hotel id"),
        validate_operational_date(today),
    )
    for is_valid, message in checks:
        if not is_valid:
            return (False, message)
    return (True, "")
