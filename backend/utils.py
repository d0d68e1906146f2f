from datetime import datetime, timezone
from errors import ValidationError


def utcnow() -> datetime:
    """
    Current instant as a naive UTC datetime, the form every timestamp is stored in.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_datetime(value, field_name: str) -> datetime:
    """
    Converts an ISO-8601 string (or datetime) into a naive UTC datetime.

    Args:
        value: Raw input, e.g. '2026-01-01T00:00:00Z'.
        field_name: Name reported in the validation error.

    Returns:
        The normalized datetime.

    Raises:
        ValidationError: If the value is missing or not a timestamp.
    """
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} must be an ISO-8601 timestamp")
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError as e:
        raise ValidationError(f"{field_name} must be an ISO-8601 timestamp") from e
    return to_naive_utc(parsed)


def clear_database():
    """
    Drops every discount table and recreates the schema.

    Used by the reset script to give local environments a clean catalogue.
    """
    import schema  # Ensure all models are registered with Base
    from base import Base
    from db import engine
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
