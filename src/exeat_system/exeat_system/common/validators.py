from __future__ import annotations

from datetime import date

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_date_order(start: date, end: date, *, start_name: str, end_name: str) -> None:
    if end < start:
        raise ValidationError(f"{end_name} must be on or after {start_name}")


def optional_text(value: str | None) -> str | None:
    return (value or "").strip() or None


def require_ids(values, field_name: str) -> list[int]:
    ids = []
    for value in values:
        if isinstance(value, bool):
            raise ValidationError(f"{field_name} contains an invalid id: {value!r}")
        try:
            ids.append(int(value))
        except (TypeError, ValueError):
            raise ValidationError(f"{field_name} contains an invalid id: {value!r}") from None
    return ids
