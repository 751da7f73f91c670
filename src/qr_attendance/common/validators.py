from __future__ import annotations

from typing import Any

from ..core.enums import ScanType
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} must not be empty")
    return value.strip()


def require_int(value: Any, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def parse_scan_type(value: Any) -> ScanType:
    try:
        return ScanType(str(value or "").strip())
    except ValueError:
        raise ValidationError("scan_type must be 'check_in' or 'check_out'")
