# backend/utils/formatting.py
from datetime import datetime
from typing import Optional, Union

from services.errors import ValidationError

Number = Union[int, float, str]


def parse_timestamp(value: Number) -> datetime:
    """Epoch milliseconds (number or numeric string) -> local datetime."""
    try:
        ms = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid timestamp: {value!r}")
    return datetime.fromtimestamp(ms / 1000)


# dd/mm/yyyy (en-GB)
def format_timestamp_to_date(timestamp: Number) -> str:
    return parse_timestamp(timestamp).strftime("%d/%m/%Y")


# YYYY-MM-DD w czasie lokalnym
def timestamp_to_date_string(timestamp: Number) -> str:
    return parse_timestamp(timestamp).strftime("%Y-%m-%d")


def format_money(value: Optional[Number]) -> str:
    """1234567.5 -> '1,234,567.5', 1200.0 -> '1,200', None -> '0'."""
    if value is None or value == "":
        return "0"
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}")
    text = f"{amount:,.2f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_date_ddmmyy(value: Union[str, datetime, None]) -> str:
    # Ręczne formatowanie daty do wydruku: dd/mm/yyyy
    if value is None or value == "":
        return ""
    if isinstance(value, datetime):
        return value.strftime("%d/%m/%Y")
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Bad date format: {value}")
    return parsed.strftime("%d/%m/%Y")


def format_date_ymdhm(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M")
