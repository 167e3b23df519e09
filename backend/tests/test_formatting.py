from datetime import datetime

import pytest

from services.errors import ValidationError
from utils.formatting import (
    format_date_ddmmyy, format_date_ymdhm, format_money, format_timestamp_to_date,
    parse_timestamp, timestamp_to_date_string,
)
from conftest import ms


def test_timestamp_to_date_string_uses_local_calendar_day():
    stamp = ms(datetime(2024, 3, 7, 23, 30))
    assert timestamp_to_date_string(stamp) == "2024-03-07"
    assert timestamp_to_date_string(str(stamp)) == "2024-03-07"


def test_format_timestamp_to_date_is_day_month_year():
    assert format_timestamp_to_date(ms(datetime(2024, 12, 1, 8, 0))) == "01/12/2024"


def test_parse_timestamp_rejects_non_numbers():
    with pytest.raises(ValidationError):
        parse_timestamp("yesterday")


@pytest.mark.parametrize("value, expected", [
    (None, "0"),
    ("", "0"),
    (0, "0"),
    (1200, "1,200"),
    (1200.5, "1,200.5"),
    (1234567.25, "1,234,567.25"),
    ("99.90", "99.9"),
])
def test_format_money(value, expected):
    assert format_money(value) == expected


def test_format_date_ddmmyy():
    assert format_date_ddmmyy("2024-05-09") == "09/05/2024"
    assert format_date_ddmmyy(datetime(2024, 5, 9, 14, 0)) == "09/05/2024"
    assert format_date_ddmmyy(None) == ""


def test_format_date_ddmmyy_invalid_input_is_validation_error():
    with pytest.raises(ValidationError):
        format_date_ddmmyy("09.05.2024r")


def test_format_date_ymdhm():
    assert format_date_ymdhm(datetime(2024, 5, 9, 14, 5)) == "2024-05-09 14:05"
    assert format_date_ymdhm(None) == ""
