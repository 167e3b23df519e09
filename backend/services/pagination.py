# backend/services/pagination.py
from typing import Optional

from sqlalchemy import extract

from config import settings
from services.errors import ValidationError


def validate_page(page: int, limit: int) -> None:
    if limit is None or limit <= 0:
        raise ValidationError("limit must be greater than 0")
    if page is None or page < 1:
        raise ValidationError("page must be greater than or equal to 1")


def narrow_by_day(query, date_column, year: Optional[int] = None,
                  month: Optional[int] = None, day: Optional[int] = None):
    # Zawężenie do roku / miesiąca / dnia (raport rezerwacji)
    if date_column is None:
        return query
    if year is not None:
        query = query.filter(extract("year", date_column) == year)
    if month is not None:
        query = query.filter(extract("month", date_column) == month)
    if day is not None:
        query = query.filter(extract("day", date_column) == day)
    return query


def generate_pagination_info(query, page: int, limit: int, date_column=None,
                             year: Optional[int] = None, month: Optional[int] = None,
                             day: Optional[int] = None) -> dict:
    """
    Zwraca {"total", "has_next_page"} dla zapytania z tymi samymi predykatami
    co zapytanie listy. Sortowanie jest usuwane przed liczeniem.
    """
    validate_page(page, limit)
    counted = narrow_by_day(query, date_column, year, month, day)
    total = counted.order_by(None).count()
    return {"total": total, "has_next_page": page * limit < total}


def next_page_url(page: int, limit: int, has_next_page: bool, base_url: Optional[str] = None) -> Optional[str]:
    if not has_next_page:
        return None
    base = base_url if base_url is not None else settings.APP_BASE_URL
    return f"{base}?page={page + 1}&limit={limit}"


def paginate(query, page: int, limit: int, date_column=None, year=None, month=None,
             day=None, base_url: Optional[str] = None) -> dict:
    info = generate_pagination_info(query, page, limit, date_column, year, month, day)
    rows = (narrow_by_day(query, date_column, year, month, day)
            .offset((page - 1) * limit)
            .limit(limit)
            .all())
    return {
        "paginated_data": rows,
        "meta": {
            "total": info["total"],
            "has_next_page": info["has_next_page"],
            "next_page_url": next_page_url(page, limit, info["has_next_page"], base_url),
        },
    }
