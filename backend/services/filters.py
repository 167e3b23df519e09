# backend/services/filters.py
"""
Warunkowe składanie filtrów raportów.

Każdy filtr to opis (wartość + funkcja tworząca predykat). Pusta wartość
(None albo "") nie dodaje predykatu, aktywne filtry są łączone przez AND.
Wyszukiwanie tekstowe jest osobnym trybem i zastępuje filtry strukturalne.
"""
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Any, Callable, Iterable, List, Optional, Sequence

from sqlalchemy import String, and_, cast, or_

from services.errors import ValidationError
from utils.formatting import parse_timestamp


def is_present(value: Any) -> bool:
    return value is not None and value != ""


@dataclass
class Predicate:
    value: Any
    contribute: Callable[[Any], Any]

    @property
    def active(self) -> bool:
        return is_present(self.value)

    def clause(self):
        return self.contribute(self.value)


@dataclass
class DateRangePredicate(Predicate):
    # Zakres dat działa tylko gdy oba końce są podane
    @property
    def active(self) -> bool:
        if not isinstance(self.value, (tuple, list)) or len(self.value) != 2:
            return False
        start, end = self.value
        return is_present(start) and is_present(end)


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid identifier: {value!r}")


def day_bounds(from_ms: Any, to_ms: Any):
    start = datetime.combine(parse_timestamp(from_ms).date(), time.min)
    end = datetime.combine(parse_timestamp(to_ms).date(), time.max)
    return start, end


# --- fabryki predykatów -------------------------------------------------

def date_between(column) -> Callable[[Any], Predicate]:
    def contribute(value):
        start, end = day_bounds(*value)
        return column.between(start, end)
    return lambda value: DateRangePredicate(value, contribute)


def any_equals(*columns) -> Callable[[Any], Predicate]:
    # e.g. user filter: created_by OR updated_by
    def contribute(value):
        ident = _as_int(value)
        return or_(*[col == ident for col in columns])
    return lambda value: Predicate(value, contribute)


def equals(column) -> Callable[[Any], Predicate]:
    return lambda value: Predicate(value, lambda v: column == _as_int(v))


def id_contains(column) -> Callable[[Any], Predicate]:
    return lambda value: Predicate(value, lambda v: cast(column, String).ilike(f"%{v}%"))


def text_search(text_columns: Sequence = (), id_columns: Sequence = ()) -> Callable[[Any], Predicate]:
    def contribute(term):
        like = f"%{term}%"
        clauses = [col.ilike(like) for col in text_columns]
        clauses += [cast(col, String).ilike(like) for col in id_columns]
        return or_(*clauses)
    return lambda value: Predicate(value, contribute)


def combine(predicates: Iterable[Predicate]):
    clauses = [p.clause() for p in predicates if p.active]
    if not clauses:
        return None
    return and_(*clauses)


def apply_filters(query, predicates: Iterable[Predicate]):
    clause = combine(predicates)
    if clause is None:
        return query
    return query.filter(clause)


@dataclass
class ReportFilters:
    """Parametry filtrów przekazywane z kontrolera (wszystkie opcjonalne)."""
    from_: Any = None
    to: Any = None
    user: Any = None
    type: Any = None
    color: Any = None
    car_model: Any = None
    car_type: Any = None
    service: Any = None
    search: Optional[str] = None

    extra: dict = field(default_factory=dict)

    @property
    def search_mode(self) -> bool:
        return is_present(self.search)

    def value_for(self, key: str):
        if key == "date":
            return (self.from_, self.to)
        if hasattr(self, key) and key != "extra":
            return getattr(self, key)
        return self.extra.get(key)

    def as_meta(self) -> dict:
        data = {
            "from": self.from_, "to": self.to, "user": self.user, "type": self.type,
            "color": self.color, "car_model": self.car_model, "car_type": self.car_type,
            "service": self.service, "search": self.search,
        }
        return {k: v for k, v in data.items() if is_present(v)}


def build_predicates(factories: dict, filters: ReportFilters) -> List[Predicate]:
    return [factory(filters.value_for(key)) for key, factory in factories.items()]
