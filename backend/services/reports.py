# backend/services/reports.py
"""
Raporty: sprzedaż, towary, koga (magazyn), zysk, wydatki, kasa, rezerwacje.

Każdy raport jest opisany jednym ReportDefinition:
  - query      zapytanie bazowe (joiny, kolumny, zakres soft-delete, grupowanie, sortowanie)
  - filters    filtry strukturalne: klucz z ReportFilters -> fabryka predykatu
  - search_*   kolumny tekstowe i identyfikatory dla wyszukiwania
  - aggregates sumy liczone na zgrupowanych wierszach listy (podzapytanie)

Lista, informacja zbiorcza, wyszukiwanie i dane do wydruku korzystają
z tych samych predykatów, więc licznik zawsze zgadza się z listą.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session, aliased

from config import settings
from models.expense import Expense, ExpenseType
from models.item import Item, ItemQuantityHistory, ItemType
from models.reservation import CarModel, CarType, Color, Customer, Reservation, Service
from models.sell import Sell, SellItem
from models.users import User
from services.app_config import BusinessConfig, ConfigLoader, db_config_loader
from services.errors import ValidationError
from services.filters import (
    ReportFilters, any_equals, apply_filters, build_predicates, date_between, equals,
    id_contains, text_search,
)
from services.pagination import paginate

logger = logging.getLogger(__name__)

created_user = aliased(User, name="created_user")
updated_user = aliased(User, name="updated_user")
operator = aliased(User, name="operator")


def _sum(expr):
    return func.coalesce(func.sum(expr), 0)


def _active_lines():
    return and_(SellItem.deleted == False, SellItem.self_deleted == False)  # noqa: E712


@dataclass
class ReportDefinition:
    name: str
    query: Callable[[Session, BusinessConfig], object]
    aggregates: Callable[[object], list]
    filters: Dict[str, Callable] = field(default_factory=dict)
    search_text: Sequence = ()
    search_ids: Sequence = ()
    date_column: Optional[object] = None


# ---------------------------------------------------------------------------
# Sprzedaż / zysk z rachunków
# ---------------------------------------------------------------------------

def _sell_query(db: Session, config: BusinessConfig, with_profit: bool = False):
    columns = [
        Sell.id, Sell.date, Sell.discount, Sell.created_at,
        created_user.username.label("created_by"),
        updated_user.username.label("updated_by"),
        _sum(SellItem.item_sell_price * SellItem.quantity).label("total_sell_price"),
    ]
    if with_profit:
        columns.append(_sum(SellItem.item_purchase_price * SellItem.quantity).label("total_purchase_price"))
    return (
        db.query(*columns)
        .join(SellItem, SellItem.sell_id == Sell.id)
        .outerjoin(created_user, Sell.created_by == created_user.id)
        .outerjoin(updated_user, Sell.updated_by == updated_user.id)
        .filter(Sell.deleted == False, _active_lines())  # noqa: E712
        .group_by(Sell.id, created_user.username, updated_user.username)
        .order_by(Sell.id.desc())
    )


def _sell_aggregates(c):
    return [
        func.count(c.id).label("sell_count"),
        _sum(c.total_sell_price).label("total_sell_price"),
        _sum(c.discount).label("total_sell_discount"),
    ]


def _bill_profit_aggregates(c):
    return _sell_aggregates(c) + [
        _sum(c.total_purchase_price).label("total_purchase_price"),
        _sum(c.total_sell_price - c.total_purchase_price).label("total_profit"),
    ]


_SELL_FILTERS = {
    "date": date_between(Sell.created_at),
    "user": any_equals(created_user.id, updated_user.id),
}


# ---------------------------------------------------------------------------
# Sprzedane towary / zysk z towarów
# ---------------------------------------------------------------------------

def _item_query(db: Session, config: BusinessConfig, with_profit: bool = False):
    columns = [
        SellItem.id, SellItem.sell_id, SellItem.item_id, SellItem.quantity,
        SellItem.item_purchase_price, SellItem.item_sell_price, SellItem.created_at,
        Item.name.label("item_name"), Item.barcode.label("item_barcode"),
        ItemType.id.label("type_id"), ItemType.name.label("type_name"),
        created_user.username.label("created_by"),
        updated_user.username.label("updated_by"),
    ]
    if with_profit:
        columns.append(
            ((SellItem.item_sell_price - SellItem.item_purchase_price) * SellItem.quantity).label("profit")
        )
    query = (
        db.query(*columns)
        .join(Item, SellItem.item_id == Item.id)
        .outerjoin(ItemType, Item.type_id == ItemType.id)
        .outerjoin(Sell, SellItem.sell_id == Sell.id)
        .outerjoin(created_user, SellItem.created_by == created_user.id)
        .outerjoin(updated_user, SellItem.updated_by == updated_user.id)
        .filter(Item.deleted == False, _active_lines())  # noqa: E712
    )
    if with_profit:
        query = query.filter(Sell.deleted == False)  # noqa: E712
    return query.order_by(SellItem.id.desc())


def _item_aggregates(c):
    return [
        func.count(c.id).label("total_count"),
        _sum(c.quantity).label("total_sell"),
        _sum(c.item_sell_price).label("total_sell_price"),
        _sum(c.item_sell_price * c.quantity).label("total_price"),
    ]


def _item_profit_aggregates(c):
    # total_single_profit: różnica sum cen jednostkowych, bez mnożenia przez ilość
    return [
        func.count(c.id).label("total_count"),
        _sum(c.quantity).label("total_quantity"),
        _sum(c.item_sell_price).label("total_sell_price"),
        _sum(c.item_purchase_price).label("total_purchase_price"),
        _sum(c.item_purchase_price * c.quantity).label("total_cost"),
        (_sum(c.item_sell_price) - _sum(c.item_purchase_price)).label("total_single_profit"),
        _sum((c.item_sell_price - c.item_purchase_price) * c.quantity).label("total_profit"),
    ]


_ITEM_FILTERS = {
    "type": id_contains(ItemType.id),
    "date": date_between(SellItem.created_at),
    "user": any_equals(created_user.id, updated_user.id),
}


# ---------------------------------------------------------------------------
# Koga: stan magazynu
# ---------------------------------------------------------------------------

def _sold_quantity():
    return _sum(SellItem.quantity)


def _remaining():
    return func.coalesce(Item.quantity, 0) - _sold_quantity()


def _koga_query(db: Session, config: BusinessConfig):
    # Tylko aktywne linie w ON, towar bez sprzedaży zostaje z sell_quantity = 0
    return (
        db.query(
            Item.id, Item.name, Item.barcode, Item.quantity,
            Item.item_purchase_price, Item.item_sell_price, Item.item_less_from,
            Item.created_at,
            ItemType.id.label("type_id"), ItemType.name.label("type_name"),
            created_user.username.label("created_by"),
            updated_user.username.label("updated_by"),
            _sold_quantity().label("sell_quantity"),
            _remaining().label("remaining"),
            _sum(SellItem.quantity * SellItem.item_sell_price).label("total_sell_price"),
        )
        .outerjoin(SellItem, and_(SellItem.item_id == Item.id, _active_lines()))
        .outerjoin(ItemType, Item.type_id == ItemType.id)
        .outerjoin(created_user, Item.created_by == created_user.id)
        .outerjoin(updated_user, Item.updated_by == updated_user.id)
        .filter(Item.deleted == False)  # noqa: E712
        .group_by(Item.id, ItemType.id, ItemType.name, created_user.username, updated_user.username)
        .order_by(Item.id.desc())
    )


def _koga_null_query(db: Session, config: BusinessConfig):
    return _koga_query(db, config).having(_remaining() <= 0)


def _koga_less_query(db: Session, config: BusinessConfig):
    # Wystarczy przekroczenie jednego z progów: globalnego albo własnego towaru
    return _koga_query(db, config).having(or_(
        _remaining() <= config.item_less_from,
        _remaining() <= Item.item_less_from,
    ))


def _koga_aggregates(c):
    return [
        func.count(c.id).label("total_count"),
        _sum(c.quantity).label("total_item_quantity"),
        _sum(c.sell_quantity).label("total_sell_quantity"),
        _sum(c.item_purchase_price * c.quantity).label("total_purchase_price"),
        _sum(c.total_sell_price).label("total_sell_price"),
        _sum(func.coalesce(c.quantity, 0) * c.item_purchase_price).label("total_cost"),
    ]


_KOGA_FILTERS = {
    "type": id_contains(ItemType.id),
    "user": any_equals(created_user.id, updated_user.id),
}
_KOGA_SEARCH_TEXT = (Item.name, Item.barcode, created_user.username, updated_user.username)


def _movement_query(db: Session, config: BusinessConfig):
    return (
        db.query(
            ItemQuantityHistory.id, ItemQuantityHistory.item_id, ItemQuantityHistory.quantity,
            ItemQuantityHistory.item_purchase_price, ItemQuantityHistory.item_sell_price,
            ItemQuantityHistory.created_at,
            Item.barcode.label("item_barcode"), Item.name.label("item_name"),
            ItemType.id.label("type_id"), ItemType.name.label("type_name"),
            operator.username.label("created_by"),
        )
        .outerjoin(operator, ItemQuantityHistory.created_by == operator.id)
        .outerjoin(Item, ItemQuantityHistory.item_id == Item.id)
        .outerjoin(ItemType, Item.type_id == ItemType.id)
        .filter(or_(Item.deleted == False, Item.deleted.is_(None)))  # noqa: E712
        .order_by(ItemQuantityHistory.id.desc())
    )


def _movement_aggregates(c):
    return [
        func.count(c.id).label("total_count"),
        _sum(c.quantity).label("total_item_quantity"),
        _sum(c.item_purchase_price).label("total_purchase_price"),
        _sum(func.coalesce(c.quantity, 0) * c.item_purchase_price).label("total_cost"),
    ]


# ---------------------------------------------------------------------------
# Wydatki
# ---------------------------------------------------------------------------

def _expense_query(db: Session, config: BusinessConfig):
    return (
        db.query(
            Expense.id, Expense.price, Expense.date, Expense.note, Expense.created_at,
            ExpenseType.id.label("type_id"), ExpenseType.name.label("type_name"),
            created_user.username.label("created_by"),
            updated_user.username.label("updated_by"),
        )
        .outerjoin(ExpenseType, Expense.type_id == ExpenseType.id)
        .outerjoin(created_user, Expense.created_by == created_user.id)
        .outerjoin(updated_user, Expense.updated_by == updated_user.id)
        .filter(Expense.deleted == False)  # noqa: E712
        .order_by(Expense.id.desc())
    )


def _expense_aggregates(c):
    return [
        func.count(c.id).label("total_count"),
        _sum(c.price).label("total_price"),
    ]


# ---------------------------------------------------------------------------
# Kasa: przychód per operator
# ---------------------------------------------------------------------------

def _case_query(db: Session, config: BusinessConfig):
    sold_price = _sum(SellItem.item_sell_price * SellItem.quantity)
    return (
        db.query(
            operator.username.label("created_by"),
            operator.id.label("user_id"),
            sold_price.label("sold_price"),
            _sum(SellItem.quantity).label("sold"),
        )
        .select_from(SellItem)
        .join(Sell, SellItem.sell_id == Sell.id)
        .outerjoin(operator, SellItem.created_by == operator.id)
        .filter(Sell.deleted == False, _active_lines())  # noqa: E712
        .group_by(operator.username, operator.id)
        .order_by(sold_price.desc(), operator.id.asc())
    )


def _case_aggregates(c):
    return [
        _sum(c.sold_price).label("total_sell_price"),
        _sum(c.sold).label("total_quantity"),
    ]


# ---------------------------------------------------------------------------
# Rezerwacje
# ---------------------------------------------------------------------------

def _reservation_query(db: Session, config: BusinessConfig):
    return (
        db.query(
            Reservation.id, Reservation.price, Reservation.date_time, Reservation.note,
            Reservation.complete, Reservation.created_at,
            Reservation.color_id, Reservation.car_model_id, Reservation.car_type_id,
            Reservation.service_id,
            CarModel.name.label("car_model_name"), CarType.name.label("car_type_name"),
            Color.name.label("color_name"), Service.name.label("service_name"),
            Customer.first_name.label("customer_first_name"),
            Customer.last_name.label("customer_last_name"),
            created_user.username.label("created_by"),
            updated_user.username.label("updated_by"),
        )
        .outerjoin(created_user, Reservation.created_by == created_user.id)
        .outerjoin(updated_user, Reservation.updated_by == updated_user.id)
        .outerjoin(CarModel, Reservation.car_model_id == CarModel.id)
        .outerjoin(CarType, Reservation.car_type_id == CarType.id)
        .outerjoin(Color, Reservation.color_id == Color.id)
        .outerjoin(Service, Reservation.service_id == Service.id)
        .outerjoin(Customer, Reservation.customer_id == Customer.id)
        .filter(Reservation.deleted == False)  # noqa: E712
        .order_by(Reservation.id.desc())
    )


def _reservation_aggregates(c):
    return [
        func.count(func.distinct(c.id)).label("reservation_count"),
        _sum(c.price).label("total_price"),
    ]


# ---------------------------------------------------------------------------
# Rejestr raportów
# ---------------------------------------------------------------------------

REPORTS: Dict[str, ReportDefinition] = {
    "sell": ReportDefinition(
        name="sell",
        query=_sell_query,
        aggregates=_sell_aggregates,
        filters=_SELL_FILTERS,
        search_text=(created_user.username, updated_user.username),
        search_ids=(Sell.id,),
    ),
    "bill_profit": ReportDefinition(
        name="bill_profit",
        query=lambda db, config: _sell_query(db, config, with_profit=True),
        aggregates=_bill_profit_aggregates,
        filters=_SELL_FILTERS,
        search_text=(created_user.username, updated_user.username),
        search_ids=(Sell.id,),
    ),
    "item": ReportDefinition(
        name="item",
        query=_item_query,
        aggregates=_item_aggregates,
        filters=_ITEM_FILTERS,
        search_text=(created_user.username, updated_user.username, Item.name, Item.barcode),
        search_ids=(SellItem.sell_id,),
    ),
    "item_profit": ReportDefinition(
        name="item_profit",
        query=lambda db, config: _item_query(db, config, with_profit=True),
        aggregates=_item_profit_aggregates,
        filters=_ITEM_FILTERS,
        search_text=(created_user.username, updated_user.username),
        search_ids=(SellItem.sell_id,),
    ),
    "koga_all": ReportDefinition(
        name="koga_all",
        query=_koga_query,
        aggregates=_koga_aggregates,
        filters=_KOGA_FILTERS,
        search_text=_KOGA_SEARCH_TEXT,
        search_ids=(Item.id,),
    ),
    "koga_null": ReportDefinition(
        name="koga_null",
        query=_koga_null_query,
        aggregates=_koga_aggregates,
        filters=_KOGA_FILTERS,
        search_text=_KOGA_SEARCH_TEXT,
        search_ids=(Item.id,),
    ),
    "koga_less": ReportDefinition(
        name="koga_less",
        query=_koga_less_query,
        aggregates=_koga_aggregates,
        filters=_KOGA_FILTERS,
        search_text=_KOGA_SEARCH_TEXT,
        search_ids=(Item.id,),
    ),
    "koga_movement": ReportDefinition(
        name="koga_movement",
        query=_movement_query,
        aggregates=_movement_aggregates,
        filters={
            "type": id_contains(ItemType.id),
            "date": date_between(ItemQuantityHistory.created_at),
            "user": equals(operator.id),
        },
        search_text=(operator.username, Item.barcode, Item.name),
        search_ids=(Item.id, ItemQuantityHistory.id),
    ),
    "expense": ReportDefinition(
        name="expense",
        query=_expense_query,
        aggregates=_expense_aggregates,
        filters={
            "type": id_contains(ExpenseType.id),
            "date": date_between(Expense.created_at),
            "user": any_equals(created_user.id, updated_user.id),
        },
        search_text=(created_user.username, updated_user.username, ExpenseType.name),
        search_ids=(Expense.id,),
    ),
    "case": ReportDefinition(
        name="case",
        query=_case_query,
        aggregates=_case_aggregates,
        filters={
            "date": date_between(SellItem.created_at),
            "user": equals(operator.id),
        },
        search_text=(operator.username,),
        search_ids=(operator.id,),
    ),
    "reservation": ReportDefinition(
        name="reservation",
        query=_reservation_query,
        aggregates=_reservation_aggregates,
        filters={
            "date": date_between(Reservation.date_time),
            "color": equals(Reservation.color_id),
            "car_model": equals(Reservation.car_model_id),
            "car_type": equals(Reservation.car_type_id),
            "service": equals(Reservation.service_id),
            "user": any_equals(created_user.id, updated_user.id),
        },
        search_text=(
            Customer.first_name, Customer.last_name, Service.name, Color.name,
            CarModel.name, CarType.name,
        ),
        search_ids=(Reservation.id,),
        date_column=Reservation.date_time,
    ),
}


def _rows(query) -> List[dict]:
    return [dict(row._mapping) for row in query.all()]


class ReportService:
    def __init__(self, db: Session, config_loader: Optional[ConfigLoader] = None,
                 base_url: Optional[str] = None, search_limit: Optional[int] = None):
        self.db = db
        self.config_loader = config_loader or db_config_loader(db)
        self.base_url = base_url
        self.search_limit = search_limit if search_limit is not None else settings.SEARCH_LIMIT

    def definition(self, name: str) -> ReportDefinition:
        try:
            return REPORTS[name]
        except KeyError:
            raise ValidationError(f"Unknown report: {name}")

    def _base(self, definition: ReportDefinition):
        return definition.query(self.db, self.config_loader())

    def _structured(self, definition: ReportDefinition, filters: ReportFilters):
        predicates = build_predicates(definition.filters, filters)
        return apply_filters(self._base(definition), predicates)

    def _searched(self, definition: ReportDefinition, term: str):
        predicate = text_search(definition.search_text, definition.search_ids)(term)
        return apply_filters(self._base(definition), [predicate])

    def _filtered(self, definition: ReportDefinition, filters: ReportFilters):
        # Wyszukiwanie tekstowe zastępuje filtry strukturalne
        if filters.search_mode:
            return self._searched(definition, filters.search)
        return self._structured(definition, filters)

    def _aggregate(self, definition: ReportDefinition, query) -> dict:
        sub = query.order_by(None).subquery()
        row = self.db.query(*definition.aggregates(sub.c)).one()
        return dict(row._mapping)

    # --- operacje ------------------------------------------------------

    def list(self, name: str, page: int, limit: int, filters: Optional[ReportFilters] = None,
             year: Optional[int] = None, month: Optional[int] = None,
             day: Optional[int] = None) -> dict:
        definition = self.definition(name)
        query = self._structured(definition, filters or ReportFilters())
        result = paginate(query, page, limit, definition.date_column, year, month, day,
                          base_url=self.base_url)
        result["paginated_data"] = [dict(r._mapping) for r in result["paginated_data"]]
        return result

    def info(self, name: str, filters: Optional[ReportFilters] = None) -> dict:
        definition = self.definition(name)
        return self._aggregate(definition, self._filtered(definition, filters or ReportFilters()))

    def search(self, name: str, term: Optional[str]) -> List[dict]:
        definition = self.definition(name)
        return _rows(self._searched(definition, term or "").limit(self.search_limit))

    def print_data(self, name: str, filters: Optional[ReportFilters] = None) -> dict:
        """Wiersze i podsumowanie do wydruku, tryb zależny od obecności frazy."""
        definition = self.definition(name)
        filters = filters or ReportFilters()
        if filters.search_mode:
            rows = _rows(self._searched(definition, filters.search).limit(self.search_limit))
        else:
            rows = _rows(self._structured(definition, filters))
        info = self._aggregate(definition, self._filtered(definition, filters))
        return {"rows": rows, "info": info}

    def global_case_info(self, from_=None, to=None) -> dict:
        # remain_money = initial_money - total_expense (sprzedaż tylko informacyjnie)
        config = self.config_loader()
        filters = ReportFilters(from_=from_, to=to)

        sells = self.db.query(_sum(SellItem.item_sell_price * SellItem.quantity)).filter(_active_lines())
        sells = apply_filters(sells, build_predicates({"date": date_between(SellItem.created_at)}, filters))

        expenses = self.db.query(_sum(Expense.price)).filter(Expense.deleted == False)  # noqa: E712
        expenses = apply_filters(expenses, build_predicates({"date": date_between(Expense.created_at)}, filters))

        total_money = float(config.initial_money or 0)
        total_sell = float(sells.scalar() or 0)
        total_expense = float(expenses.scalar() or 0)
        return {
            "total_money": total_money,
            "total_sell": total_sell,
            "total_expense": total_expense,
            "remain_money": total_money - total_expense,
        }
