# backend/services/sell.py
"""
Sprzedaż (koszyk) i jej linie.

Stan linii:
    aktywna         deleted=False, self_deleted=False
    usunięta sama   deleted=False, self_deleted=True   (przywracana pojedynczo)
    usunięta z całą sprzedażą  deleted=True, self_deleted=True
                    (przywracana tylko przez restore_sale z listą item_ids)

Dostępna ilość towaru = item.quantity - suma aktywnych linii we wszystkich sprzedażach.
Sprawdzenie i zapis odbywają się w jednej transakcji z blokadą wiersza towaru.
"""
import logging
import math
from datetime import datetime
from typing import Iterable, List, Optional, Union

from sqlalchemy import String, cast, func
from sqlalchemy.orm import Session, aliased

from config import settings
from models.item import Item
from models.sell import Sell, SellItem
from models.users import User
from services.errors import (
    InsufficientStockError, ItemNotFoundError, ValidationError, operation_boundary,
)
from services.filters import ReportFilters, any_equals, apply_filters, build_predicates, date_between
from services.inventory import (
    active_line_filter, available_quantity, item_quantity, lock_item, resolve_item,
)
from services.pagination import paginate

logger = logging.getLogger(__name__)

created_user = aliased(User, name="created_user")
updated_user = aliased(User, name="updated_user")


def _row_dict(row) -> dict:
    return dict(row._mapping)


class SellService:
    def __init__(self, db: Session, search_limit: Optional[int] = None,
                 decrease_requires_available_stock: Optional[bool] = None,
                 base_url: Optional[str] = None):
        self.db = db
        self.search_limit = search_limit if search_limit is not None else settings.SEARCH_LIMIT
        if decrease_requires_available_stock is None:
            decrease_requires_available_stock = settings.DECREASE_REQUIRES_AVAILABLE_STOCK
        self.decrease_requires_available_stock = decrease_requires_available_stock
        self.base_url = base_url

    # ------------------------------------------------------------------
    # Odczyt
    # ------------------------------------------------------------------
    def _sell_query(self):
        return (
            self.db.query(
                Sell.id, Sell.date, Sell.discount, Sell.deleted,
                Sell.created_at, Sell.updated_at,
                created_user.username.label("created_by"),
                updated_user.username.label("updated_by"),
            )
            .outerjoin(created_user, Sell.created_by == created_user.id)
            .outerjoin(updated_user, Sell.updated_by == updated_user.id)
        )

    def _line_query(self):
        return (
            self.db.query(
                SellItem.id, SellItem.sell_id, SellItem.item_id, SellItem.quantity,
                SellItem.item_purchase_price, SellItem.item_sell_price,
                SellItem.deleted, SellItem.self_deleted,
                SellItem.created_at, SellItem.updated_at,
                Item.name.label("item_name"),
                created_user.username.label("created_by"),
                updated_user.username.label("updated_by"),
            )
            .outerjoin(Item, SellItem.item_id == Item.id)
            .outerjoin(created_user, SellItem.created_by == created_user.id)
            .outerjoin(updated_user, SellItem.updated_by == updated_user.id)
        )

    def list_sells(self, page: int, limit: int, user=None, from_=None, to=None,
                   deleted: bool = False) -> dict:
        filters = ReportFilters(from_=from_, to=to, user=user)
        query = self._sell_query().filter(Sell.deleted == deleted)
        query = apply_filters(query, build_predicates({
            "date": date_between(Sell.created_at),
            "user": any_equals(created_user.id, updated_user.id),
        }, filters))
        result = paginate(query.order_by(Sell.id.desc()), page, limit, base_url=self.base_url)
        result["paginated_data"] = [_row_dict(r) for r in result["paginated_data"]]
        return result

    def search_sells(self, term: str, deleted: bool = False) -> List[dict]:
        rows = (
            self._sell_query()
            .filter(Sell.deleted == deleted)
            .filter(cast(Sell.id, String).ilike(f"%{term or ''}%"))
            .order_by(Sell.id.desc())
            .limit(self.search_limit)
            .all()
        )
        return [_row_dict(r) for r in rows]

    def find_sell(self, sell_id: int) -> dict:
        row = self._sell_query().filter(Sell.id == sell_id, Sell.deleted == False).first()  # noqa: E712
        if row is None:
            raise ValidationError("sell not found")
        return _row_dict(row)

    def sell_items(self, sell_id: int) -> List[dict]:
        rows = (
            self._line_query()
            .filter(SellItem.sell_id == sell_id, *active_line_filter())
            .order_by(SellItem.id.asc())
            .all()
        )
        return [_row_dict(r) for r in rows]

    def deleted_sell_items(self, sell_id: int, user=None) -> List[dict]:
        # Linie usunięte razem ze sprzedażą
        query = self._line_query().filter(
            SellItem.sell_id == sell_id,
            SellItem.deleted == True,  # noqa: E712
            SellItem.self_deleted == True,  # noqa: E712
        )
        query = apply_filters(query, build_predicates(
            {"user": any_equals(created_user.id, updated_user.id)}, ReportFilters(user=user),
        ))
        return [_row_dict(r) for r in query.order_by(SellItem.id.asc()).all()]

    def _self_deleted_query(self):
        return self._line_query().filter(
            SellItem.deleted == False,  # noqa: E712
            SellItem.self_deleted == True,  # noqa: E712
        )

    def self_deleted_items(self, page: int, limit: int, user=None) -> dict:
        query = apply_filters(self._self_deleted_query(), build_predicates(
            {"user": any_equals(created_user.id, updated_user.id)}, ReportFilters(user=user),
        ))
        result = paginate(query.order_by(SellItem.id.desc()), page, limit, base_url=self.base_url)
        result["paginated_data"] = [_row_dict(r) for r in result["paginated_data"]]
        return result

    def search_self_deleted_items(self, term: str) -> List[dict]:
        rows = (
            self._self_deleted_query()
            .filter(cast(SellItem.sell_id, String).ilike(f"%{term or ''}%"))
            .order_by(SellItem.id.desc())
            .all()
        )
        return [_row_dict(r) for r in rows]

    def item_quantity(self, item_id: int) -> dict:
        return item_quantity(self.db, item_id)

    def receipt_data(self, sell_id: int) -> dict:
        sell = self.find_sell(sell_id)
        lines = self.sell_items(sell_id)
        if not lines:
            raise ValidationError("cannot print an empty basket")
        total = sum((line["item_sell_price"] or 0) * (line["quantity"] or 0) for line in lines)
        return {
            "sell": sell,
            "sell_items": lines,
            "total_sell_price": total,
            "total_after_discount": total - (sell["discount"] or 0),
        }

    # ------------------------------------------------------------------
    # Mutacje
    # ------------------------------------------------------------------
    def _active_sell(self, sell_id: int) -> Sell:
        sell = self.db.query(Sell).filter(Sell.id == sell_id, Sell.deleted == False).first()  # noqa: E712
        if sell is None:
            raise ValidationError("sell not found")
        return sell

    def _active_line(self, sell_id: int, item_id: int) -> Optional[SellItem]:
        return (
            self.db.query(SellItem)
            .filter(SellItem.sell_id == sell_id, SellItem.item_id == item_id, *active_line_filter())
            .first()
        )

    def _require_line(self, sell_id: int, item_id: int) -> SellItem:
        line = self._active_line(sell_id, item_id)
        if line is None:
            raise ValidationError("sell item not found")
        return line

    def _require_available(self, item_id: int, needed: int = 1) -> None:
        # Blokada wiersza towaru, potem świeże przeliczenie dostępnej ilości
        if lock_item(self.db, item_id) is None:
            raise ItemNotFoundError()
        if available_quantity(self.db, item_id) < needed:
            raise InsufficientStockError()

    def _active_total(self, sell_id: int) -> float:
        self.db.flush()
        total = (
            self.db.query(func.coalesce(func.sum(SellItem.item_sell_price * SellItem.quantity), 0))
            .filter(SellItem.sell_id == sell_id, *active_line_filter())
            .scalar()
        )
        return float(total or 0)

    def _clamp_discount(self, sell_id: int) -> None:
        # Rabat nigdy nie przekracza sumy aktywnych linii
        sell = self.db.query(Sell).filter(Sell.id == sell_id).first()
        if sell is None:
            return
        total = self._active_total(sell_id)
        if (sell.discount or 0) > total:
            logger.info("sell %s discount lowered from %s to %s", sell_id, sell.discount, total)
            sell.discount = total

    def _new_sell(self, operator_id: Optional[int]) -> Sell:
        sell = Sell(date=datetime.now(), discount=0, created_by=operator_id)
        self.db.add(sell)
        self.db.flush()
        return sell

    def create_sale(self, operator_id: Optional[int]) -> Sell:
        with operation_boundary(self.db, name="create_sale"):
            sell = self._new_sell(operator_id)
        self.db.refresh(sell)
        logger.info("sell %s created by %s", sell.id, operator_id)
        return sell

    def add_item(self, sell_id: int, item_ref: Union[int, str], operator_id: Optional[int],
                 barcode: bool = False) -> SellItem:
        """
        sell_id == 0 zakłada nową sprzedaż w tej samej operacji.
        Istniejąca aktywna linia dla (sprzedaż, towar) jest zwiększana o 1.
        """
        with operation_boundary(self.db, name="add_item"):
            item = resolve_item(self.db, item_ref, barcode=barcode)
            self._require_available(item.id)

            if int(sell_id) == 0:
                sell = self._new_sell(operator_id)
            else:
                sell = self._active_sell(sell_id)

            line = self._active_line(sell.id, item.id)
            if line is not None:
                line.quantity = line.quantity + 1
                line.updated_by = operator_id
            else:
                # Migawka cen z chwili dodania
                line = SellItem(
                    sell_id=sell.id,
                    item_id=item.id,
                    quantity=1,
                    item_purchase_price=item.item_purchase_price,
                    item_sell_price=item.item_sell_price,
                    created_by=operator_id,
                )
                self.db.add(line)
            self.db.flush()
        self.db.refresh(line)
        return line

    def increase(self, sell_id: int, item_id: int, operator_id: Optional[int]) -> SellItem:
        with operation_boundary(self.db, name="increase_item"):
            self._require_available(item_id)
            line = self._require_line(sell_id, item_id)
            line.quantity = line.quantity + 1
            line.updated_by = operator_id
        self.db.refresh(line)
        return line

    def decrease(self, sell_id: int, item_id: int, operator_id: Optional[int]) -> SellItem:
        with operation_boundary(self.db, name="decrease_item"):
            if self.decrease_requires_available_stock:
                self._require_available(item_id)
            line = self._require_line(sell_id, item_id)
            if line.quantity - 1 < 0:
                raise ValidationError("quantity cannot be negative")
            line.quantity = line.quantity - 1
            line.updated_by = operator_id
            self._clamp_discount(sell_id)
        self.db.refresh(line)
        return line

    def update_item_quantity(self, sell_id: int, item_id: int, quantity: int,
                             operator_id: Optional[int]) -> SellItem:
        with operation_boundary(self.db, name="update_item_quantity"):
            if quantity is None or int(quantity) < 0:
                raise ValidationError("quantity cannot be negative")
            quantity = int(quantity)
            line = self._require_line(sell_id, item_id)
            increase = quantity - line.quantity
            if increase > 0:
                self._require_available(item_id, needed=increase)
            line.quantity = quantity
            line.updated_by = operator_id
            if increase < 0:
                self._clamp_discount(sell_id)
        self.db.refresh(line)
        return line

    def remove_item(self, sell_id: int, item_id: int) -> int:
        with operation_boundary(self.db, name="remove_item"):
            line = self._require_line(sell_id, item_id)
            line.self_deleted = True
            self._clamp_discount(sell_id)
        return item_id

    def update_discount(self, sell_id: int, discount, operator_id: Optional[int]) -> Sell:
        with operation_boundary(self.db, name="update_discount"):
            try:
                value = float(discount)
            except (TypeError, ValueError):
                raise ValidationError("invalid discount")
            if not math.isfinite(value):
                raise ValidationError("invalid discount")
            sell = self._active_sell(sell_id)
            if value < 0 or value > self._active_total(sell.id):
                raise ValidationError("discount must be between 0 and the sell total")
            sell.discount = value
            sell.updated_by = operator_id
        self.db.refresh(sell)
        return sell

    def delete_sale(self, sell_id: int, operator_id: Optional[int] = None) -> int:
        # Sprzedaż i wszystkie jej linie w jednej transakcji
        with operation_boundary(self.db, name="delete_sale"):
            sell = self.db.query(Sell).filter(Sell.id == sell_id).first()
            if sell is None:
                raise ValidationError("sell not found")
            sell.deleted = True
            sell.updated_by = operator_id
            (self.db.query(SellItem)
                .filter(SellItem.sell_id == sell.id)
                .update({SellItem.deleted: True, SellItem.self_deleted: True},
                        synchronize_session="fetch"))
        return sell_id

    def restore_sale(self, sell_id: int, item_ids: Iterable[int] = (),
                     operator_id: Optional[int] = None) -> int:
        """Przywraca sprzedaż i tylko te linie, których item_id jest na liście."""
        item_ids = [int(i) for i in (item_ids or [])]
        with operation_boundary(self.db, name="restore_sale"):
            sell = self.db.query(Sell).filter(Sell.id == sell_id).first()
            if sell is None:
                raise ValidationError("sell not found")
            sell.deleted = False
            sell.updated_by = operator_id
            # Jedna aktywna linia na (sprzedaż, towar): wraca tylko najnowsza
            for item_id in dict.fromkeys(item_ids):
                if self._active_line(sell.id, item_id) is not None:
                    continue
                line = (
                    self.db.query(SellItem)
                    .filter(SellItem.sell_id == sell.id,
                            SellItem.item_id == item_id,
                            SellItem.deleted == True)  # noqa: E712
                    .order_by(SellItem.id.desc())
                    .first()
                )
                if line is not None:
                    line.deleted = False
                    line.self_deleted = False
                    line.updated_by = operator_id
                    self.db.flush()
            self._clamp_discount(sell.id)
        return sell_id

    def restore_self_deleted_line(self, item_id: int, sell_id: Optional[int] = None) -> int:
        """
        Przywraca linie usunięte pojedynczo (deleted=False, self_deleted=True).
        W jednej sprzedaży przywracana jest najnowsza taka linia. Jeżeli dla tej
        pary (sprzedaż, towar) istnieje już aktywna linia, operacja jest odrzucana.
        """
        with operation_boundary(self.db, name="restore_self_deleted_line"):
            query = self.db.query(SellItem).filter(
                SellItem.item_id == item_id,
                SellItem.deleted == False,  # noqa: E712
                SellItem.self_deleted == True,  # noqa: E712
            )
            if sell_id is not None:
                query = query.filter(SellItem.sell_id == sell_id)
            lines = query.order_by(SellItem.id.desc()).all()
            if not lines:
                raise ValidationError("no removed line for this item")

            restored = set()
            for line in lines:
                if line.sell_id in restored:
                    continue
                if self._active_line(line.sell_id, line.item_id) is not None:
                    raise ValidationError("item is already active in this sell")
                line.self_deleted = False
                restored.add(line.sell_id)
        return item_id
