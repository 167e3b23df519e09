# backend/services/inventory.py
from typing import Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.item import Item
from models.sell import SellItem
from services.errors import ItemNotFoundError


def lock_for_update(query):
    """
    Row-level lock for the check-then-write part of stock mutations.

    SQLite ignores SELECT ... FOR UPDATE, PostgreSQL honors it.
    """
    return query.with_for_update()


def active_line_filter():
    return (SellItem.deleted == False, SellItem.self_deleted == False)  # noqa: E712


def sold_quantity(db: Session, item_id: int) -> int:
    # Suma ilości z aktywnych linii we wszystkich sprzedażach
    total = (
        db.query(func.coalesce(func.sum(SellItem.quantity), 0))
        .filter(SellItem.item_id == item_id, *active_line_filter())
        .scalar()
    )
    return int(total or 0)


def available_quantity(db: Session, item_id: int) -> int:
    item = db.query(Item).filter(Item.id == item_id).first()
    if item is None:
        raise ItemNotFoundError()
    return int(item.quantity or 0) - sold_quantity(db, item_id)


def item_quantity(db: Session, item_id: int) -> dict:
    item = db.query(Item).filter(Item.id == item_id, Item.deleted == False).first()  # noqa: E712
    if item is None:
        raise ItemNotFoundError()
    sold = sold_quantity(db, item.id)
    return {
        "item_id": item.id,
        "quantity": item.quantity,
        "sold": sold,
        "actual_quantity": int(item.quantity or 0) - sold,
    }


def resolve_item(db: Session, item_ref: Union[int, str], barcode: bool = False) -> Item:
    """Znajduje aktywny towar po id albo po kodzie kreskowym."""
    query = db.query(Item).filter(Item.deleted == False)  # noqa: E712
    if barcode:
        item = query.filter(Item.barcode == str(item_ref)).first()
    else:
        try:
            item_id = int(item_ref)
        except (TypeError, ValueError):
            raise ItemNotFoundError()
        item = query.filter(Item.id == item_id).first()
    if item is None:
        raise ItemNotFoundError()
    return item


def lock_item(db: Session, item_id: int) -> Optional[Item]:
    return lock_for_update(db.query(Item).filter(Item.id == item_id)).first()
