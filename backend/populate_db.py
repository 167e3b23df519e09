# backend/populate_db.py
"""
Demo data: items from a CSV file plus an initial quantity-history snapshot
for every item, expense types and customers.

    python populate_db.py data_source/items.csv
"""
import logging
import os
import sys

import pandas as pd
from sqlalchemy.orm import Session

# Add 'backend' folder to Python path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from database import SessionLocal, init_db
from models.expense import ExpenseType
from models.item import Item, ItemQuantityHistory, ItemType
from models.reservation import Customer
from models.users import User

logger = logging.getLogger(__name__)

DATA_DIR = os.path.join(os.path.dirname(__file__), "data_source")
ITEM_COLUMNS = ["name", "barcode", "type", "item_purchase_price", "item_sell_price", "quantity"]
EXPENSE_TYPES = ["Rent", "Electricity", "Water", "Chemicals", "Salary"]


def load_items_frame(path: str) -> pd.DataFrame:
    """Reads and cleans the items CSV."""
    frame = pd.read_csv(path)
    missing = [col for col in ITEM_COLUMNS if col not in frame.columns]
    if missing:
        raise ValueError(f"Missing columns in {path}: {', '.join(missing)}")

    frame = frame.dropna(subset=["name", "barcode"]).copy()
    frame["barcode"] = frame["barcode"].astype(str).str.strip()
    frame = frame.drop_duplicates(subset=["barcode"], keep="first")
    frame["type"] = frame["type"].fillna("Other").astype(str)
    for col in ("item_purchase_price", "item_sell_price"):
        frame[col] = pd.to_numeric(frame[col], errors="coerce").fillna(0.0)
    frame["quantity"] = pd.to_numeric(frame["quantity"], errors="coerce").fillna(0).clip(lower=0).astype(int)
    if "item_less_from" in frame.columns:
        frame["item_less_from"] = pd.to_numeric(frame["item_less_from"], errors="coerce")
    else:
        frame["item_less_from"] = None
    return frame.reset_index(drop=True)


def _admin(session: Session) -> User:
    admin = session.query(User).filter(User.role == "admin").first()
    if admin is None:
        admin = User(username="admin", role="admin")
        session.add(admin)
        session.flush()
    return admin


def seed(session: Session, frame: pd.DataFrame) -> int:
    """Inserts items with their first history snapshot; returns the number of items."""
    admin = _admin(session)

    types = {t.name: t for t in session.query(ItemType).all()}
    for name in frame["type"].unique():
        if name not in types:
            types[name] = ItemType(name=name)
            session.add(types[name])
    session.flush()

    existing = {b for (b,) in session.query(Item.barcode).all()}
    created = 0
    for row in frame.itertuples(index=False):
        if row.barcode in existing:
            continue
        less_from = None if pd.isna(row.item_less_from) else int(row.item_less_from)
        item = Item(
            name=row.name,
            barcode=row.barcode,
            type_id=types[row.type].id,
            item_purchase_price=float(row.item_purchase_price),
            item_sell_price=float(row.item_sell_price),
            quantity=int(row.quantity),
            item_less_from=less_from,
            created_by=admin.id,
        )
        session.add(item)
        session.flush()
        session.add(ItemQuantityHistory(
            item_id=item.id,
            quantity=item.quantity,
            item_purchase_price=item.item_purchase_price,
            item_sell_price=item.item_sell_price,
            created_by=admin.id,
        ))
        created += 1

    for name in EXPENSE_TYPES:
        if session.query(ExpenseType).filter(ExpenseType.name == name).first() is None:
            session.add(ExpenseType(name=name))

    if session.query(Customer).count() == 0:
        session.add(Customer(first_name="Walk-in", last_name="Customer", phone="000000000"))

    session.commit()
    return created


def populate_database(path: str) -> None:
    init_db()
    session = SessionLocal()
    try:
        frame = load_items_frame(path)
        created = seed(session, frame)
        logger.info("Inserted %s items from %s", created, path)
    finally:
        session.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    csv_path = sys.argv[1] if len(sys.argv) > 1 else os.path.join(DATA_DIR, "items.csv")
    populate_database(csv_path)
