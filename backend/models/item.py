# backend/models/item.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database import Base

# Kategoria towaru (filtr "type" w raportach).
class ItemType(Base):
    __tablename__ = "item_type"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now)


# Model Item
# Pojedynczy towar magazynowy. `quantity` to stan przyjęty na magazyn,
# dostępna ilość jest liczona na bieżąco: quantity - suma aktywnych linii sprzedaży.
class Item(Base):
    __tablename__ = "item"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    barcode = Column(String, unique=True, nullable=False, index=True)
    type_id = Column(Integer, ForeignKey("item_type.id"), nullable=True)

    item_purchase_price = Column(Float, nullable=False, default=0)
    item_sell_price = Column(Float, nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=0)

    # Per-item low-stock threshold, NULL means only the global one applies
    item_less_from = Column(Integer, nullable=True)

    deleted = Column(Boolean, default=False, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    type = relationship("ItemType")


# Snapshot of quantity and prices written whenever stock is replenished
class ItemQuantityHistory(Base):
    __tablename__ = "item_quantity_history"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("item.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    item_purchase_price = Column(Float, nullable=False, default=0)
    item_sell_price = Column(Float, nullable=False, default=0)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.now, index=True)

    item = relationship("Item")
