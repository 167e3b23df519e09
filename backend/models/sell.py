# backend/models/sell.py
from datetime import datetime

from sqlalchemy import Column, Integer, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database import Base

# Model Sell
# Nagłówek sprzedaży (koszyk). Rabat mieści się w przedziale [0, suma aktywnych linii].
class Sell(Base):
    __tablename__ = "sell"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(DateTime, default=datetime.now)
    discount = Column(Float, nullable=False, default=0)

    deleted = Column(Boolean, default=False, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.now, index=True)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    items = relationship("SellItem", back_populates="sell")


# Model SellItem
# Linia sprzedaży z migawką cen z chwili dodania.
# deleted=True     -> usunięta razem z całą sprzedażą
# self_deleted=True -> usunięta pojedynczo z aktywnej sprzedaży
class SellItem(Base):
    __tablename__ = "sell_item"

    id = Column(Integer, primary_key=True, index=True)
    sell_id = Column(Integer, ForeignKey("sell.id"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("item.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)

    item_purchase_price = Column(Float, nullable=False, default=0)
    item_sell_price = Column(Float, nullable=False, default=0)

    deleted = Column(Boolean, default=False, nullable=False)
    self_deleted = Column(Boolean, default=False, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.now, index=True)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    sell = relationship("Sell", back_populates="items")
    item = relationship("Item")
