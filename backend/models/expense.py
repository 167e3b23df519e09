# backend/models/expense.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database import Base

class ExpenseType(Base):
    __tablename__ = "expense_type"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now)


# Dated cost entry, summed by the expense report and the global cash position
class Expense(Base):
    __tablename__ = "expense"

    id = Column(Integer, primary_key=True, index=True)
    type_id = Column(Integer, ForeignKey("expense_type.id"), nullable=True)
    price = Column(Float, nullable=False, default=0)
    date = Column(DateTime, default=datetime.now)
    note = Column(String, nullable=True)

    deleted = Column(Boolean, default=False, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.now, index=True)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    type = relationship("ExpenseType")
