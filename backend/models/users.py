# backend/models/users.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from database import Base

# Represents an operator account; sales, expenses and reservations reference it by id
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    role = Column(String, nullable=True)
    deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
