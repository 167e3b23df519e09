# backend/models/reservation.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database import Base

# Słowniki używane przez rezerwacje (filtry raportu rezerwacji)
class CarModel(Base):
    __tablename__ = "car_model"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)


class CarType(Base):
    __tablename__ = "car_type"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)


class Color(Base):
    __tablename__ = "color"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)


class Service(Base):
    __tablename__ = "service"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)


class Customer(Base):
    __tablename__ = "customer"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=True)
    phone = Column(String, nullable=True, index=True)
    deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now)


# Model Reservation
# Rezerwacja usługi. `complete` oznacza wykonanie, niezależnie od `deleted`.
class Reservation(Base):
    __tablename__ = "reservation"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customer.id"), nullable=True)
    car_model_id = Column(Integer, ForeignKey("car_model.id"), nullable=True)
    car_type_id = Column(Integer, ForeignKey("car_type.id"), nullable=True)
    color_id = Column(Integer, ForeignKey("color.id"), nullable=True)
    service_id = Column(Integer, ForeignKey("service.id"), nullable=True)

    price = Column(Float, nullable=False, default=0)
    date_time = Column(DateTime, nullable=False, index=True)
    note = Column(String, nullable=True)
    complete = Column(Boolean, default=False, nullable=False)

    deleted = Column(Boolean, default=False, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    customer = relationship("Customer")
