# backend/models/app_config.py
from sqlalchemy import Column, Integer, Float, String, Boolean
from database import Base

# Singleton with business parameters read by reports and printing
class Config(Base):
    __tablename__ = "config"

    id = Column(Integer, primary_key=True, index=True)
    report_print_modal = Column(Boolean, default=False, nullable=False)
    item_less_from = Column(Integer, default=0, nullable=False)
    initial_money = Column(Float, default=0, nullable=False)


# Drukarka raportów; drukowanie wymaga jednego aktywnego rekordu
class Printer(Base):
    __tablename__ = "printer"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    active = Column(Boolean, default=False, nullable=False)
