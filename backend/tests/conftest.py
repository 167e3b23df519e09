"""
Pytest fixtures for the auto spa backend.

Each test gets a fresh in-memory SQLite database, small factories for the
domain rows and a FastAPI test client bound to the same session.
"""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
import models.users  # noqa: F401
import models.item  # noqa: F401
import models.sell  # noqa: F401
import models.expense  # noqa: F401
import models.reservation  # noqa: F401
import models.app_config  # noqa: F401
import models.log  # noqa: F401
from models.app_config import Config, Printer
from models.expense import Expense, ExpenseType
from models.item import Item, ItemQuantityHistory, ItemType
from models.reservation import CarModel, CarType, Color, Customer, Reservation, Service
from models.sell import Sell, SellItem
from models.users import User
from services.app_config import BusinessConfig, fixed_config_loader


def ms(value: datetime) -> int:
    """Local datetime -> epoch milliseconds (same convention as the frontend)."""
    return int(value.timestamp() * 1000)


@pytest.fixture(scope='function')
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope='function')
def db_session(engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope='function')
def operator(db_session):
    user = User(username="cashier", role="admin")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def other_operator(db_session):
    user = User(username="manager", role="admin")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def make_item(db_session, operator):
    counter = {"n": 0}

    def _make(name=None, quantity=10, purchase=5.0, sell=10.0, type_=None,
              item_less_from=None, barcode=None, deleted=False):
        counter["n"] += 1
        item = Item(
            name=name or f"Item {counter['n']}",
            barcode=barcode or f"590000000{counter['n']:04d}",
            quantity=quantity,
            item_purchase_price=purchase,
            item_sell_price=sell,
            item_less_from=item_less_from,
            type_id=type_.id if type_ else None,
            deleted=deleted,
            created_by=operator.id,
        )
        db_session.add(item)
        db_session.commit()
        return item

    return _make


@pytest.fixture(scope='function')
def make_item_type(db_session):
    def _make(name="Chemicals"):
        item_type = ItemType(name=name)
        db_session.add(item_type)
        db_session.commit()
        return item_type

    return _make


@pytest.fixture(scope='function')
def make_sell(db_session, operator):
    """Sale with lines given as (item, quantity) pairs, prices snapshotted from the item."""
    def _make(lines=(), discount=0, created_by=None, created_at=None, deleted=False):
        sell = Sell(
            date=created_at or datetime.now(),
            discount=discount,
            created_by=(created_by or operator).id,
            created_at=created_at or datetime.now(),
            deleted=deleted,
        )
        db_session.add(sell)
        db_session.flush()
        for item, quantity in lines:
            db_session.add(SellItem(
                sell_id=sell.id,
                item_id=item.id,
                quantity=quantity,
                item_purchase_price=item.item_purchase_price,
                item_sell_price=item.item_sell_price,
                created_by=(created_by or operator).id,
                created_at=created_at or datetime.now(),
                deleted=deleted,
                self_deleted=deleted,
            ))
        db_session.commit()
        return sell

    return _make


@pytest.fixture(scope='function')
def make_expense(db_session, operator):
    def _make(price, created_at=None, type_name="Rent", deleted=False):
        expense_type = db_session.query(ExpenseType).filter(ExpenseType.name == type_name).first()
        if expense_type is None:
            expense_type = ExpenseType(name=type_name)
            db_session.add(expense_type)
            db_session.flush()
        expense = Expense(
            type_id=expense_type.id,
            price=price,
            date=created_at or datetime.now(),
            created_at=created_at or datetime.now(),
            created_by=operator.id,
            deleted=deleted,
        )
        db_session.add(expense)
        db_session.commit()
        return expense

    return _make


@pytest.fixture(scope='function')
def make_history(db_session, operator):
    def _make(item, quantity, created_at=None):
        row = ItemQuantityHistory(
            item_id=item.id,
            quantity=quantity,
            item_purchase_price=item.item_purchase_price,
            item_sell_price=item.item_sell_price,
            created_by=operator.id,
            created_at=created_at or datetime.now(),
        )
        db_session.add(row)
        db_session.commit()
        return row

    return _make


@pytest.fixture(scope='function')
def reservation_refs(db_session):
    refs = {
        "customer": Customer(first_name="Jan", last_name="Kowalski", phone="500100200"),
        "car_model": CarModel(name="Golf"),
        "car_type": CarType(name="Hatchback"),
        "color": Color(name="Red"),
        "service": Service(name="Full wash"),
        "other_color": Color(name="Black"),
    }
    db_session.add_all(refs.values())
    db_session.commit()
    return refs


@pytest.fixture(scope='function')
def make_reservation(db_session, operator, reservation_refs):
    def _make(date_time, price=100.0, color=None, deleted=False):
        reservation = Reservation(
            customer_id=reservation_refs["customer"].id,
            car_model_id=reservation_refs["car_model"].id,
            car_type_id=reservation_refs["car_type"].id,
            color_id=(color or reservation_refs["color"]).id,
            service_id=reservation_refs["service"].id,
            price=price,
            date_time=date_time,
            created_by=operator.id,
            deleted=deleted,
        )
        db_session.add(reservation)
        db_session.commit()
        return reservation

    return _make


@pytest.fixture(scope='function')
def business_config():
    return BusinessConfig(report_print_modal=False, item_less_from=0, initial_money=0)


@pytest.fixture(scope='function')
def config_loader(business_config):
    return fixed_config_loader(business_config)


@pytest.fixture(scope='function')
def stored_config(db_session):
    def _make(**values):
        row = Config(**values)
        db_session.add(row)
        db_session.commit()
        return row

    return _make


@pytest.fixture(scope='function')
def active_printer(db_session):
    printer = Printer(name="EPSON_TM", active=True)
    db_session.add(printer)
    db_session.commit()
    return printer


@pytest.fixture(scope='function')
def client(db_session, operator):
    """Test client with the database and the operator dependency overridden."""
    from main import app
    from utils.tokenJWT import get_current_user

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_user] = lambda: operator
    yield TestClient(app)
    app.dependency_overrides.clear()
