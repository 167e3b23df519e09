# backend/services/app_config.py
from typing import Callable

from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from models.app_config import Config


class BusinessConfig(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    report_print_modal: bool = False
    item_less_from: int = 0
    initial_money: float = 0


ConfigLoader = Callable[[], BusinessConfig]


def load_business_config(db: Session) -> BusinessConfig:
    # Brak rekordu -> wartości domyślne
    row = db.query(Config).order_by(Config.id.asc()).first()
    if row is None:
        return BusinessConfig()
    return BusinessConfig.model_validate(row)


def db_config_loader(db: Session) -> ConfigLoader:
    return lambda: load_business_config(db)


def fixed_config_loader(config: BusinessConfig) -> ConfigLoader:
    return lambda: config
