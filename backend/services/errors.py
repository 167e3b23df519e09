# backend/services/errors.py
import logging
from contextlib import contextmanager

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Błąd po stronie użytkownika, komunikat trafia do klienta bez zmian."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    pass


class ItemNotFoundError(ValidationError):
    def __init__(self, message: str = "item not found"):
        super().__init__(message)


class InsufficientStockError(ValidationError):
    def __init__(self, message: str = "insufficient stock"):
        super().__init__(message)


class OperationError(Exception):
    """Unexpected storage or rendering failure, carries the underlying message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@contextmanager
def operation_boundary(db: Session, *, commit: bool = True, name: str = "operation"):
    # Jedna jednostka pracy: commit przy sukcesie, rollback przy każdym błędzie
    try:
        yield
        if commit:
            db.commit()
    except DomainError:
        db.rollback()
        raise
    except Exception as exc:
        db.rollback()
        logger.exception("%s failed", name)
        raise OperationError(str(exc)) from exc
