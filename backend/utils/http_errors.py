# utils/http_errors.py
from contextlib import contextmanager

from fastapi import HTTPException, status

from services.errors import DomainError, OperationError


@contextmanager
def http_errors():
    # DomainError -> 400, OperationError -> 500
    try:
        yield
    except DomainError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    except OperationError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)
