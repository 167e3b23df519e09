# utils/audit.py
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session

from models.log import Log


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host


# Audit row for sell mutations and report prints
def write_log(db: Session, *, user_id, action, resource, resource_id=None, status="SUCCESS",
              ip=None, meta=None):
    entry = Log(
        user_id=user_id,
        action=action,
        resource=resource,
        resource_id=None if resource_id is None else str(resource_id),
        status=status,
        ip=ip,
        meta=meta or {},
    )
    db.add(entry)
    db.commit()
    return entry
