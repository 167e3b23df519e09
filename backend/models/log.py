# backend/models/log.py
from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from database import Base


class Log(Base):
    """Audit trail: one row per sell mutation or report print."""
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    action = Column(String(50), index=True)        # SELL_ADD_ITEM, REPORT_PRINT, ...
    resource = Column(String(50), index=True)      # sell | report
    resource_id = Column(String(50), nullable=True, index=True)  # sell id or report kind
    status = Column(String(20), index=True)
    ip = Column(String(64), nullable=True)
    meta = Column(JSON, nullable=True)

    operator = relationship("User", lazy="joined", uselist=False)
