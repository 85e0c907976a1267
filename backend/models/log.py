from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Index, func
from database import Base


# One row per audited request: auth attempts, cart changes, payment and order events.
# status is "SUCCESS" or "FAIL"; meta carries ids and amounts, never secrets.
class Log(Base):
    __tablename__ = "logs"
    __table_args__ = (
        Index("ix_logs_resource_action", "resource", "action"),
    )

    id = Column(Integer, primary_key=True, index=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=True)
    action = Column(String(50), nullable=False)
    resource = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default="SUCCESS")
    ip = Column(String(64), nullable=True)
    meta = Column(JSON, nullable=True)
