# src/models/notification.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, Index
from sqlalchemy.dialects.postgresql import JSONB
from src.db import Base

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)

    # кто отправил
    sender_id = Column(Integer, nullable=False)

    # кому (список user id); JSONB на PostgreSQL, обычный JSON в SQLite
    recipient_ids = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)

    message = Column(String(1024), nullable=False)

    # тип: challenge_invite | challenge_accepted | challenge_rejected
    type = Column(String(64), nullable=False)

    related_challenge_id = Column(Integer, nullable=True)
    related_invite_id = Column(Integer, nullable=True)

    seen = Column(Boolean, nullable=False, default=False)

    # три состояния (NULL/True/False), смысл зависит от type; храним как есть
    approved = Column(Boolean, nullable=True)

    created_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_notifications_related_invite", "related_invite_id"),
        Index("ix_notifications_recipient_ids", "recipient_ids", postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return f"<Notification id={self.id} type={self.type} sender={self.sender_id} to={self.recipient_ids}>"
