# src/models/follow.py
from sqlalchemy import (
    Column, Integer, ForeignKey, DateTime,
    UniqueConstraint, func, Index, CheckConstraint
)
from sqlalchemy.orm import relationship
from src.db import Base


class Follow(Base):
    """
    Направленное ребро графа подписок: follower_id подписан на followed_id.
    Одна строка на упорядоченную пару; подписка на себя запрещена.
    Из подписок строится список друзей, которых можно позвать в челлендж.
    """
    __tablename__ = "follow_graph"

    id = Column(Integer, primary_key=True, index=True)

    follower_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    followed_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("follower_id", "followed_id", name="uq_follow_pair"),
        CheckConstraint("follower_id <> followed_id", name="ck_follow_not_self"),
        Index("ix_follow_graph_follower", "follower_id"),
        Index("ix_follow_graph_followed", "followed_id"),
    )

    follower = relationship("User", foreign_keys=[follower_id])
    followed = relationship("User", foreign_keys=[followed_id])

    def __repr__(self):
        return f"<Follow(follower_id={self.follower_id}, followed_id={self.followed_id})>"
