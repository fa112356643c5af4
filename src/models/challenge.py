# src/models/challenge.py
# -----------------------------------------------------------------------------
# МОДЕЛЬ: Challenge (SQLAlchemy)
# -----------------------------------------------------------------------------

from __future__ import annotations

import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    Enum,
    DateTime,
    Index,
    CheckConstraint,
    text,
)
from sqlalchemy.orm import relationship

from ..db import Base


class ChallengeDifficulty(enum.Enum):
    all = "All"
    easy = "Easy"
    medium = "Medium"
    hard = "Hard"


class ChallengeStatus(enum.Enum):
    # Меняет только подсистема прохождения теста; здесь: только чтение
    pending = "pending"
    active = "active"
    completed = "completed"


class Challenge(Base):
    __tablename__ = "challenges"

    id = Column(Integer, primary_key=True, index=True)

    creator_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    creator = relationship("User")

    display_name = Column(String(32), nullable=False, comment="SUB-LESSO-XXXX, не уникально")

    subject = Column(String(64), nullable=False)
    lesson = Column(String(255), nullable=False)

    difficulty = Column(
        Enum(ChallengeDifficulty, name="challenge_difficulty", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ChallengeDifficulty.all,
    )

    question_count = Column(Integer, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    exam_filter = Column(String(64), nullable=True, comment="NULL = любой экзамен")

    status = Column(
        Enum(ChallengeStatus, name="challenge_status"),
        nullable=False,
        default=ChallengeStatus.pending,
        server_default=text("'pending'"),
        comment="pending|active|completed",
    )

    created_at = Column(DateTime, nullable=False, comment="UTC, от него считается срок жизни")

    expiry_offset_minutes = Column(
        Integer,
        nullable=False,
        comment="duration_minutes + 20 (окно на вход и прохождение)",
    )

    __table_args__ = (
        CheckConstraint("question_count BETWEEN 1 AND 50", name="ck_challenge_question_count"),
        CheckConstraint("duration_minutes BETWEEN 5 AND 180", name="ck_challenge_duration"),
        CheckConstraint("expiry_offset_minutes = duration_minutes + 20", name="ck_challenge_expiry_offset"),
        Index("ix_challenges_creator_id", "creator_id"),
    )

    invites = relationship("ChallengeInvite", back_populates="challenge")

    def __repr__(self) -> str:
        return f"<Challenge id={self.id} name={self.display_name} creator={self.creator_id} status={self.status}>"
