# src/models/challenge_invite.py

from sqlalchemy import Column, Integer, Boolean, ForeignKey, DateTime, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from src.db import Base

class ChallengeInvite(Base):
    """
    Приглашение одного друга в челлендж.
    response: NULL: ждёт ответа, True: принято, False: отклонено.
    Ответ пишется один раз; писать может только сам приглашённый.
    """
    __tablename__ = "challenge_invites"

    id = Column(Integer, primary_key=True, index=True)
    challenge_id = Column(Integer, ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False)
    invited_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    response = Column(Boolean, nullable=True)

    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)  # = время ответа, если ответ дан

    __table_args__ = (
        UniqueConstraint("challenge_id", "invited_user_id", name="uq_challenge_invite_user"),
        Index("ix_challenge_invites_user_response", "invited_user_id", "response"),
    )

    challenge = relationship("Challenge", back_populates="invites")
    invited_user = relationship("User", foreign_keys=[invited_user_id])

    def __repr__(self):
        return f"<ChallengeInvite(id={self.id}, challenge_id={self.challenge_id}, user={self.invited_user_id}, response={self.response})>"
