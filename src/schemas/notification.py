# src/schemas/notification.py
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel

class NotificationOut(BaseModel):
    id: int
    type: str
    sender_id: int
    recipient_ids: List[int]
    message: str
    related_challenge_id: Optional[int] = None
    related_invite_id: Optional[int] = None
    seen: bool
    approved: Optional[bool] = None
    created_at: datetime

    class Config:
        from_attributes = True
