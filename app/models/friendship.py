# app/models/friendship.py

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base_class import Base, utcnow
from app.models.profile import ProfileSummary


class FriendshipStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Friendship(Base):
    __tablename__ = "friendships"
    __table_args__ = (
        UniqueConstraint("sender_id", "receiver_id", name="friendships_sender_id_receiver_id_key"),
        CheckConstraint("status IN ('pending', 'accepted', 'rejected')", name="friendships_status_check"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    sender_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), index=True, nullable=False)  # 發送邀請的人
    receiver_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), index=True, nullable=False)  # 接收邀請的人
    status = Column(String(10), default=FriendshipStatus.PENDING.value, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    sender = relationship("Profile", foreign_keys=[sender_id], lazy="joined")
    receiver = relationship("Profile", foreign_keys=[receiver_id], lazy="joined")


class FriendshipCreate(BaseModel):
    receiver_id: str
    # defaults to the requester; anything else is refused by the insert policy
    sender_id: Optional[str] = None


class FriendshipUpdate(BaseModel):
    status: FriendshipStatus

    # only the status of a friendship can change
    model_config = ConfigDict(extra="forbid")


class FriendshipRead(BaseModel):
    id: str
    sender_id: str
    receiver_id: str
    status: FriendshipStatus
    created_at: datetime
    updated_at: datetime
    sender: ProfileSummary
    receiver: ProfileSummary

    model_config = ConfigDict(from_attributes=True)
