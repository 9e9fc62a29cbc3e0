# app/models/post.py

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from app.db.base_class import Base, utcnow
from app.models.profile import ProfileSummary


class Privacy(str, Enum):
    PUBLIC = "public"
    FRIENDS = "friends"
    PRIVATE = "private"


class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (
        CheckConstraint("privacy IN ('public', 'friends', 'private')", name="posts_privacy_check"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), index=True, nullable=False)
    content = Column(Text, nullable=False)
    image_url = Column(String(2048), nullable=True)
    privacy = Column(String(10), default=Privacy.PUBLIC.value, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    author = relationship("Profile", back_populates="posts", lazy="joined")


def _strip_content(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Post content cannot be empty")
    return value


class PostCreate(BaseModel):
    content: str = Field(..., max_length=5000)
    image_url: Optional[str] = Field(None, max_length=2048)
    privacy: Privacy = Privacy.PUBLIC
    # defaults to the requester; anything else is refused by the insert policy
    user_id: Optional[str] = None

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        return _strip_content(v)

    @field_validator("image_url")
    @classmethod
    def blank_image_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class PostUpdate(BaseModel):
    content: Optional[str] = Field(None, max_length=5000)
    image_url: Optional[str] = Field(None, max_length=2048)
    privacy: Optional[Privacy] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return _strip_content(v) if v is not None else None


class PostRead(BaseModel):
    id: str
    user_id: str
    content: str
    image_url: Optional[str] = None
    privacy: Privacy
    created_at: datetime
    updated_at: datetime
    author: ProfileSummary

    model_config = ConfigDict(from_attributes=True)
